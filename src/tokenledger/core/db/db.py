import logging
import sqlite3
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from tokenledger.core.config import config

logger = logging.getLogger(__name__)

# A pending mutation: (key, value) sets the key, (key, None) removes it.
Mutation = Tuple[bytes, Optional[bytes]]


def get_connection(db_path: Optional[Path] = None):
    return sqlite3.connect(db_path or config.db_path)


# ───────────────────────────────
# 🏗️  Initialization
# ───────────────────────────────


def init_db(db_path: Optional[Path] = None):
    path = Path(db_path or config.db_path)
    # Ensure the database directory exists
    os.makedirs(path.parent, exist_ok=True)

    with get_connection(path) as conn:
        cur = conn.cursor()

        cur.execute(
            "CREATE TABLE IF NOT EXISTS state ("
            "key BLOB PRIMARY KEY, "
            "value BLOB NOT NULL"
            ")"
        )

        conn.commit()
    conn.close()


# ───────────────────────────────
# 🔑 Key-value access
# ───────────────────────────────


def fetch_value(key: bytes, db_path: Optional[Path] = None) -> Optional[bytes]:
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute("SELECT value FROM state WHERE key = ?", (key,))
        row = cur.fetchone()
        return bytes(row[0]) if row else None
    finally:
        conn.close()


def scan_prefix(prefix: bytes, db_path: Optional[Path] = None) -> List[Tuple[bytes, bytes]]:
    """Fetch all records whose key starts with ``prefix``, ordered by key.

    Args:
        prefix: Raw key prefix
        db_path: Optional database path (default: config.db_path)

    Returns:
        List of (key, value) pairs
    """
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            "SELECT key, value FROM state WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        )
        return [(bytes(k), bytes(v)) for k, v in cur.fetchall()]
    finally:
        conn.close()


def write_batch(mutations: Iterable[Mutation], db_path: Optional[Path] = None) -> int:
    """Apply a list of mutations in a single exclusive transaction.

    Either every mutation is written or none is.

    Args:
        mutations: Ordered (key, value) pairs; a value of None deletes the key
        db_path: Optional database path (default: config.db_path)

    Returns:
        int: Number of mutations applied
    """
    mutations = list(mutations)
    connection = get_connection(db_path)
    connection.isolation_level = None

    # Add a small timeout to avoid immediate lock failures
    connection.execute("PRAGMA busy_timeout = 5000")
    connection.execute("BEGIN EXCLUSIVE TRANSACTION")

    try:
        cursor = connection.cursor()
        for key, value in mutations:
            if value is None:
                cursor.execute("DELETE FROM state WHERE key = ?", (key,))
            else:
                cursor.execute(
                    "INSERT INTO state (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        connection.execute("COMMIT")
        logger.debug(f"Committed batch of {len(mutations)} mutations")
        return len(mutations)
    except Exception:
        connection.execute("ROLLBACK")
        logger.error(f"Rolled back batch of {len(mutations)} mutations")
        raise
    finally:
        connection.close()
