"""
Key-value storage backends and namespace views.

Every ledger record lives in one flat byte-keyed store. Record kinds are kept
apart by length-prefixed namespaces: a namespace ``ns`` contributes
``len(ns).to_bytes(2, "big") + ns`` to the key, and nested namespaces stack in
order. Because each segment carries its own length, ``(b"ab", b"c")`` and
``(b"a", b"bc")`` can never produce the same key.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from tokenledger.core.db import db

logger = logging.getLogger(__name__)

Mutation = db.Mutation


def to_length_prefixed(namespace: bytes) -> bytes:
    """Encode one namespace segment as a 2-byte big-endian length plus the bytes."""
    if len(namespace) > 0xFFFF:
        raise ValueError("Namespace exceeds 65535 bytes")
    return len(namespace).to_bytes(2, "big") + namespace


def to_length_prefixed_nested(namespaces: Sequence[bytes]) -> bytes:
    return b"".join(to_length_prefixed(ns) for ns in namespaces)


class Storage:
    """Interface shared by all key-value backends."""

    def get(self, key: bytes) -> Optional[bytes]:
        raise NotImplementedError

    def set(self, key: bytes, value: bytes) -> None:
        raise NotImplementedError

    def remove(self, key: bytes) -> None:
        raise NotImplementedError

    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate (key, value) pairs whose key starts with ``prefix``, in key order."""
        raise NotImplementedError

    def apply_batch(self, mutations: List[Mutation]) -> None:
        """Apply mutations in order. Backends with transactions override this."""
        for key, value in mutations:
            if value is None:
                self.remove(key)
            else:
                self.set(key, value)


class MemoryStorage(Storage):
    """In-process dictionary store."""

    def __init__(self, data: Optional[Dict[bytes, bytes]] = None):
        self._data: Dict[bytes, bytes] = dict(data or {})

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._data[bytes(key)] = bytes(value)

    def remove(self, key: bytes) -> None:
        self._data.pop(key, None)

    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        for key in sorted(self._data):
            if key.startswith(prefix):
                yield key, self._data[key]

    def __len__(self) -> int:
        return len(self._data)


class SqliteStorage(Storage):
    """Store backed by the ``state`` table of the SQLite database."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path
        db.init_db(db_path)

    def get(self, key: bytes) -> Optional[bytes]:
        return db.fetch_value(key, self.db_path)

    def set(self, key: bytes, value: bytes) -> None:
        db.write_batch([(key, value)], self.db_path)

    def remove(self, key: bytes) -> None:
        db.write_batch([(key, None)], self.db_path)

    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        return iter(db.scan_prefix(prefix, self.db_path))

    def apply_batch(self, mutations: List[Mutation]) -> None:
        db.write_batch(mutations, self.db_path)


class BufferedStorage(Storage):
    """
    Write buffer over another store.

    Writes are recorded in memory and are visible to subsequent reads through
    this buffer, but nothing reaches the backing store until ``commit`` is
    called. ``discard`` drops every pending write.
    """

    def __init__(self, backend: Storage):
        self.backend = backend
        self._pending: Dict[bytes, Optional[bytes]] = {}
        self._order: List[bytes] = []

    def get(self, key: bytes) -> Optional[bytes]:
        if key in self._pending:
            return self._pending[key]
        return self.backend.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._record(bytes(key), bytes(value))

    def remove(self, key: bytes) -> None:
        self._record(bytes(key), None)

    def _record(self, key: bytes, value: Optional[bytes]) -> None:
        if key not in self._pending:
            self._order.append(key)
        self._pending[key] = value

    def scan(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        merged = dict(self.backend.scan(prefix))
        for key, value in self._pending.items():
            if not key.startswith(prefix):
                continue
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        for key in sorted(merged):
            yield key, merged[key]

    def pending(self) -> List[Mutation]:
        """Pending mutations in first-write order, one entry per key."""
        return [(key, self._pending[key]) for key in self._order]

    def commit(self) -> int:
        mutations = self.pending()
        if mutations:
            self.backend.apply_batch(mutations)
        self._pending.clear()
        self._order.clear()
        logger.debug(f"Flushed {len(mutations)} buffered writes")
        return len(mutations)

    def discard(self) -> int:
        dropped = len(self._order)
        self._pending.clear()
        self._order.clear()
        return dropped


class ReadonlyPrefixedStorage:
    """Read-only view of a store scoped to one or more nested namespaces."""

    def __init__(self, storage: Storage, *namespaces: bytes):
        if not namespaces:
            raise ValueError("At least one namespace is required")
        self.storage = storage
        self.prefix = to_length_prefixed_nested(namespaces)

    def get(self, key: bytes) -> Optional[bytes]:
        return self.storage.get(self.prefix + key)

    def range(self) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate (key, value) pairs in this namespace with the prefix stripped."""
        offset = len(self.prefix)
        for key, value in self.storage.scan(self.prefix):
            yield key[offset:], value


class PrefixedStorage(ReadonlyPrefixedStorage):
    """Read-write view of a store scoped to one or more nested namespaces."""

    def set(self, key: bytes, value: bytes) -> None:
        self.storage.set(self.prefix + key, value)

    def remove(self, key: bytes) -> None:
        self.storage.remove(self.prefix + key)
