"""
Tests for the SQLite key-value layer.
"""
import sqlite3

import pytest

from tokenledger.core.config import config
from tokenledger.core.db import db


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "nested" / "ledger.db"
    db.init_db(path)
    return path


def test_init_db_creates_directory_and_table(db_path):
    assert db_path.exists()
    conn = sqlite3.connect(db_path)
    tables = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")]
    conn.close()
    assert "state" in tables


def test_init_db_is_idempotent(db_path):
    db.write_batch([(b"k", b"v")], db_path)
    db.init_db(db_path)
    assert db.fetch_value(b"k", db_path) == b"v"


def test_write_and_fetch(db_path):
    assert db.fetch_value(b"missing", db_path) is None

    applied = db.write_batch([(b"a", b"1"), (b"b", b"2"), (b"a", b"3")], db_path)

    assert applied == 3
    assert db.fetch_value(b"a", db_path) == b"3"
    assert db.fetch_value(b"b", db_path) == b"2"


def test_delete_mutation(db_path):
    db.write_batch([(b"a", b"1")], db_path)
    db.write_batch([(b"a", None)], db_path)
    assert db.fetch_value(b"a", db_path) is None


def test_scan_prefix_is_ordered_and_bounded(db_path):
    db.write_batch([
        (b"p:b", b"2"),
        (b"p:a", b"1"),
        (b"q:a", b"x"),
        (b"p", b"short"),
    ], db_path)

    assert db.scan_prefix(b"p:", db_path) == [(b"p:a", b"1"), (b"p:b", b"2")]


def test_failed_batch_is_rolled_back(db_path):
    db.write_batch([(b"a", b"1")], db_path)

    with pytest.raises(sqlite3.Error):
        db.write_batch([(b"a", b"2"), (b"b", object())], db_path)

    assert db.fetch_value(b"a", db_path) == b"1"
    assert db.fetch_value(b"b", db_path) is None


def test_default_path_from_config(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "db_path", tmp_path / "default.db")
    db.init_db()
    db.write_batch([(b"k", b"v")])
    assert db.fetch_value(b"k") == b"v"
    assert (tmp_path / "default.db").exists()
