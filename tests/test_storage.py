"""
Tests for storage backends, namespace views and the write buffer.
"""
import pytest

from tokenledger.core.storage import (
    MemoryStorage, SqliteStorage, BufferedStorage, PrefixedStorage, ReadonlyPrefixedStorage,
    to_length_prefixed, to_length_prefixed_nested,
)


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return SqliteStorage(tmp_path / "state.db")


def test_length_prefix_encoding():
    assert to_length_prefixed(b"balances") == b"\x00\x08balances"
    assert to_length_prefixed(b"") == b"\x00\x00"
    assert to_length_prefixed_nested([b"a", b"bc"]) == b"\x00\x01a\x00\x02bc"


def test_nested_namespaces_do_not_collide():
    assert to_length_prefixed_nested([b"ab", b"c"]) != to_length_prefixed_nested([b"a", b"bc"])


def test_backend_get_set_remove(backend):
    assert backend.get(b"k") is None
    backend.set(b"k", b"v")
    assert backend.get(b"k") == b"v"
    backend.remove(b"k")
    assert backend.get(b"k") is None
    # Removing an absent key is not an error
    backend.remove(b"k")


def test_backend_apply_batch(backend):
    backend.set(b"gone", b"x")
    backend.apply_batch([(b"a", b"1"), (b"gone", None), (b"b", b"2")])
    assert backend.get(b"a") == b"1"
    assert backend.get(b"b") == b"2"
    assert backend.get(b"gone") is None


def test_prefixed_views_are_isolated(backend):
    balances = PrefixedStorage(backend, b"balances")
    allowances = PrefixedStorage(backend, b"allowances", b"alice")

    balances.set(b"alice", b"\x01")
    allowances.set(b"bob", b"\x02")

    assert balances.get(b"alice") == b"\x01"
    assert balances.get(b"bob") is None
    assert allowances.get(b"bob") == b"\x02"
    assert backend.get(b"\x00\x08balances" + b"alice") == b"\x01"
    assert backend.get(b"\x00\x0aallowances\x00\x05alice" + b"bob") == b"\x02"


def test_prefixed_range_strips_prefix(backend):
    balances = PrefixedStorage(backend, b"balances")
    balances.set(b"bob", b"2")
    balances.set(b"alice", b"1")
    PrefixedStorage(backend, b"config").set(b"x", b"y")

    assert list(balances.range()) == [(b"alice", b"1"), (b"bob", b"2")]


def test_readonly_view_has_no_writers(backend):
    view = ReadonlyPrefixedStorage(backend, b"config")
    assert not hasattr(view, "set")
    assert not hasattr(view, "remove")


def test_view_requires_namespace(backend):
    with pytest.raises(ValueError):
        PrefixedStorage(backend)


def test_buffer_reads_its_own_writes(backend):
    backend.set(b"a", b"old")
    buffer = BufferedStorage(backend)

    buffer.set(b"a", b"new")
    buffer.set(b"b", b"2")
    buffer.remove(b"a")

    assert buffer.get(b"a") is None
    assert buffer.get(b"b") == b"2"
    # Nothing reached the backend yet
    assert backend.get(b"a") == b"old"
    assert backend.get(b"b") is None


def test_buffer_commit_flushes_in_first_write_order(backend):
    buffer = BufferedStorage(backend)
    buffer.set(b"z", b"1")
    buffer.set(b"a", b"2")
    buffer.set(b"z", b"3")

    assert buffer.pending() == [(b"z", b"3"), (b"a", b"2")]
    assert buffer.commit() == 2
    assert backend.get(b"z") == b"3"
    assert backend.get(b"a") == b"2"
    assert buffer.pending() == []


def test_buffer_discard_drops_everything(backend):
    backend.set(b"a", b"1")
    buffer = BufferedStorage(backend)
    buffer.set(b"a", b"2")
    buffer.remove(b"a")
    buffer.set(b"b", b"3")

    assert buffer.discard() == 2
    assert buffer.commit() == 0
    assert backend.get(b"a") == b"1"
    assert backend.get(b"b") is None


def test_buffer_scan_merges_pending(backend):
    backend.set(b"p:a", b"1")
    backend.set(b"p:b", b"2")
    buffer = BufferedStorage(backend)
    buffer.remove(b"p:a")
    buffer.set(b"p:c", b"3")
    buffer.set(b"q:z", b"9")

    assert list(buffer.scan(b"p:")) == [(b"p:b", b"2"), (b"p:c", b"3")]
