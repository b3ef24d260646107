"""
Key-value storage abstraction for the tokenledger system.
"""
from tokenledger.core.storage.storage import Storage, MemoryStorage, SqliteStorage, \
    BufferedStorage, PrefixedStorage, ReadonlyPrefixedStorage, to_length_prefixed, \
    to_length_prefixed_nested

__all__ = [
    "Storage",
    "MemoryStorage",
    "SqliteStorage",
    "BufferedStorage",
    "PrefixedStorage",
    "ReadonlyPrefixedStorage",
    "to_length_prefixed",
    "to_length_prefixed_nested",
]
