"""Storage module for dashcache.

Provides the durable key-value substrate.

Public Interface:
    - KeyValueStore: Substrate protocol (get/set/remove/keys)
    - JsonFileStore: Durable JSON-file substrate
    - MemoryStore: Process-local substrate
"""

from .kv_store import JsonFileStore
from .kv_store import KeyValueStore
from .kv_store import MemoryStore

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
]
