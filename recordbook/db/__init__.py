"""
Storage Layer for the Record Book

Provides:
- KeyValueStore abstraction (InMemory for dev, JSON files for local use)
- Environment-based configuration
"""

from .store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StorageError,
)
from .config import StorageConfig, StorageDriver, create_store, get_storage_driver

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "StorageError",
    "StorageConfig",
    "StorageDriver",
    "create_store",
    "get_storage_driver",
]
