"""
Storage Configuration

Chooses where the record book keeps its tables.

Environment Variables:
    RECORDBOOK_STORAGE_DRIVER: Which driver to use
        - "memory" (default if no data directory configured)
        - "file" (one JSON file per slot)
    RECORDBOOK_DATA_DIR: Directory for the file driver (default ./data)
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore


DEFAULT_DATA_DIR = "./data"


class StorageDriver(str, Enum):
    """Supported storage drivers."""
    MEMORY = "memory"
    FILE = "file"


@dataclass
class StorageConfig:
    """Storage location configuration."""
    driver: StorageDriver = StorageDriver.MEMORY
    data_dir: str = DEFAULT_DATA_DIR

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - RECORDBOOK_STORAGE_DRIVER
        - RECORDBOOK_DATA_DIR
        """
        return cls(
            driver=get_storage_driver(),
            data_dir=os.getenv("RECORDBOOK_DATA_DIR", DEFAULT_DATA_DIR),
        )


def get_data_dir() -> Optional[str]:
    """
    Get the configured data directory.

    Returns None if no directory is configured (use in-memory mode).
    """
    return os.getenv("RECORDBOOK_DATA_DIR") or None


def get_storage_driver() -> StorageDriver:
    """
    Get the storage driver to use.

    Checks RECORDBOOK_STORAGE_DRIVER, then falls back to:
    - file if RECORDBOOK_DATA_DIR is set
    - memory otherwise

    Returns:
        StorageDriver enum value
    """
    explicit = os.getenv("RECORDBOOK_STORAGE_DRIVER", "").lower()

    if explicit:
        if explicit == "memory":
            return StorageDriver.MEMORY
        elif explicit == "file":
            return StorageDriver.FILE
        else:
            raise ValueError(
                f"Unknown RECORDBOOK_STORAGE_DRIVER: {explicit}. "
                f"Valid values: memory, file"
            )

    if get_data_dir() is not None:
        return StorageDriver.FILE

    return StorageDriver.MEMORY


def create_store(config: Optional[StorageConfig] = None) -> KeyValueStore:
    """
    Create the KeyValueStore described by the configuration.

    Args:
        config: Storage configuration. Read from the environment if None.
    """
    if config is None:
        config = StorageConfig.from_env()

    if config.driver == StorageDriver.FILE:
        return JsonFileKeyValueStore(config.data_dir)

    return InMemoryKeyValueStore()
