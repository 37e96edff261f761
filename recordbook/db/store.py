"""
Key-Value Store Abstraction

This module defines the KeyValueStore interface and provides two implementations:
- InMemoryKeyValueStore: For development and testing
- JsonFileKeyValueStore: One JSON file per slot, for durable local use

Each entity type owns exactly one slot, named after the entity type
("books", "persons", "employees", "authors", "movies"). A slot holds a
whole table: a mapping from primary-key string to flat row.

There is no partial persistence. A table is always read whole and
written whole, and a write replaces the slot in one step:

    table = store.read("books") or {}
    table["0136019701"] = {...}
    store.write("books", table)

Readers never observe a half-written table.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union


# ============================================================
# EXCEPTIONS
# ============================================================

class StorageError(Exception):
    """Raised when a slot cannot be read or written."""
    pass


Table = dict[str, dict[str, Any]]


def _encode(slot: str, table: Table) -> str:
    if not isinstance(table, dict):
        raise StorageError(f"Slot '{slot}' must hold a mapping, got {type(table).__name__}")
    try:
        return json.dumps(table, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Cannot serialize slot '{slot}': {e}") from e


def _decode(slot: str, text: str) -> Table:
    try:
        table = json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageError(f"Slot '{slot}' holds malformed JSON: {e}") from e
    if not isinstance(table, dict):
        raise StorageError(f"Slot '{slot}' does not hold a mapping")
    return table


# ============================================================
# ABSTRACT BASE CLASS
# ============================================================

class KeyValueStore(ABC):
    """
    Abstract base class for slot storage.

    Implementations must ensure:
    1. write() replaces the slot atomically
    2. read() returns a fresh copy the caller may mutate freely
    3. read() returns None for a slot that was never written
    """

    @abstractmethod
    def read(self, slot: str) -> Optional[Table]:
        """
        Read a whole table.

        Returns:
            The table, or None if the slot does not exist

        Raises:
            StorageError: If the slot exists but cannot be read or parsed
        """
        pass

    @abstractmethod
    def write(self, slot: str, table: Table) -> None:
        """
        Replace a whole table.

        Raises:
            StorageError: If the table cannot be serialized or written
        """
        pass

    @abstractmethod
    def delete(self, slot: str) -> None:
        """Remove a slot. Removing a missing slot is a no-op."""
        pass

    @abstractmethod
    def slots(self) -> list[str]:
        """List existing slot names."""
        pass

    def ensure(self, slot: str) -> Table:
        """Read a table, creating it empty first if the slot is missing."""
        table = self.read(slot)
        if table is None:
            table = {}
            self.write(slot, table)
        return table


# ============================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================

class InMemoryKeyValueStore(KeyValueStore):
    """
    In-memory implementation of KeyValueStore.

    Holds each slot as serialized JSON text, the way browser local
    storage does, so stored tables never alias live objects.

    Suitable for:
    - Development
    - Testing

    NOT suitable for:
    - Anything that must survive the process
    """

    def __init__(self):
        self._slots: dict[str, str] = {}

    def read(self, slot: str) -> Optional[Table]:
        text = self._slots.get(slot)
        if text is None:
            return None
        return _decode(slot, text)

    def write(self, slot: str, table: Table) -> None:
        self._slots[slot] = _encode(slot, table)

    def delete(self, slot: str) -> None:
        self._slots.pop(slot, None)

    def slots(self) -> list[str]:
        return sorted(self._slots)

    def raw(self, slot: str) -> Optional[str]:
        """Stored text of a slot (for tests and diagnostics)."""
        return self._slots.get(slot)

    def put_raw(self, slot: str, text: str) -> None:
        """Store text as-is, bypassing serialization."""
        self._slots[slot] = text


# ============================================================
# JSON FILE IMPLEMENTATION
# ============================================================

class JsonFileKeyValueStore(KeyValueStore):
    """
    File-backed implementation of KeyValueStore.

    Each slot is `<data_dir>/<slot>.json`.

    ATOMICITY:
    A write goes to a temporary file in the same directory, is flushed
    and fsynced, and then renamed over the slot file with os.replace().
    A concurrent reader sees either the old table or the new one.
    """

    SUFFIX = ".json"

    def __init__(self, data_dir: Union[str, Path]):
        self._dir = Path(data_dir)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._dir}: {e}") from e

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path(self, slot: str) -> Path:
        if not slot or "/" in slot or "\\" in slot or slot.startswith("."):
            raise StorageError(f"Invalid slot name: {slot!r}")
        return self._dir / f"{slot}{self.SUFFIX}"

    def read(self, slot: str) -> Optional[Table]:
        path = self._path(slot)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read slot '{slot}' from {path}: {e}") from e
        return _decode(slot, text)

    def write(self, slot: str, table: Table) -> None:
        path = self._path(slot)
        text = _encode(slot, table)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{slot}.", suffix=".tmp", dir=str(self._dir)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Cannot write slot '{slot}' to {path}: {e}") from e

    def delete(self, slot: str) -> None:
        try:
            self._path(slot).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Cannot delete slot '{slot}': {e}") from e

    def slots(self) -> list[str]:
        return sorted(
            p.name[: -len(self.SUFFIX)]
            for p in self._dir.glob(f"*{self.SUFFIX}")
            if not p.name.startswith(".")
        )
