"""
Record Book Session

Holds one registry per entity type over one shared store: the whole
"current database" of a running process.

Mode is determined by environment variables (see recordbook.db.config):
- RECORDBOOK_STORAGE_DRIVER: Explicit driver selection (memory, file)
- RECORDBOOK_DATA_DIR: Data directory (auto-selects the file driver)
- Neither set: Use in-memory (default for development)

ORDERING:
- load_all: persons are loaded by each person subtype before joining
- save_all: subtypes are written before the persons table derived from them
"""

from dataclasses import dataclass
from typing import Optional

from .core import (
    AuthorRegistry,
    BookRegistry,
    EmployeeRegistry,
    LoadReport,
    MovieRegistry,
    PersonRegistry,
)
from .db import KeyValueStore, StorageConfig, create_store
from .observability import get_logger


logger = get_logger(__name__)


@dataclass
class RecordBook:
    """All registries of the application, bound to one store."""
    storage: KeyValueStore
    books: BookRegistry
    persons: PersonRegistry
    employees: EmployeeRegistry
    authors: AuthorRegistry
    movies: MovieRegistry

    @property
    def registries(self) -> dict:
        """Registries that accept create/update/destroy, by slot name."""
        return {
            registry.slot: registry
            for registry in (self.books, self.employees, self.authors, self.movies)
        }

    def load_all(self) -> dict[str, LoadReport]:
        """Load every registry. Returns one report per slot."""
        reports = {}
        for slot, registry in self.registries.items():
            reports[slot] = registry.load_all()
        return reports

    def save_all(self) -> dict[str, int]:
        """Save every registry, subtypes before their supertype table."""
        counts = {}
        for slot, registry in self.registries.items():
            counts[slot] = registry.save_all()
        counts[self.persons.slot] = self.persons.save_all()
        return counts

    def clear(self) -> None:
        """Empty every slot and every in-memory population."""
        for registry in (*self.registries.values(), self.persons):
            self.storage.write(registry.slot, {})
            registry.instances.clear()
        logger.info("All record data cleared.")


def create_record_book(
    storage: Optional[KeyValueStore] = None,
    config: Optional[StorageConfig] = None,
) -> RecordBook:
    """
    Build a RecordBook over the given store.

    Args:
        storage: Store to use. Created from `config` if None.
        config: Storage configuration. Read from the environment if None.
    """
    if storage is None:
        storage = create_store(config)

    persons = PersonRegistry(storage)
    return RecordBook(
        storage=storage,
        books=BookRegistry(storage),
        persons=persons,
        employees=EmployeeRegistry(storage, persons),
        authors=AuthorRegistry(storage, persons),
        movies=MovieRegistry(storage),
    )
