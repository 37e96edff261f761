"""
Instance Registries - The Current Database

One registry per entity type maps primary-key strings to live entities.
Registries are explicit objects bound to a KeyValueStore; nothing is
held at class level.

Rules (enforced in code):
- No two live entities of one type share a primary key
- Every attribute is set through its setter, so every committed value
  has passed its check
- create adds a candidate only if full-record construction succeeds
- update is all-or-nothing: it works on a copy of the entity and swaps
  the copy in only when every requested change was accepted
- load_all skips (and logs) rows that fail; one bad row never aborts a load
- save_all writes the whole population back in one slot write

Storage failures (StorageError) are the only fatal condition here.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ..db.store import KeyValueStore, Table
from ..observability import get_logger, get_metrics, operation_context
from .violations import (
    ConstraintViolation,
    NoConstraintViolation,
    UniquenessViolation,
    ValidationResult,
    enforce,
)


logger = get_logger(__name__)


class RegistryError(Exception):
    """Base exception for registry errors."""
    pass


class RecordNotFoundError(RegistryError):
    """Raised when an update names a key that is not in the registry."""
    pass


class RowRejectedError(RegistryError):
    """Raised internally when a stored row cannot become an entity."""
    pass


# ============================================================
# ENTITY BASE
# ============================================================

class Entity:
    """
    Base for records validated attribute-by-attribute through setters.

    Subclasses name their key slot and render themselves as slots
    (persisted attribute names mapped to values).
    """

    key_slot: ClassVar[str] = ""

    @classmethod
    def key_for(cls, value: Any) -> str:
        """Normalize a key slot value to the registry key string."""
        return "" if value is None else str(value)

    @property
    def key(self) -> str:
        return self.key_for(self.to_slots()[self.key_slot])

    def to_slots(self) -> dict[str, Any]:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_slots() == other.to_slots()

    __hash__ = None


E = TypeVar("E", bound=Entity)


# ============================================================
# RESULTS
# ============================================================

class OperationStatus(str, Enum):
    """Outcome of a create/update/destroy call."""
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"     # update with nothing to change
    DESTROYED = "destroyed"
    NOT_FOUND = "not_found"     # destroy of a missing key
    REJECTED = "rejected"       # a constraint was violated


@dataclass
class OperationResult:
    """What a registry operation did, and why it refused if it did."""
    action: str
    key: str
    status: OperationStatus
    violation: ValidationResult = field(default_factory=NoConstraintViolation)
    changed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status not in (OperationStatus.REJECTED, OperationStatus.NOT_FOUND)


@dataclass
class LoadReport:
    """Result of a load_all: keys loaded and keys skipped with reasons."""
    slot: str
    loaded: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.skipped


# ============================================================
# ROW TABLE (load/save only)
# ============================================================

class RowTable(Generic[E]):
    """
    An instance registry bound to one storage slot.

    Handles the row mapping and the bulk load/save round trip.
    Subclasses provide:
        entity_name: label used in messages ("book")
        slot: storage slot name ("books")
        row_model: pydantic schema of a stored row
        construct(slots, instances): full-record constructor
    """

    entity_name: ClassVar[str] = ""
    slot: ClassVar[str] = ""
    row_model: ClassVar[type[BaseModel]]
    entity_class: ClassVar[type[Entity]]

    def __init__(self, storage: KeyValueStore):
        self.storage = storage
        self.instances: dict[str, E] = {}

    def __len__(self) -> int:
        return len(self.instances)

    def __contains__(self, key: object) -> bool:
        return self.entity_class.key_for(key) in self.instances

    def get(self, key: Any) -> Optional[E]:
        return self.instances.get(self.entity_class.key_for(key))

    def construct(self, slots: Mapping[str, Any], instances: Mapping[str, E]) -> E:
        raise NotImplementedError

    # ----------------------------------------------------------------
    # Row mapping
    # ----------------------------------------------------------------

    def convert_obj_to_row(self, entity: E) -> dict[str, Any]:
        """Shallow copy of the entity's own attributes, absent values omitted."""
        return {k: v for k, v in entity.to_slots().items() if v is not None}

    def convert_row_to_obj(
        self,
        row: Mapping[str, Any],
        instances: Optional[Mapping[str, E]] = None,
    ) -> Optional[E]:
        """
        Construct an entity from a stored row.

        Returns None (and logs the reason) if the row is malformed or
        violates a constraint. `instances` is the population the key
        must be unique in; by default uniqueness is not checked.
        """
        try:
            return self._row_to_obj(row, {} if instances is None else instances)
        except RowRejectedError as e:
            logger.warning(str(e))
            return None

    def _parse_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return self.row_model.model_validate(row).model_dump(by_alias=True)

    def _row_to_obj(self, row: Mapping[str, Any], instances: Mapping[str, E]) -> E:
        try:
            slots = self._parse_row(row)
            return self.construct(slots, instances)
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
                for err in e.errors()
            )
            raise RowRejectedError(
                f"ValidationError while deserializing a {self.entity_name} row: {reason}"
            ) from e
        except ConstraintViolation as v:
            raise RowRejectedError(
                f"{type(v).__name__} while deserializing a {self.entity_name} row: {v.message}"
            ) from v

    # ----------------------------------------------------------------
    # Bulk persistence
    # ----------------------------------------------------------------

    def _rows_to_load(self, table: Table, report: LoadReport) -> dict[str, Mapping[str, Any]]:
        """Rows to construct, keyed by stored key. Subtypes join here."""
        return dict(table)

    def row_for_storage(self, entity: E) -> dict[str, Any]:
        """Row as written to this registry's slot. Subtypes split here."""
        return self.convert_obj_to_row(entity)

    def load_all(self) -> LoadReport:
        """
        Replace the population with the rows stored in this slot.

        The slot is created empty if it does not exist yet.
        """
        metrics = get_metrics()
        with operation_context(self.entity_name, "load"):
            table = self.storage.ensure(self.slot)
            report = LoadReport(slot=self.slot)
            population: dict[str, E] = {}

            for stored_key, row in self._rows_to_load(table, report).items():
                try:
                    if not isinstance(row, Mapping):
                        raise RowRejectedError(
                            f"Stored {self.entity_name} row is not a mapping"
                        )
                    entity = self._row_to_obj(row, population)
                    if entity.key != stored_key:
                        raise RowRejectedError(
                            f"Row stored under key {stored_key!r} describes "
                            f"{self.entity_name} {entity.key!r}"
                        )
                except RowRejectedError as e:
                    report.skipped[stored_key] = str(e)
                    logger.warning(str(e), key=stored_key)
                    continue
                population[entity.key] = entity
                report.loaded.append(entity.key)

            self.instances.clear()
            self.instances.update(population)

            metrics.record(self.entity_name, "rows_loaded", len(report.loaded))
            metrics.record(self.entity_name, "rows_skipped", len(report.skipped))
            logger.info(f"{len(report.loaded)} {self.slot} loaded.")
            if report.skipped:
                logger.warning(f"{len(report.skipped)} {self.slot} rows skipped.")
            return report

    def save_all(self) -> int:
        """Write the whole population to this slot in one write."""
        with operation_context(self.entity_name, "save"):
            table = {
                key: self.row_for_storage(entity)
                for key, entity in self.instances.items()
            }
            self.storage.write(self.slot, table)
            logger.info(f"{len(table)} {self.slot} saved.")
            return len(table)


# ============================================================
# ENTITY REGISTRY (create/update/destroy)
# ============================================================

class EntityRegistry(RowTable[E]):
    """
    A row table that also accepts create/update/destroy requests.

    Subclasses provide apply_update(entity, slots) -> changed slot names,
    which must route every change through the entity's setters.
    """

    def apply_update(self, entity: E, slots: Mapping[str, Any]) -> list[str]:
        raise NotImplementedError

    def check_new_entity(self, entity: E) -> ValidationResult:
        """Rules a fully constructed candidate must meet beyond its own setters."""
        return NoConstraintViolation()

    def commit_update(self, key: str, entity: E, changed: list[str]) -> None:
        """Install an accepted update. Subclasses may carry shared fields along."""
        self.instances[key] = entity

    def create(self, slots: Mapping[str, Any]) -> OperationResult:
        """Construct a new entity from slots and add it to the registry."""
        key = self.entity_class.key_for(slots.get(self.entity_class.key_slot))
        metrics = get_metrics()
        with operation_context(self.entity_name, "create"):
            try:
                entity = self.construct(slots, self.instances)
                if entity.key in self.instances:
                    raise UniquenessViolation(
                        f"Another {self.entity_name} record already has this key!"
                    )
                enforce(self.check_new_entity(entity))
            except ConstraintViolation as violation:
                logger.warning(f"{type(violation).__name__}: {violation.message}", key=key)
                metrics.record(self.entity_name, "rejected")
                return OperationResult("create", key, OperationStatus.REJECTED, violation)

            self.instances[entity.key] = entity
            logger.info(f"{entity} created!", key=entity.key)
            metrics.record(self.entity_name, "created")
            return OperationResult("create", entity.key, OperationStatus.CREATED)

    def update(self, slots: Mapping[str, Any]) -> OperationResult:
        """
        Change attributes of an existing entity.

        Raises:
            RecordNotFoundError: If no entity has the key given in slots
        """
        key = self.entity_class.key_for(slots.get(self.entity_class.key_slot))
        metrics = get_metrics()
        with operation_context(self.entity_name, "update"):
            current = self.instances.get(key)
            if current is None:
                raise RecordNotFoundError(
                    f"There is no {self.entity_name} with key {key!r} to update"
                )

            # Snapshot: the registry keeps `current` until the update succeeds
            working = copy.deepcopy(current)
            try:
                changed = self.apply_update(working, slots)
            except ConstraintViolation as violation:
                logger.warning(f"{type(violation).__name__}: {violation.message}", key=key)
                metrics.record(self.entity_name, "rejected")
                return OperationResult("update", key, OperationStatus.REJECTED, violation)

            if not changed:
                logger.info(f"No property value changed for {self.entity_name} {key} !", key=key)
                metrics.record(self.entity_name, "unchanged")
                return OperationResult("update", key, OperationStatus.UNCHANGED)

            self.commit_update(key, working, changed)
            ending = "ies" if len(changed) > 1 else "y"
            logger.info(
                f"Propert{ending} {', '.join(changed)} modified for {self.entity_name} {key}",
                key=key,
                changed=changed,
            )
            metrics.record(self.entity_name, "updated")
            return OperationResult("update", key, OperationStatus.UPDATED, changed=changed)

    def destroy(self, key: Any) -> OperationResult:
        """Remove an entity. A missing key is reported, not raised."""
        key = self.entity_class.key_for(key)
        metrics = get_metrics()
        with operation_context(self.entity_name, "destroy"):
            entity = self.instances.pop(key, None)
            if entity is None:
                logger.warning(
                    f"There is no {self.entity_name} with key {key} in the database!",
                    key=key,
                )
                metrics.record(self.entity_name, "not_found")
                return OperationResult("destroy", key, OperationStatus.NOT_FOUND)

            logger.info(f"{entity} deleted!", key=key)
            metrics.record(self.entity_name, "destroyed")
            return OperationResult("destroy", key, OperationStatus.DESTROYED)
