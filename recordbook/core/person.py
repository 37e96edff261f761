"""
Person Family

Person is the supertype of Employee and Author. The family is stored
with segmented single-table inheritance:

    persons:   { personId: {personId, name} }
    employees: { personId: {empNo, subtype?, department?} }
    authors:   { personId: {biography} }

Loading a subtype joins each of its rows with the person row of the
same key; a subtype row without a person row is skipped. Saving a
subtype strips the person-owned fields, and the persons table is
rebuilt as the union of the person parts of all subtype populations.

A person held by several subtypes has one name: a subtype record is
only created with the name already recorded for that person, and a
rename through one subtype registry is carried to the others.

Employees are further segmented by the write-once discriminator
`subtype` in {Manager}; only managers have (and must have) a department.
"""

import copy
from typing import Any, ClassVar, Mapping, Optional, TypeVar

from ..observability import get_logger, operation_context
from ..schemas import (
    AuthorRow,
    EmployeeRow,
    EmployeeType,
    Manager,
    PersonRow,
    join_person,
    split_person,
)
from ..db.store import KeyValueStore, Table
from .registry import Entity, EntityRegistry, LoadReport, RowTable
from .rules import (
    absent_to_none,
    check_enum_code,
    check_mandatory_string,
    check_segment_attribute,
    is_absent,
    parse_integer,
    same_code,
)
from .violations import (
    FrozenValueViolation,
    MandatoryValueViolation,
    NoConstraintViolation,
    OtherViolation,
    RangeViolation,
    UniquenessViolation,
    ValidationResult,
    enforce,
)


logger = get_logger(__name__)


class Person(Entity):
    """
    A person: the supertype record shared by employees and authors.
    """

    key_slot = "personId"
    record_label: ClassVar[str] = "person"

    def __init__(
        self,
        slots: Optional[Mapping[str, Any]] = None,
        instances: Optional[Mapping[str, "Person"]] = None,
    ):
        self.person_id = 0
        self.name = ""

        if slots is not None:
            self.set_person_id(slots.get("personId"), instances or {})
            self.set_name(slots.get("name"))

    @classmethod
    def key_for(cls, value: Any) -> str:
        """Person IDs key the registries as decimal strings."""
        code = parse_integer(value)
        if code is not None:
            return str(code)
        return "" if value is None else str(value)

    # ================================================================
    # CHECKS
    # ================================================================

    @staticmethod
    def check_person_id(person_id: Any) -> ValidationResult:
        """Syntax-only check: an absent ID passes."""
        if is_absent(person_id):
            return NoConstraintViolation()
        code = parse_integer(person_id)
        if code is None or code < 1:
            return RangeViolation("The person ID must be a positive integer!")
        return NoConstraintViolation()

    @classmethod
    def check_person_id_as_id(
        cls,
        person_id: Any,
        instances: Mapping[str, "Person"],
    ) -> ValidationResult:
        if is_absent(person_id):
            return MandatoryValueViolation("A value for the person ID is required!")
        result = Person.check_person_id(person_id)
        if not isinstance(result, NoConstraintViolation):
            return result
        if cls.key_for(person_id) in instances:
            return UniquenessViolation(
                f"The person ID is already used by another {cls.record_label} record!"
            )
        return NoConstraintViolation()

    @staticmethod
    def check_name(name: Any) -> ValidationResult:
        return check_mandatory_string(
            name,
            "A name must be provided!",
            "The name must be a non-empty string!",
        )

    # ================================================================
    # SETTERS
    # ================================================================

    def set_person_id(self, person_id: Any, instances: Mapping[str, "Person"]) -> None:
        enforce(self.check_person_id_as_id(person_id, instances))
        self.person_id = parse_integer(person_id)

    def set_name(self, name: Any) -> None:
        enforce(self.check_name(name))
        self.name = name

    def to_slots(self) -> dict[str, Any]:
        return {"personId": self.person_id, "name": self.name}

    def __str__(self) -> str:
        return f"Person{{ persID: {self.person_id}, name: {self.name} }}"


class Employee(Person):
    """
    An employee. Setter order: personId, name, empNo, subtype, department.
    """

    record_label = "employee"

    def __init__(
        self,
        slots: Optional[Mapping[str, Any]] = None,
        instances: Optional[Mapping[str, "Employee"]] = None,
    ):
        super().__init__(slots, instances)
        self.emp_no = 0
        self.subtype: Optional[EmployeeType] = None
        self._subtype_claimed = False
        self.department: Optional[str] = None

        if slots is not None:
            self.set_emp_no(slots.get("empNo"), instances or {})
            self.set_subtype(slots.get("subtype"))
            self.set_department(slots.get("department"))

    @staticmethod
    def check_emp_no(
        emp_no: Any,
        instances: Optional[Mapping[str, "Employee"]] = None,
        own_key: str = "",
    ) -> ValidationResult:
        """
        Employee numbers are positive integers, unique among the
        employees in `instances` other than the one keyed `own_key`.
        """
        if is_absent(emp_no):
            return MandatoryValueViolation("A value for the employee number is required!")
        n = parse_integer(emp_no)
        if n is None or n < 1:
            return RangeViolation("The employee number must be a positive integer!")
        if instances:
            for key, other in instances.items():
                if key != own_key and other.emp_no == n:
                    return UniquenessViolation(
                        "There is already an employee record with this employee number!"
                    )
        return NoConstraintViolation()

    @staticmethod
    def check_subtype(subtype: Any) -> ValidationResult:
        return check_enum_code(
            subtype, EmployeeType, "The value of subtype must represent an employee type!"
        )

    @staticmethod
    def check_department(department: Any, subtype: Optional[EmployeeType]) -> ValidationResult:
        """`subtype=None` means the employee has no subtype."""
        return check_segment_attribute(
            department,
            subtype,
            EmployeeType.MANAGER,
            "A department must be provided for a manager!",
            "A department must not be provided if the employee is not a manager!",
            "The department must be a non-empty string!",
        )

    def set_emp_no(self, emp_no: Any, instances: Mapping[str, "Employee"]) -> None:
        enforce(self.check_emp_no(emp_no, instances, self.key))
        self.emp_no = parse_integer(emp_no)

    def set_subtype(self, subtype: Any) -> None:
        if self._subtype_claimed:
            raise FrozenValueViolation("The subtype cannot be changed!")
        self._subtype_claimed = not is_absent(subtype) and subtype != 0
        enforce(self.check_subtype(subtype))
        self.subtype = EmployeeType.from_code(parse_integer(subtype))

    def set_department(self, department: Any) -> None:
        enforce(self.check_department(department, self.subtype))
        self.department = absent_to_none(department)

    @property
    def segment(self) -> Optional[Manager]:
        """Manager payload of the committed state, or None for other employees."""
        if self.subtype == EmployeeType.MANAGER:
            return Manager(department=self.department)
        return None

    def to_slots(self) -> dict[str, Any]:
        slots = super().to_slots()
        slots.update({
            "empNo": self.emp_no,
            "subtype": int(self.subtype) if self.subtype is not None else None,
            "department": self.department,
        })
        return slots

    def __str__(self) -> str:
        text = f"Employee{{ persID: {self.person_id}, name: {self.name}, empNo: {self.emp_no}"
        segment = self.segment
        if segment is not None:
            text += f", manager of department: {segment.department}"
        return text + " }"


class Author(Person):
    """
    An author. Setter order: personId, name, biography.
    """

    record_label = "author"

    def __init__(
        self,
        slots: Optional[Mapping[str, Any]] = None,
        instances: Optional[Mapping[str, "Author"]] = None,
    ):
        super().__init__(slots, instances)
        self.biography = ""

        if slots is not None:
            self.set_biography(slots.get("biography"))

    @staticmethod
    def check_biography(biography: Any) -> ValidationResult:
        return check_mandatory_string(
            biography,
            "A biography must be provided!",
            "The biography must be a non-empty string!",
        )

    def set_biography(self, biography: Any) -> None:
        enforce(self.check_biography(biography))
        self.biography = biography

    def to_slots(self) -> dict[str, Any]:
        slots = super().to_slots()
        slots["biography"] = self.biography
        return slots

    def __str__(self) -> str:
        return f"Author{{ persID: {self.person_id}, name: {self.name} }}"


# ============================================================
# REGISTRIES
# ============================================================

P = TypeVar("P", bound=Person)


class PersonRegistry(RowTable[Person]):
    """
    The `persons` supertype table.

    Loading gives the person rows subtype registries join against.
    Saving derives the table from the registered subtype registries,
    which agree on the person fields of every key they share.
    """

    entity_name = "person"
    slot = "persons"
    row_model = PersonRow
    entity_class = Person

    def __init__(self, storage: KeyValueStore):
        super().__init__(storage)
        self._subtypes: list["PersonSubtypeRegistry"] = []

    def register_subtype(self, registry: "PersonSubtypeRegistry") -> None:
        self._subtypes.append(registry)

    @property
    def subtypes(self) -> list["PersonSubtypeRegistry"]:
        return list(self._subtypes)

    def person_part(self, key: str, exclude: Optional["PersonSubtypeRegistry"] = None) -> Optional[Person]:
        """The live entity holding person `key` in any subtype registry but `exclude`."""
        for registry in self._subtypes:
            if registry is exclude:
                continue
            entity = registry.instances.get(key)
            if entity is not None:
                return entity
        return None

    def construct(self, slots: Mapping[str, Any], instances: Mapping[str, Person]) -> Person:
        return Person(slots, instances)

    def save_all(self) -> int:
        """Write the union of the person parts of all subtype populations."""
        with operation_context(self.entity_name, "save"):
            table: Table = {}
            for registry in self._subtypes:
                for key, entity in registry.instances.items():
                    if key not in table:
                        table[key] = Person.to_slots(entity)
            self.storage.write(self.slot, table)
            logger.info(f"{len(table)} {self.slot} saved.")
            return len(table)


class PersonSubtypeRegistry(EntityRegistry[P]):
    """
    A registry of one Person subtype, stored without the person fields.
    """

    def __init__(self, storage: KeyValueStore, persons: PersonRegistry):
        super().__init__(storage)
        self.persons = persons
        persons.register_subtype(self)

    def _rows_to_load(self, table: Table, report: LoadReport) -> dict[str, Mapping[str, Any]]:
        self.persons.load_all()
        rows = {}
        for key, row in table.items():
            person = self.persons.instances.get(key)
            if person is None:
                reason = (
                    f"No row in {self.persons.slot} for {self.entity_name} "
                    f"with person ID {key}"
                )
                report.skipped[key] = reason
                logger.warning(reason, key=key)
                continue
            rows[key] = join_person(row, person.to_slots()) if isinstance(row, Mapping) else row
        return rows

    def _parse_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        person, own = split_person(row)
        slots = self.row_model.model_validate(own).model_dump(by_alias=True)
        slots.update(person)
        return slots

    def row_for_storage(self, entity: P) -> dict[str, Any]:
        _, own = split_person(self.convert_obj_to_row(entity))
        return own

    def check_new_entity(self, entity: P) -> ValidationResult:
        """A person held by another subtype must keep the name already recorded."""
        existing = self.persons.person_part(entity.key, exclude=self)
        if existing is not None and existing.name != entity.name:
            return OtherViolation(
                f"Person {entity.key} is already recorded with the name {existing.name!r}!"
            )
        return NoConstraintViolation()

    def commit_update(self, key: str, entity: P, changed: list[str]) -> None:
        super().commit_update(key, entity, changed)
        if "name" in changed:
            self._share_name(entity)

    def _share_name(self, person: P) -> None:
        """Carry a renamed person over to every other subtype holding it."""
        for registry in self.persons.subtypes:
            other = registry.instances.get(person.key)
            if registry is self or other is None or other.name == person.name:
                continue
            renamed = copy.deepcopy(other)
            renamed.set_name(person.name)
            registry.instances[person.key] = renamed
            logger.info(
                f"Property name modified for {registry.entity_name} {person.key}",
                key=person.key,
            )
        if person.key in self.persons.instances:
            self.persons.instances[person.key] = Person(Person.to_slots(person))

    def _apply_name(self, person: Person, slots: Mapping[str, Any], changed: list[str]) -> None:
        if "name" in slots and slots["name"] != person.name:
            person.set_name(slots["name"])
            changed.append("name")


class EmployeeRegistry(PersonSubtypeRegistry[Employee]):
    """The population of employees, stored in the `employees` slot."""

    entity_name = "employee"
    slot = "employees"
    row_model = EmployeeRow
    entity_class = Employee

    def construct(self, slots: Mapping[str, Any], instances: Mapping[str, Employee]) -> Employee:
        return Employee(slots, instances)

    def check_person_id_as_id(self, person_id: Any) -> ValidationResult:
        return Employee.check_person_id_as_id(person_id, self.instances)

    def apply_update(self, employee: Employee, slots: Mapping[str, Any]) -> list[str]:
        changed: list[str] = []
        self._apply_name(employee, slots, changed)

        if "empNo" in slots and parse_integer(slots["empNo"]) != employee.emp_no:
            employee.set_emp_no(slots["empNo"], self.instances)
            changed.append("empNo")

        subtype_assigned = False
        if "subtype" in slots and not same_code(slots["subtype"], employee.subtype):
            employee.set_subtype(slots["subtype"])
            changed.append("subtype")
            subtype_assigned = True

        before = employee.department
        if subtype_assigned or (
            "department" in slots and absent_to_none(slots["department"]) != before
        ):
            employee.set_department(slots.get("department"))
            if employee.department != before:
                changed.append("department")

        return changed


class AuthorRegistry(PersonSubtypeRegistry[Author]):
    """The population of authors, stored in the `authors` slot."""

    entity_name = "author"
    slot = "authors"
    row_model = AuthorRow
    entity_class = Author

    def construct(self, slots: Mapping[str, Any], instances: Mapping[str, Author]) -> Author:
        return Author(slots, instances)

    def check_person_id_as_id(self, person_id: Any) -> ValidationResult:
        return Author.check_person_id_as_id(person_id, self.instances)

    def apply_update(self, author: Author, slots: Mapping[str, Any]) -> list[str]:
        changed: list[str] = []
        self._apply_name(author, slots, changed)

        if "biography" in slots and slots["biography"] != author.biography:
            author.set_biography(slots["biography"])
            changed.append("biography")

        return changed
