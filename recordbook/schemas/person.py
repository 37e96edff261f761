"""
Canonical Person Schemas

Persons are stored with segmented single-table inheritance:
- `persons` holds the supertype-owned fields (personId, name)
- `employees` and `authors` hold only their own fields, keyed by personId

A subtype row is meaningless without its supertype row; the two are
joined on load and split on save.
"""

from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enumeration import SubtypeEnum


# Fields owned by the Person supertype, stripped from subtype rows
PERSON_FIELDS = ("personId", "name")


class EmployeeType(SubtypeEnum):
    """
    Employee segmentation (incomplete).
    """
    MANAGER = 1


class Manager(BaseModel):
    """Segment payload of a manager."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["manager"] = "manager"
    department: str = Field(
        ...,
        min_length=1,
        description="Department the manager is in charge of",
    )


class PersonRow(BaseModel):
    """Flat storage row of the `persons` slot."""
    model_config = ConfigDict(populate_by_name=True)

    person_id: int = Field(..., alias="personId", gt=0)
    name: str = Field(..., description="Full name")


class EmployeeRow(BaseModel):
    """
    Flat storage row of the `employees` slot.

    Carries subtype-owned fields only.
    """
    model_config = ConfigDict(populate_by_name=True)

    emp_no: int = Field(..., alias="empNo", description="Employee number")
    subtype: Optional[EmployeeType] = Field(
        default=None,
        description="Discriminator code from EmployeeType",
    )
    department: Optional[str] = None

    @field_validator("subtype", mode="before")
    @classmethod
    def unassigned_subtype(cls, v):
        return None if v in (None, "", 0) else v

    @model_validator(mode="after")
    def department_only_for_managers(self) -> "EmployeeRow":
        if self.department is not None and self.subtype != EmployeeType.MANAGER:
            raise ValueError("department is only stored for managers")
        return self


class AuthorRow(BaseModel):
    """
    Flat storage row of the `authors` slot.

    Carries subtype-owned fields only.
    """
    biography: str = Field(..., description="Short biography")


def join_person(subtype_row: Mapping[str, Any], person_row: Mapping[str, Any]) -> dict[str, Any]:
    """Complete a subtype row with the supertype-owned fields of its person row."""
    joined = {k: v for k, v in subtype_row.items() if k not in PERSON_FIELDS}
    joined.update((k, person_row[k]) for k in PERSON_FIELDS if k in person_row)
    return joined


def split_person(row: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split a full row into (supertype part, subtype part)."""
    person = {k: v for k, v in row.items() if k in PERSON_FIELDS}
    own = {k: v for k, v in row.items() if k not in PERSON_FIELDS}
    return person, own
