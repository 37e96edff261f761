"""
Attribute Rules

Stateless building blocks shared by every entity's check functions.
Each rule takes a candidate value (plus context where needed) and
returns a ValidationResult; none of them looks at object state.

ABSENCE:
A value is absent when it is None or the empty string. Form fields
arrive as strings, so "" is the normal way a user leaves a field blank.
"""

import re
from datetime import date
from enum import IntEnum
from typing import Any, Optional

from .violations import (
    MandatoryValueViolation,
    NoConstraintViolation,
    OtherViolation,
    RangeViolation,
    ValidationResult,
)


_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


def is_absent(value: Any) -> bool:
    return value is None or value == ""


def parse_integer(value: Any) -> Optional[int]:
    """
    Interpret a slot value as an integer.

    Accepts ints, integral floats and decimal strings ("2014", " 7 ").
    Returns None for anything else, including booleans.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    return None


def next_year() -> int:
    return date.today().year + 1


def check_mandatory_string(
    value: Any,
    mandatory_message: str,
    range_message: str,
) -> ValidationResult:
    if is_absent(value):
        return MandatoryValueViolation(mandatory_message)
    if not isinstance(value, str) or value.strip() == "":
        return RangeViolation(range_message)
    return NoConstraintViolation()


def check_optional_string(value: Any, range_message: str) -> ValidationResult:
    if is_absent(value):
        return NoConstraintViolation()
    if not isinstance(value, str) or value.strip() == "":
        return RangeViolation(range_message)
    return NoConstraintViolation()


def check_enum_code(
    value: Any,
    enumeration: type[IntEnum],
    range_message: str,
) -> ValidationResult:
    """
    Check that a value is a code of the given enumeration.

    0 and absent values mean "no code assigned" and are admissible.
    Valid codes are the contiguous range [1, MAX].
    """
    if is_absent(value) or value == 0:
        return NoConstraintViolation()
    code = parse_integer(value)
    if code is None or code < 1 or code > enumeration.max_code():
        return RangeViolation(range_message)
    return NoConstraintViolation()


def check_segment_attribute(
    value: Any,
    subtype: Optional[IntEnum],
    owner: IntEnum,
    mandatory_message: str,
    other_message: str,
    range_message: str,
) -> ValidationResult:
    """
    Check an attribute that belongs to exactly one subtype segment.

    The attribute is required when `subtype` equals `owner` and forbidden
    otherwise. `subtype=None` means the entity has no subtype.
    """
    if subtype == owner and is_absent(value):
        return MandatoryValueViolation(mandatory_message)
    if subtype != owner and not is_absent(value):
        return OtherViolation(other_message)
    if not is_absent(value) and (not isinstance(value, str) or value.strip() == ""):
        return RangeViolation(range_message)
    return NoConstraintViolation()


def absent_to_none(value: Any) -> Any:
    return None if is_absent(value) else value


def same_code(value: Any, current: Optional[IntEnum]) -> bool:
    """True if a slot value denotes the code already assigned (0 = none)."""
    code = 0 if is_absent(value) else parse_integer(value)
    return code == (int(current) if current is not None else 0)
