"""
Tests for violations, attribute rules and subtype enumerations.
"""

import pytest

from recordbook.core import (
    ConstraintViolation,
    FrozenValueViolation,
    MandatoryValueViolation,
    NoConstraintViolation,
    OtherViolation,
    RangeViolation,
    ValidationResult,
    enforce,
)
from recordbook.core.rules import (
    absent_to_none,
    check_enum_code,
    check_mandatory_string,
    check_optional_string,
    check_segment_attribute,
    is_absent,
    parse_integer,
    same_code,
)
from recordbook.schemas import BookType, EmployeeType


class TestViolations:
    """Violations are values for checks and exceptions for setters."""

    def test_violation_is_result_and_exception(self):
        """A violation is a result and an exception."""
        v = RangeViolation("bad")
        assert isinstance(v, ValidationResult)
        assert isinstance(v, Exception)
        assert v.message == "bad"
        assert str(v) == "bad"

    def test_no_violation_is_not_an_exception(self):
        """Success is a result only."""
        ok = NoConstraintViolation()
        assert isinstance(ok, ValidationResult)
        assert not isinstance(ok, Exception)

    def test_enforce_raises_violation(self):
        """enforce raises a violation."""
        with pytest.raises(FrozenValueViolation, match="cannot be changed"):
            enforce(FrozenValueViolation("The subtype cannot be changed!"))

    def test_enforce_passes_no_violation(self):
        """enforce lets success through."""
        enforce(NoConstraintViolation())

    def test_all_variants_share_base(self):
        """Every variant derives from ConstraintViolation."""
        for cls in (MandatoryValueViolation, RangeViolation, OtherViolation, FrozenValueViolation):
            assert issubclass(cls, ConstraintViolation)


class TestRules:
    """Stateless attribute rules."""

    def test_absence(self):
        """None and the empty string are absent."""
        assert is_absent(None)
        assert is_absent("")
        assert not is_absent(0)
        assert not is_absent(" ")
        assert absent_to_none("") is None
        assert absent_to_none("x") == "x"

    def test_parse_integer(self):
        """Integers, integral floats and decimal strings parse."""
        assert parse_integer(2014) == 2014
        assert parse_integer("2014") == 2014
        assert parse_integer(" 7 ") == 7
        assert parse_integer(3.0) == 3
        assert parse_integer(3.5) is None
        assert parse_integer("20x4") is None
        assert parse_integer(True) is None
        assert parse_integer(None) is None

    def test_mandatory_string(self):
        """Missing is mandatory, blank or non-string is range."""
        assert isinstance(check_mandatory_string("", "m", "r"), MandatoryValueViolation)
        assert isinstance(check_mandatory_string(None, "m", "r"), MandatoryValueViolation)
        assert isinstance(check_mandatory_string("   ", "m", "r"), RangeViolation)
        assert isinstance(check_mandatory_string(42, "m", "r"), RangeViolation)
        assert isinstance(check_mandatory_string("ok", "m", "r"), NoConstraintViolation)

    def test_optional_string(self):
        """Optional strings may be absent but not malformed."""
        assert isinstance(check_optional_string(None, "r"), NoConstraintViolation)
        assert isinstance(check_optional_string("", "r"), NoConstraintViolation)
        assert isinstance(check_optional_string(5, "r"), RangeViolation)

    def test_enum_code_range(self):
        """Codes must lie in 1..MAX; 0 means none."""
        assert isinstance(check_enum_code(None, BookType, "r"), NoConstraintViolation)
        assert isinstance(check_enum_code(0, BookType, "r"), NoConstraintViolation)
        assert isinstance(check_enum_code(1, BookType, "r"), NoConstraintViolation)
        assert isinstance(check_enum_code("2", BookType, "r"), NoConstraintViolation)
        assert isinstance(check_enum_code(3, BookType, "r"), RangeViolation)
        assert isinstance(check_enum_code(-1, BookType, "r"), RangeViolation)
        assert isinstance(check_enum_code("x", BookType, "r"), RangeViolation)
        assert isinstance(check_enum_code(2, EmployeeType, "r"), RangeViolation)

    def test_segment_attribute(self):
        """Segment attributes follow the owning subtype."""
        owner = BookType.TEXTBOOK
        assert isinstance(
            check_segment_attribute("Math", owner, owner, "m", "o", "r"), NoConstraintViolation
        )
        assert isinstance(
            check_segment_attribute(None, owner, owner, "m", "o", "r"), MandatoryValueViolation
        )
        assert isinstance(
            check_segment_attribute("Math", BookType.BIOGRAPHY, owner, "m", "o", "r"), OtherViolation
        )
        assert isinstance(
            check_segment_attribute("Math", None, owner, "m", "o", "r"), OtherViolation
        )
        assert isinstance(
            check_segment_attribute(None, None, owner, "m", "o", "r"), NoConstraintViolation
        )
        assert isinstance(
            check_segment_attribute(7, owner, owner, "m", "o", "r"), RangeViolation
        )

    def test_same_code(self):
        """Slot values compare against the assigned code."""
        assert same_code(None, None)
        assert same_code("", None)
        assert same_code(0, None)
        assert same_code("1", BookType.TEXTBOOK)
        assert not same_code(2, BookType.TEXTBOOK)
        assert not same_code(0, BookType.TEXTBOOK)


class TestEnumerations:
    """Closed code sets per subtype dimension."""

    def test_max_code(self):
        """MAX is the highest code."""
        assert BookType.max_code() == 2
        assert EmployeeType.max_code() == 1

    def test_labels(self):
        """Labels are title-cased names in code order."""
        assert BookType.labels() == ["Textbook", "Biography"]
        assert EmployeeType.labels() == ["Manager"]
        assert BookType.BIOGRAPHY.label == "Biography"

    def test_from_code(self):
        """Stored codes map to members; empty maps to None."""
        assert BookType.from_code(0) is None
        assert BookType.from_code(None) is None
        assert BookType.from_code("") is None
        assert BookType.from_code(2) is BookType.BIOGRAPHY
        with pytest.raises(ValueError):
            BookType.from_code(9)
