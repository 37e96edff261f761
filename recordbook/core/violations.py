"""
Constraint Violations

Every attribute check produces exactly one ValidationResult.
NoConstraintViolation means the value is admissible; every other
variant names the kind of rule that was broken and carries a
human-readable message.

Violations are also exceptions: checks RETURN them, setters RAISE them.
"""


class ValidationResult:
    """Outcome of a single attribute check."""

    def __init__(self, message: str = ""):
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class NoConstraintViolation(ValidationResult):
    """The checked value is admissible."""
    pass


class ConstraintViolation(ValidationResult, Exception):
    """Base for all violation variants."""

    def __init__(self, message: str):
        ValidationResult.__init__(self, message)
        Exception.__init__(self, message)

    def __str__(self) -> str:
        return self.message


class MandatoryValueViolation(ConstraintViolation):
    """A required value is missing."""
    pass


class RangeViolation(ConstraintViolation):
    """A value is present but of the wrong kind."""
    pass


class PatternViolation(ConstraintViolation):
    """A string does not match its required pattern."""
    pass


class IntervalViolation(ConstraintViolation):
    """A number lies outside its allowed interval."""
    pass


class UniquenessViolation(ConstraintViolation):
    """A value that must be unique is already taken."""
    pass


class FrozenValueViolation(ConstraintViolation):
    """A write-once value was already assigned."""
    pass


class OtherViolation(ConstraintViolation):
    """Any other rule, e.g. an attribute forbidden for the current subtype."""
    pass


def enforce(result: ValidationResult) -> None:
    """Raise the result if it is a violation."""
    if isinstance(result, ConstraintViolation):
        raise result
