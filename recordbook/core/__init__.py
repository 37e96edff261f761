# Core entity model: constraint checks, setters, registries
from .violations import (
    ValidationResult,
    NoConstraintViolation,
    ConstraintViolation,
    MandatoryValueViolation,
    RangeViolation,
    PatternViolation,
    IntervalViolation,
    UniquenessViolation,
    FrozenValueViolation,
    OtherViolation,
    enforce,
)
from .registry import (
    Entity,
    EntityRegistry,
    RowTable,
    OperationResult,
    OperationStatus,
    LoadReport,
    RegistryError,
    RecordNotFoundError,
)
from .book import Book, BookRegistry
from .person import (
    Person,
    Employee,
    Author,
    PersonRegistry,
    EmployeeRegistry,
    AuthorRegistry,
)
from .movie import Movie, MovieRegistry

__all__ = [
    # Violations
    "ValidationResult",
    "NoConstraintViolation",
    "ConstraintViolation",
    "MandatoryValueViolation",
    "RangeViolation",
    "PatternViolation",
    "IntervalViolation",
    "UniquenessViolation",
    "FrozenValueViolation",
    "OtherViolation",
    "enforce",
    # Registries
    "Entity",
    "EntityRegistry",
    "RowTable",
    "OperationResult",
    "OperationStatus",
    "LoadReport",
    "RegistryError",
    "RecordNotFoundError",
    # Entities
    "Book",
    "BookRegistry",
    "Person",
    "Employee",
    "Author",
    "PersonRegistry",
    "EmployeeRegistry",
    "AuthorRegistry",
    "Movie",
    "MovieRegistry",
]
