# Canonical Schemas for the Record Book
# These define the persisted layout and the subtype segments.

from .enumeration import SubtypeEnum
from .book import (
    BookType,
    BookRow,
    BookSegment,
    Biography,
    Textbook,
    book_segment,
)
from .person import (
    PERSON_FIELDS,
    AuthorRow,
    EmployeeRow,
    EmployeeType,
    Manager,
    PersonRow,
    join_person,
    split_person,
)
from .movie import MovieRow

__all__ = [
    "SubtypeEnum",
    # Book
    "BookType",
    "BookRow",
    "BookSegment",
    "Biography",
    "Textbook",
    "book_segment",
    # Person
    "PERSON_FIELDS",
    "AuthorRow",
    "EmployeeRow",
    "EmployeeType",
    "Manager",
    "PersonRow",
    "join_person",
    "split_person",
    # Movie
    "MovieRow",
]
