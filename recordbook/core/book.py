"""
Book Entity

Books form an incomplete disjoint segmentation {Textbook, Biography},
stored with the Single Table Inheritance pattern: one `books` table,
a `subtype` discriminator, and the segment attributes as optional
fields.

SEGMENT RULES:
- subtype TEXTBOOK:  subjectArea required, about forbidden
- subtype BIOGRAPHY: about required, subjectArea forbidden
- no subtype:        both forbidden
- subtype is write-once
"""

import re
from typing import Any, Mapping, Optional

from ..schemas import Biography, BookRow, BookSegment, BookType, Textbook, book_segment
from .registry import Entity, EntityRegistry
from .rules import (
    absent_to_none,
    check_enum_code,
    check_mandatory_string,
    check_segment_attribute,
    is_absent,
    next_year,
    parse_integer,
    same_code,
)
from .violations import (
    FrozenValueViolation,
    IntervalViolation,
    MandatoryValueViolation,
    NoConstraintViolation,
    PatternViolation,
    RangeViolation,
    UniquenessViolation,
    ValidationResult,
    enforce,
)


ISBN_PATTERN = re.compile(r"\d{9}(\d|X)")
EARLIEST_YEAR = 1459


class Book(Entity):
    """
    A book record.

    Construct with slots to run every setter in dependency order:
    isbn, title, year, subtype, then both segment attributes.
    Any violation aborts construction.
    """

    key_slot = "isbn"

    def __init__(
        self,
        slots: Optional[Mapping[str, Any]] = None,
        instances: Optional[Mapping[str, "Book"]] = None,
    ):
        self.isbn = ""
        self.title = ""
        self.year = 0
        self.subtype: Optional[BookType] = None
        self._subtype_claimed = False
        self.subject_area: Optional[str] = None
        self.about: Optional[str] = None

        if slots is not None:
            self.set_isbn(slots.get("isbn"), instances or {})
            self.set_title(slots.get("title"))
            self.set_year(slots.get("year"))
            self.set_subtype(slots.get("subtype"))
            self.set_subject_area(slots.get("subjectArea"))
            self.set_about(slots.get("about"))

    # ================================================================
    # CHECKS
    # Stateless; also used for live validation of form fields
    # ================================================================

    @staticmethod
    def check_isbn(isbn: Any) -> ValidationResult:
        """Syntax-only check: an empty ISBN passes."""
        if is_absent(isbn):
            return NoConstraintViolation()
        if not isinstance(isbn, str) or isbn.strip() == "":
            return RangeViolation("The ISBN must be a non-empty string!")
        if not ISBN_PATTERN.fullmatch(isbn):
            return PatternViolation(
                "The ISBN must be a 10-digit string or a 9-digit string followed by 'X'!"
            )
        return NoConstraintViolation()

    @staticmethod
    def check_isbn_as_id(isbn: Any, instances: Mapping[str, "Book"]) -> ValidationResult:
        result = Book.check_isbn(isbn)
        if not isinstance(result, NoConstraintViolation):
            return result
        if is_absent(isbn):
            return MandatoryValueViolation("A value for the ISBN must be provided!")
        if isbn in instances:
            return UniquenessViolation("There is already a book record with this ISBN!")
        return NoConstraintViolation()

    @staticmethod
    def check_title(title: Any) -> ValidationResult:
        return check_mandatory_string(
            title,
            "A title must be provided!",
            "The title must be a non-empty string!",
        )

    @staticmethod
    def check_year(year: Any) -> ValidationResult:
        if is_absent(year) or year == 0:
            return MandatoryValueViolation("A publication year must be provided!")
        y = parse_integer(year)
        if y is None:
            return RangeViolation("The value of year must be an integer!")
        if y < EARLIEST_YEAR or y > next_year():
            return IntervalViolation(
                f"The value of year must be between {EARLIEST_YEAR} and next year!"
            )
        return NoConstraintViolation()

    @staticmethod
    def check_subtype(subtype: Any) -> ValidationResult:
        return check_enum_code(
            subtype, BookType, "The value of subtype must represent a book subtype!"
        )

    @staticmethod
    def check_subject_area(subject_area: Any, subtype: Optional[BookType]) -> ValidationResult:
        """`subtype=None` means the book has no subtype."""
        return check_segment_attribute(
            subject_area,
            subtype,
            BookType.TEXTBOOK,
            "A subject area must be provided for a textbook!",
            "A subject area must not be provided if the book is not a textbook!",
            "The subject area must be a non-empty string!",
        )

    @staticmethod
    def check_about(about: Any, subtype: Optional[BookType]) -> ValidationResult:
        """`subtype=None` means the book has no subtype."""
        return check_segment_attribute(
            about,
            subtype,
            BookType.BIOGRAPHY,
            "A biography subject must be provided for a biography!",
            "A biography subject must not be provided if the book is not a biography!",
            "The biography subject's name must be a non-empty string!",
        )

    # ================================================================
    # SETTERS
    # Each either commits the value or raises the violation
    # ================================================================

    def set_isbn(self, isbn: Any, instances: Mapping[str, "Book"]) -> None:
        enforce(self.check_isbn_as_id(isbn, instances))
        self.isbn = isbn

    def set_title(self, title: Any) -> None:
        enforce(self.check_title(title))
        self.title = title

    def set_year(self, year: Any) -> None:
        enforce(self.check_year(year))
        self.year = parse_integer(year)

    def set_subtype(self, subtype: Any) -> None:
        """Write-once: any non-empty value claims the subtype, valid or not."""
        if self._subtype_claimed:
            raise FrozenValueViolation("The subtype cannot be changed!")
        self._subtype_claimed = not is_absent(subtype) and subtype != 0
        enforce(self.check_subtype(subtype))
        self.subtype = BookType.from_code(parse_integer(subtype))

    def set_subject_area(self, subject_area: Any) -> None:
        enforce(self.check_subject_area(subject_area, self.subtype))
        self.subject_area = absent_to_none(subject_area)

    def set_about(self, about: Any) -> None:
        enforce(self.check_about(about, self.subtype))
        self.about = absent_to_none(about)

    # ================================================================
    # VIEWS
    # ================================================================

    @property
    def segment(self) -> Optional[BookSegment]:
        """
        Typed segment payload of the committed state: Textbook,
        Biography, or None for a book without subtype.
        """
        return book_segment(self.subtype, self.subject_area, self.about)

    def to_slots(self) -> dict[str, Any]:
        return {
            "isbn": self.isbn,
            "title": self.title,
            "year": self.year,
            "subtype": int(self.subtype) if self.subtype is not None else None,
            "subjectArea": self.subject_area,
            "about": self.about,
        }

    def __str__(self) -> str:
        text = f"Book{{ ISBN: {self.isbn}, title: {self.title}, year: {self.year}"
        segment = self.segment
        if isinstance(segment, Textbook):
            text += f", textbook subject area: {segment.subject_area}"
        elif isinstance(segment, Biography):
            text += f", biography about: {segment.about}"
        return text + " }"


class BookRegistry(EntityRegistry[Book]):
    """The population of books, stored in the `books` slot."""

    entity_name = "book"
    slot = "books"
    row_model = BookRow
    entity_class = Book

    def construct(self, slots: Mapping[str, Any], instances: Mapping[str, Book]) -> Book:
        return Book(slots, instances)

    def check_isbn_as_id(self, isbn: Any) -> ValidationResult:
        return Book.check_isbn_as_id(isbn, self.instances)

    def apply_update(self, book: Book, slots: Mapping[str, Any]) -> list[str]:
        changed = []

        if "title" in slots and slots["title"] != book.title:
            book.set_title(slots["title"])
            changed.append("title")

        if "year" in slots and parse_integer(slots["year"]) != book.year:
            book.set_year(slots["year"])
            changed.append("year")

        subtype_assigned = False
        if "subtype" in slots and not same_code(slots["subtype"], book.subtype):
            book.set_subtype(slots["subtype"])
            changed.append("subtype")
            subtype_assigned = True

        # A newly assigned subtype re-checks both segment attributes
        for slot, attr, setter in (
            ("subjectArea", "subject_area", book.set_subject_area),
            ("about", "about", book.set_about),
        ):
            before = getattr(book, attr)
            if subtype_assigned or (
                slot in slots and absent_to_none(slots[slot]) != before
            ):
                setter(slots.get(slot))
                if getattr(book, attr) != before:
                    changed.append(slot)

        return changed
