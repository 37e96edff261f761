"""
Tests for the Book entity and its registry.

Covers:
1. Attribute checks (ISBN, year, segment attributes)
2. Full-record construction and segment exclusivity
3. Write-once discriminator
4. create / update / destroy outcomes, including update rollback
5. Row mapping and bulk load/save
"""

import pytest

from recordbook.core import (
    Book,
    BookRegistry,
    FrozenValueViolation,
    IntervalViolation,
    MandatoryValueViolation,
    NoConstraintViolation,
    OperationStatus,
    OtherViolation,
    PatternViolation,
    RangeViolation,
    RecordNotFoundError,
    UniquenessViolation,
)
from recordbook.core.rules import next_year
from recordbook.db import InMemoryKeyValueStore
from recordbook.schemas import Biography, BookType, Textbook


CORE_SERVLETS = {
    "isbn": "0136019701",
    "title": "Core Servlets",
    "year": 2014,
    "subtype": 1,
    "subjectArea": "Web development",
}

WEAVING_THE_WEB = {"isbn": "006251587X", "title": "Weaving the Web", "year": 2000}


class TestBookChecks:
    """Stateless checks used both at commit time and for live form input."""

    @pytest.mark.parametrize("isbn", ["", None, "0136019701", "006251587X"])
    def test_isbn_accepted(self, isbn):
        """Empty ISBNs and well-formed ISBN-10 strings pass the syntax check."""
        assert isinstance(Book.check_isbn(isbn), NoConstraintViolation)

    @pytest.mark.parametrize("isbn", ["12345", "006251587x", "01360197011", "X136019701"])
    def test_isbn_pattern(self, isbn):
        """Strings not matching nine digits plus a digit or X are rejected."""
        assert isinstance(Book.check_isbn(isbn), PatternViolation)

    def test_isbn_not_a_string(self):
        """A numeric ISBN is a range violation."""
        assert isinstance(Book.check_isbn(136019701), RangeViolation)

    def test_isbn_as_id(self):
        """The identity check adds mandatory and uniqueness rules."""
        existing = {"0136019701": Book(CORE_SERVLETS)}
        assert isinstance(Book.check_isbn_as_id("", existing), MandatoryValueViolation)
        assert isinstance(Book.check_isbn_as_id("0136019701", existing), UniquenessViolation)
        assert isinstance(Book.check_isbn_as_id("12", existing), PatternViolation)
        assert isinstance(Book.check_isbn_as_id("006251587X", existing), NoConstraintViolation)

    def test_year_bounds(self):
        """Years must lie between 1459 and next year."""
        assert isinstance(Book.check_year(1458), IntervalViolation)
        assert isinstance(Book.check_year(1459), NoConstraintViolation)
        assert isinstance(Book.check_year(next_year()), NoConstraintViolation)
        assert isinstance(Book.check_year(next_year() + 1), IntervalViolation)
        assert isinstance(Book.check_year("2014"), NoConstraintViolation)

    def test_year_mandatory_and_range(self):
        """Missing years are mandatory violations, non-numbers range violations."""
        assert isinstance(Book.check_year(None), MandatoryValueViolation)
        assert isinstance(Book.check_year(""), MandatoryValueViolation)
        assert isinstance(Book.check_year(0), MandatoryValueViolation)
        assert isinstance(Book.check_year("MMXIV"), RangeViolation)

    def test_subtype_range(self):
        """Subtype codes are 0 (none) or 1..MAX."""
        assert isinstance(Book.check_subtype(0), NoConstraintViolation)
        assert isinstance(Book.check_subtype(2), NoConstraintViolation)
        assert isinstance(Book.check_subtype(3), RangeViolation)

    def test_subject_area_depends_on_subtype(self):
        """Subject area is required for textbooks and forbidden otherwise."""
        assert isinstance(Book.check_subject_area("Math", BookType.TEXTBOOK), NoConstraintViolation)
        assert isinstance(Book.check_subject_area("", BookType.TEXTBOOK), MandatoryValueViolation)
        assert isinstance(Book.check_subject_area("Math", BookType.BIOGRAPHY), OtherViolation)
        assert isinstance(Book.check_subject_area("", BookType.BIOGRAPHY), NoConstraintViolation)

    def test_no_subtype_forbids_segment_attributes(self):
        """Without a subtype, neither segment attribute may be set."""
        assert isinstance(Book.check_subject_area("Math", None), OtherViolation)
        assert isinstance(Book.check_about("Kant", None), OtherViolation)
        assert isinstance(Book.check_subject_area(None, None), NoConstraintViolation)
        assert isinstance(Book.check_about(None, None), NoConstraintViolation)

    def test_about_depends_on_subtype(self):
        """About is required for biographies and forbidden otherwise."""
        assert isinstance(Book.check_about("Kant", BookType.BIOGRAPHY), NoConstraintViolation)
        assert isinstance(Book.check_about(None, BookType.BIOGRAPHY), MandatoryValueViolation)
        assert isinstance(Book.check_about("Kant", BookType.TEXTBOOK), OtherViolation)


class TestBookConstruction:
    """Full-record construction runs every setter in order."""

    def test_textbook(self):
        """A textbook carries its subject area segment."""
        book = Book(CORE_SERVLETS)
        assert book.subtype is BookType.TEXTBOOK
        assert book.subject_area == "Web development"
        assert book.about is None
        assert book.segment == Textbook(subject_area="Web development")

    def test_biography(self):
        """String codes and years from forms are parsed."""
        book = Book({
            "isbn": "1451648537", "title": "Steve Jobs", "year": "2011",
            "subtype": "2", "about": "Steve Jobs",
        })
        assert book.year == 2011
        assert book.subtype is BookType.BIOGRAPHY
        assert book.segment == Biography(about="Steve Jobs")

    def test_no_subtype(self):
        """A book may have no subtype at all."""
        book = Book(WEAVING_THE_WEB)
        assert book.subtype is None
        assert book.segment is None

    def test_textbook_with_about_is_rejected(self):
        """A textbook cannot carry a biography subject."""
        slots = dict(CORE_SERVLETS, about="Tim Berners-Lee")
        with pytest.raises(OtherViolation):
            Book(slots)

    def test_biography_with_subject_area_is_rejected(self):
        """A biography cannot carry a subject area."""
        slots = {
            "isbn": "1451648537", "title": "Steve Jobs", "year": 2011,
            "subtype": 2, "about": "Steve Jobs", "subjectArea": "Computing",
        }
        with pytest.raises(OtherViolation):
            Book(slots)

    def test_missing_required_segment_attribute(self):
        """The required segment attribute cannot be omitted."""
        slots = {k: v for k, v in CORE_SERVLETS.items() if k != "subjectArea"}
        with pytest.raises(MandatoryValueViolation):
            Book(slots)

    def test_segment_attribute_without_subtype(self):
        """Segment attributes need a subtype."""
        with pytest.raises(OtherViolation):
            Book(dict(WEAVING_THE_WEB, subjectArea="Web"))

    def test_str(self):
        """String form names the segment the book belongs to."""
        assert str(Book(CORE_SERVLETS)) == (
            "Book{ ISBN: 0136019701, title: Core Servlets, year: 2014, "
            "textbook subject area: Web development }"
        )
        assert str(Book(WEAVING_THE_WEB)) == (
            "Book{ ISBN: 006251587X, title: Weaving the Web, year: 2000 }"
        )
        biography = Book({
            "isbn": "1451648537", "title": "Steve Jobs", "year": 2011,
            "subtype": 2, "about": "Steve Jobs",
        })
        assert str(biography) == (
            "Book{ ISBN: 1451648537, title: Steve Jobs, year: 2011, "
            "biography about: Steve Jobs }"
        )


class TestWriteOnceSubtype:
    """The discriminator can be assigned at most once."""

    def test_second_assignment_is_frozen(self):
        """An assigned subtype cannot be reassigned, even to the same value."""
        book = Book(CORE_SERVLETS)
        with pytest.raises(FrozenValueViolation):
            book.set_subtype(2)
        with pytest.raises(FrozenValueViolation):
            book.set_subtype(1)
        assert book.subtype is BookType.TEXTBOOK

    def test_frozen_after_invalid_first_value(self):
        """A rejected first value still claims the subtype."""
        book = Book()
        with pytest.raises(RangeViolation):
            book.set_subtype(7)
        with pytest.raises(FrozenValueViolation):
            book.set_subtype(1)
        assert book.subtype is None

    def test_empty_value_does_not_claim(self):
        """Constructing without a subtype leaves it assignable."""
        book = Book(WEAVING_THE_WEB)
        book.set_subtype(2)
        assert book.subtype is BookType.BIOGRAPHY


class TestBookRegistry:
    """create / update / destroy against an explicit registry."""

    @pytest.fixture
    def store(self):
        return InMemoryKeyValueStore()

    @pytest.fixture
    def books(self, store):
        registry = BookRegistry(store)
        registry.create(CORE_SERVLETS)
        registry.create(WEAVING_THE_WEB)
        return registry

    def test_create(self, store):
        """A valid record is added under its ISBN."""
        registry = BookRegistry(store)
        result = registry.create(CORE_SERVLETS)

        assert result.status == OperationStatus.CREATED
        assert result.ok
        assert result.key == "0136019701"
        assert registry.get("0136019701").subject_area == "Web development"

    def test_create_with_about_instead_of_subject_area(self, store):
        """A failed create leaves the registry empty."""
        registry = BookRegistry(store)
        slots = {k: v for k, v in CORE_SERVLETS.items() if k != "subjectArea"}
        slots["about"] = "x"

        result = registry.create(slots)

        assert result.status == OperationStatus.REJECTED
        assert not result.ok
        assert isinstance(result.violation, MandatoryValueViolation)
        assert len(registry) == 0

    def test_create_duplicate(self, books):
        """A second record with the same ISBN is rejected."""
        result = books.create(dict(CORE_SERVLETS, title="Another"))
        assert result.status == OperationStatus.REJECTED
        assert isinstance(result.violation, UniquenessViolation)
        assert books.get("0136019701").title == "Core Servlets"

    def test_check_isbn_as_id_uses_population(self, books):
        """The registry checks identity against its own population."""
        assert isinstance(books.check_isbn_as_id("0136019701"), UniquenessViolation)
        assert isinstance(books.check_isbn_as_id("0465030793"), NoConstraintViolation)

    def test_update_title(self, books):
        """Changed attributes are reported by slot name."""
        result = books.update({"isbn": "0136019701", "title": "Core Servlets and JSP"})
        assert result.status == OperationStatus.UPDATED
        assert result.changed == ["title"]
        assert books.get("0136019701").title == "Core Servlets and JSP"

    def test_update_nothing_changed(self, books):
        """Equal values, including parsed strings, are a no-op."""
        result = books.update(dict(CORE_SERVLETS, year="2014"))
        assert result.status == OperationStatus.UNCHANGED
        assert result.changed == []

    def test_update_missing_key(self, books):
        """Updating an unknown ISBN raises."""
        with pytest.raises(RecordNotFoundError):
            books.update({"isbn": "0465030793", "title": "I Am A Strange Loop"})

    def test_update_is_all_or_nothing(self, books):
        """A valid title change is rolled back when the year is invalid."""
        before = books.get("0136019701")

        result = books.update({"isbn": "0136019701", "title": "Changed", "year": 1000})

        assert result.status == OperationStatus.REJECTED
        assert isinstance(result.violation, IntervalViolation)
        after = books.get("0136019701")
        assert after is before
        assert after.title == "Core Servlets"
        assert after.year == 2014

    def test_update_subtype_is_frozen(self, books):
        """Changing an assigned subtype is rejected."""
        result = books.update({"isbn": "0136019701", "subtype": 2, "about": "Marty Hall"})
        assert isinstance(result.violation, FrozenValueViolation)
        assert books.get("0136019701").subtype is BookType.TEXTBOOK

    def test_update_clearing_subtype_is_frozen(self, books):
        """Clearing an assigned subtype is rejected."""
        result = books.update({"isbn": "0136019701", "subtype": 0})
        assert isinstance(result.violation, FrozenValueViolation)

    def test_update_same_subtype_is_no_op(self, books):
        """Repeating the current subtype does not trip write-once."""
        result = books.update({"isbn": "0136019701", "subtype": "1", "subjectArea": "Java"})
        assert result.status == OperationStatus.UPDATED
        assert result.changed == ["subjectArea"]

    def test_assign_subtype_requires_segment_attribute(self, books):
        """Assigning a subtype re-checks its required attribute."""
        result = books.update({"isbn": "006251587X", "subtype": 1})
        assert isinstance(result.violation, MandatoryValueViolation)
        assert books.get("006251587X").subtype is None

    def test_assign_subtype_cascades(self, books):
        """Assigning a subtype sets its dependent attribute in the same call."""
        result = books.update({"isbn": "006251587X", "subtype": 2, "about": "The Web"})
        assert result.status == OperationStatus.UPDATED
        assert result.changed == ["subtype", "about"]
        book = books.get("006251587X")
        assert book.subtype is BookType.BIOGRAPHY
        assert book.about == "The Web"

    def test_destroy(self, books):
        """Destroy removes once and reports a missing key after."""
        assert books.destroy("0136019701").status == OperationStatus.DESTROYED
        assert "0136019701" not in books

        again = books.destroy("0136019701")
        assert again.status == OperationStatus.NOT_FOUND
        assert not again.ok
        assert len(books) == 1


class TestBookPersistence:
    """Row mapping and whole-slot load/save."""

    @pytest.fixture
    def store(self):
        return InMemoryKeyValueStore()

    def test_row_omits_absent_values(self, store):
        """Rows carry only the values that are set."""
        registry = BookRegistry(store)
        row = registry.convert_obj_to_row(Book(WEAVING_THE_WEB))
        assert row == WEAVING_THE_WEB

    def test_row_round_trip(self, store):
        """Row to entity and back reproduces the entity."""
        registry = BookRegistry(store)
        for slots in (CORE_SERVLETS, WEAVING_THE_WEB):
            book = Book(slots)
            assert registry.convert_row_to_obj(registry.convert_obj_to_row(book)) == book

    def test_bad_row_converts_to_none(self, store):
        """Malformed or contradicting rows convert to None."""
        registry = BookRegistry(store)
        assert registry.convert_row_to_obj({"isbn": "123", "title": "x", "year": 2000}) is None
        assert registry.convert_row_to_obj(dict(WEAVING_THE_WEB, subjectArea="Web")) is None
        assert registry.convert_row_to_obj({"isbn": "006251587X"}) is None

    def test_save_then_load(self, store):
        """Saving and loading reproduces the population."""
        registry = BookRegistry(store)
        registry.create(CORE_SERVLETS)
        registry.create(WEAVING_THE_WEB)
        assert registry.save_all() == 2

        reloaded = BookRegistry(store)
        report = reloaded.load_all()

        assert report.clean
        assert sorted(report.loaded) == ["006251587X", "0136019701"]
        assert reloaded.instances == registry.instances

    def test_load_creates_missing_slot(self, store):
        """Loading a missing slot creates it empty."""
        report = BookRegistry(store).load_all()
        assert report.loaded == []
        assert store.read("books") == {}

    def test_load_skips_bad_rows(self, store):
        """Bad rows are skipped and reported, good rows load."""
        store.write("books", {
            "0136019701": CORE_SERVLETS,
            "1234": {"isbn": "1234", "title": "Bad", "year": 2000},
            "0465030793": {"isbn": "006251587X", "title": "Mismatch", "year": 2000},
            "0465026567": "not a row",
        })

        registry = BookRegistry(store)
        report = registry.load_all()

        assert report.loaded == ["0136019701"]
        assert set(report.skipped) == {"1234", "0465030793", "0465026567"}
        assert not report.clean
        assert list(registry.instances) == ["0136019701"]

    def test_load_replaces_population(self, store):
        """Loading discards unsaved records."""
        registry = BookRegistry(store)
        registry.create(CORE_SERVLETS)
        registry.save_all()
        registry.create(WEAVING_THE_WEB)

        report = registry.load_all()

        assert report.clean
        assert list(registry.instances) == ["0136019701"]
