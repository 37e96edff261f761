"""
Movie Entity

Movies are keyed by title and have no subtypes. Apart from the title,
every attribute is optional.
"""

from typing import Any, Mapping, Optional

from ..schemas import MovieRow
from .registry import Entity, EntityRegistry
from .rules import absent_to_none, check_mandatory_string, check_optional_string, is_absent, parse_integer
from .violations import (
    NoConstraintViolation,
    RangeViolation,
    UniquenessViolation,
    ValidationResult,
    enforce,
)


# Optional free-text attributes, in setter order
TEXT_SLOTS = ("genre", "summary", "director", "poster")


class Movie(Entity):
    """
    A movie record. Setter order: title, genre, summary, director,
    poster, released.
    """

    key_slot = "title"

    def __init__(
        self,
        slots: Optional[Mapping[str, Any]] = None,
        instances: Optional[Mapping[str, "Movie"]] = None,
    ):
        self.title = ""
        self.genre: Optional[str] = None
        self.summary: Optional[str] = None
        self.director: Optional[str] = None
        self.poster: Optional[str] = None
        self.released: Optional[int] = None

        if slots is not None:
            self.set_title(slots.get("title"), instances or {})
            for slot in TEXT_SLOTS:
                self.set_text(slot, slots.get(slot))
            self.set_released(slots.get("released"))

    @staticmethod
    def check_title(title: Any) -> ValidationResult:
        return check_mandatory_string(
            title,
            "A title must be provided!",
            "The title must be a non-empty string!",
        )

    @staticmethod
    def check_title_as_id(title: Any, instances: Mapping[str, "Movie"]) -> ValidationResult:
        result = Movie.check_title(title)
        if isinstance(result, NoConstraintViolation) and title in instances:
            return UniquenessViolation("There is already a movie record with this title!")
        return result

    @staticmethod
    def check_text(slot: str, value: Any) -> ValidationResult:
        return check_optional_string(value, f"The {slot} must be a non-empty string!")

    @staticmethod
    def check_released(released: Any) -> ValidationResult:
        if is_absent(released):
            return NoConstraintViolation()
        if parse_integer(released) is None:
            return RangeViolation("The release year must be an integer!")
        return NoConstraintViolation()

    def set_title(self, title: Any, instances: Mapping[str, "Movie"]) -> None:
        enforce(self.check_title_as_id(title, instances))
        self.title = title

    def set_text(self, slot: str, value: Any) -> None:
        if slot not in TEXT_SLOTS:
            raise KeyError(slot)
        enforce(self.check_text(slot, value))
        setattr(self, slot, absent_to_none(value))

    def set_released(self, released: Any) -> None:
        enforce(self.check_released(released))
        self.released = None if is_absent(released) else parse_integer(released)

    def to_slots(self) -> dict[str, Any]:
        slots = {"title": self.title}
        slots.update((slot, getattr(self, slot)) for slot in TEXT_SLOTS)
        slots["released"] = self.released
        return slots

    def __str__(self) -> str:
        return f"Movie{{ title: {self.title}, director: {self.director}, released: {self.released} }}"


class MovieRegistry(EntityRegistry[Movie]):
    """The population of movies, stored in the `movies` slot."""

    entity_name = "movie"
    slot = "movies"
    row_model = MovieRow
    entity_class = Movie

    def construct(self, slots: Mapping[str, Any], instances: Mapping[str, Movie]) -> Movie:
        return Movie(slots, instances)

    def check_title_as_id(self, title: Any) -> ValidationResult:
        return Movie.check_title_as_id(title, self.instances)

    def apply_update(self, movie: Movie, slots: Mapping[str, Any]) -> list[str]:
        changed = []
        for slot in TEXT_SLOTS:
            if slot in slots and absent_to_none(slots[slot]) != getattr(movie, slot):
                movie.set_text(slot, slots[slot])
                changed.append(slot)

        if "released" in slots:
            new = None if is_absent(slots["released"]) else parse_integer(slots["released"])
            if new != movie.released or (new is None and not is_absent(slots["released"])):
                movie.set_released(slots["released"])
                changed.append("released")

        return changed
