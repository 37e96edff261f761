"""
Canonical Book Schema

A book is either a Textbook, a Biography, or neither.
The segment a book belongs to decides which of the two optional
attributes (subjectArea, about) it may carry.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enumeration import SubtypeEnum


class BookType(SubtypeEnum):
    """
    Book segmentation (incomplete, disjoint).
    """
    TEXTBOOK = 1
    BIOGRAPHY = 2


class Textbook(BaseModel):
    """Segment payload of a textbook."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["textbook"] = "textbook"
    subject_area: str = Field(
        ...,
        min_length=1,
        alias="subjectArea",
        description="Subject area the textbook covers",
    )


class Biography(BaseModel):
    """Segment payload of a biography."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["biography"] = "biography"
    about: str = Field(
        ...,
        min_length=1,
        description="Name of the person the biography is about",
    )


BookSegment = Union[Textbook, Biography]


def book_segment(
    subtype: Optional[BookType],
    subject_area: Optional[str],
    about: Optional[str],
) -> Optional[BookSegment]:
    """Build the typed segment from flat optional fields."""
    if subtype == BookType.TEXTBOOK:
        return Textbook(subject_area=subject_area)
    if subtype == BookType.BIOGRAPHY:
        return Biography(about=about)
    return None


class BookRow(BaseModel):
    """
    Flat storage row of the `books` slot.

    Segment fields are optional here; the row only refuses fields that
    contradict its discriminator.
    """
    model_config = ConfigDict(populate_by_name=True)

    isbn: str = Field(
        ...,
        description="ISBN-10, primary key",
        examples=["0136019701", "006251587X"],
    )
    title: str = Field(..., description="Title of the book")
    year: int = Field(..., description="Publication year")
    subtype: Optional[BookType] = Field(
        default=None,
        description="Discriminator code from BookType",
    )
    subject_area: Optional[str] = Field(default=None, alias="subjectArea")
    about: Optional[str] = Field(default=None)

    @field_validator("subtype", mode="before")
    @classmethod
    def unassigned_subtype(cls, v):
        return None if v in (None, "", 0) else v

    @model_validator(mode="after")
    def segment_fields_match_subtype(self) -> "BookRow":
        if self.subject_area is not None and self.subtype != BookType.TEXTBOOK:
            raise ValueError("subjectArea is only stored for textbooks")
        if self.about is not None and self.subtype != BookType.BIOGRAPHY:
            raise ValueError("about is only stored for biographies")
        return self
