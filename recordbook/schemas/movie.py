"""
Canonical Movie Schema

Movies have no subtypes. Keyed by title.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MovieRow(BaseModel):
    """Flat storage row of the `movies` slot."""
    title: str = Field(..., description="Title, primary key")
    genre: Optional[str] = None
    summary: Optional[str] = None
    director: Optional[str] = None
    poster: Optional[str] = Field(
        default=None,
        description="URL of a poster image",
    )
    released: Optional[int] = Field(
        default=None,
        description="Year of release",
    )
