from __future__ import annotations

import re

from pydantic import BaseModel, Field

MAX_USER_RATING = 10

_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")


class SearchResult(BaseModel):
    """One row of an OMDb title search."""

    imdb_id: str = Field(alias="imdbID")
    title: str = Field(alias="Title")
    year: str = Field(default="", alias="Year")
    poster: str | None = Field(default=None, alias="Poster")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "frozen": True,
    }


class MovieDetail(BaseModel):
    """Full OMDb record for a single title (``plot=full``)."""

    imdb_id: str = Field(alias="imdbID")
    title: str = Field(default="", alias="Title")
    year: str = Field(default="", alias="Year")
    released: str | None = Field(default=None, alias="Released")
    poster: str | None = Field(default=None, alias="Poster")
    genre: str | None = Field(default=None, alias="Genre")
    imdb_rating: str | None = Field(default=None, alias="imdbRating")
    plot: str | None = Field(default=None, alias="Plot")
    runtime: str | None = Field(default=None, alias="Runtime")
    actors: str | None = Field(default=None, alias="Actors")
    director: str | None = Field(default=None, alias="Director")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "frozen": True,
    }

    @property
    def runtime_minutes(self) -> int | None:
        """Numeric portion of the free-text runtime, e.g. ``"148 min"`` -> 148."""
        return parse_runtime(self.runtime)


class WatchedEntry(BaseModel):
    """A movie the user confirmed as watched, with their own rating."""

    imdb_id: str
    title: str
    year: str = ""
    poster: str | None = None
    imdb_rating: float | None = None
    runtime: int | None = None
    user_rating: int = Field(ge=1, le=MAX_USER_RATING)

    model_config = {"frozen": True}

    @classmethod
    def from_detail(
        cls, detail: MovieDetail, user_rating: int, *, imdb_id: str | None = None
    ) -> WatchedEntry:
        """Build an entry from ``detail``; ``imdb_id`` overrides the record's own id."""
        return cls(
            imdb_id=imdb_id or detail.imdb_id,
            title=detail.title,
            year=detail.year,
            poster=detail.poster,
            imdb_rating=parse_rating(detail.imdb_rating),
            runtime=parse_runtime(detail.runtime),
            user_rating=user_rating,
        )


def parse_runtime(text: str | None) -> int | None:
    if not text:
        return None
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    return int(float(match.group(1)))


def parse_rating(text: str | None) -> float | None:
    # OMDb reports missing values as "N/A"
    if not text:
        return None
    match = _LEADING_NUMBER.match(text)
    return float(match.group(1)) if match else None


__all__ = [
    "MAX_USER_RATING",
    "MovieDetail",
    "SearchResult",
    "WatchedEntry",
    "parse_rating",
    "parse_runtime",
]
