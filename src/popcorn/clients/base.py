from __future__ import annotations

from typing import Protocol

from popcorn.models import MovieDetail, SearchResult


class MovieCatalog(Protocol):
    """Protocol for remote catalogs the controllers fetch from."""

    async def search_movies(self, query: str) -> list[SearchResult]:
        """Return titles matching ``query`` in the catalog's own order."""

    async def get_movie(self, imdb_id: str) -> MovieDetail:
        """Return the full record for one identifier."""


class CatalogError(RuntimeError):
    """Raised when the movie catalog cannot satisfy a request."""


class MovieNotFoundError(CatalogError):
    """The catalog answered, but reported no matching title."""


class CatalogTransportError(CatalogError):
    """The catalog could not be reached or returned an unusable response."""


__all__ = ["CatalogError", "CatalogTransportError", "MovieCatalog", "MovieNotFoundError"]
