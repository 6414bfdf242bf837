from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from popcorn.clients.base import MovieCatalog
from popcorn.controllers.base import FailureKind, FetchController, FetchStatus, failure_message
from popcorn.models import SearchResult

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


@dataclass(frozen=True)
class SearchState:
    query: str = ""
    results: tuple[SearchResult, ...] = ()
    is_loading: bool = False
    error: str = ""
    status: FetchStatus = FetchStatus.IDLE


class SearchController(FetchController[SearchState]):
    """Turns query updates into catalog searches, keeping only the latest one alive."""

    tag = "SEARCH"

    def __init__(
        self,
        catalog: MovieCatalog,
        *,
        min_query_length: int = MIN_QUERY_LENGTH,
        on_search_start: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(SearchState())
        self._catalog = catalog
        self._min_query_length = min_query_length
        self._on_search_start = on_search_start

    @property
    def query(self) -> str:
        return self._state.query

    def set_query(self, query: str) -> None:
        """Apply a new query string. Must be called from the running event loop.

        Re-submitting the current query is a no-op while its search is in
        flight or has settled.
        """
        if query == self._state.query and (
            self._handle is not None
            or self._state.status in (FetchStatus.SUCCESS, FetchStatus.ERROR)
        ):
            return
        self._cancel_pending()

        if len(query) < self._min_query_length:
            self._publish(
                replace(
                    self._state,
                    query=query,
                    results=(),
                    error="",
                    is_loading=False,
                    status=FetchStatus.IDLE,
                )
            )
            return

        self._publish(
            replace(self._state, query=query, error="", is_loading=True, status=FetchStatus.LOADING)
        )
        if self._on_search_start is not None:
            self._on_search_start()

        logger.debug(f"[SEARCH] Searching for {query!r}")
        self._start(
            f"search {query!r}",
            lambda: self._catalog.search_movies(query),
            self._on_results,
            self._on_failure,
        )

    def _on_results(self, results: list[SearchResult]) -> None:
        logger.info(f"[SEARCH] {len(results)} results for {self._state.query!r}")
        self._publish(
            replace(
                self._state,
                results=tuple(results),
                error="",
                is_loading=False,
                status=FetchStatus.SUCCESS,
            )
        )

    def _on_failure(self, kind: FailureKind) -> None:
        self._publish(
            replace(
                self._state,
                results=(),
                error=failure_message(kind),
                is_loading=False,
                status=FetchStatus.ERROR,
            )
        )


__all__ = ["MIN_QUERY_LENGTH", "SearchController", "SearchState"]
