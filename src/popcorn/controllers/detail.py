from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, replace

from popcorn.clients.base import MovieCatalog
from popcorn.controllers.base import FailureKind, FetchController, FetchStatus, failure_message
from popcorn.controllers.bindings import ESCAPE_KEY, KeyListenerRegistry, TitleDisplay
from popcorn.models import MAX_USER_RATING, MovieDetail, WatchedEntry
from popcorn.services.watched import WatchedListStore

logger = logging.getLogger(__name__)

MAX_RATING = MAX_USER_RATING


@dataclass(frozen=True)
class DetailState:
    selected_id: str | None = None
    detail: MovieDetail | None = None
    is_loading: bool = False
    error: str = ""
    user_rating: int = 0
    status: FetchStatus = FetchStatus.IDLE


class DetailController(FetchController[DetailState]):
    """Keeps the detail record in sync with the selected movie.

    While a movie is selected the controller holds an escape-key listener and,
    once the record has arrived, the display title. Both are released together
    when the selection changes, clears, or the controller is torn down.
    """

    tag = "DETAIL"

    def __init__(
        self,
        catalog: MovieCatalog,
        store: WatchedListStore,
        *,
        keys: KeyListenerRegistry | None = None,
        title: TitleDisplay | None = None,
        max_rating: int = MAX_RATING,
    ) -> None:
        if not 1 <= max_rating <= MAX_USER_RATING:
            raise ValueError(
                f"max_rating must be between 1 and {MAX_USER_RATING}, got {max_rating}"
            )
        super().__init__(DetailState())
        self._catalog = catalog
        self._store = store
        self._keys = keys
        self._title = title
        self._max_rating = max_rating
        self._scope: ExitStack | None = None

    @property
    def selected_id(self) -> str | None:
        return self._state.selected_id

    @property
    def max_rating(self) -> int:
        return self._max_rating

    @property
    def already_watched(self) -> bool:
        selected = self._state.selected_id
        return selected is not None and self._store.contains(selected)

    @property
    def can_confirm(self) -> bool:
        return (
            self._state.user_rating > 0
            and self._state.detail is not None
            and not self.already_watched
        )

    def select(self, imdb_id: str) -> None:
        """Open ``imdb_id``; selecting the open movie again closes it."""
        if imdb_id == self._state.selected_id:
            self._change_selection(None)
        else:
            self._change_selection(imdb_id)

    def close(self) -> None:
        if self._state.selected_id is None and self._handle is None and self._scope is None:
            return
        self._change_selection(None)

    def set_user_rating(self, rating: int) -> None:
        if not 0 <= rating <= self._max_rating:
            raise ValueError(f"Rating must be between 0 and {self._max_rating}, got {rating}")
        self._publish(replace(self._state, user_rating=rating))

    def confirm(self) -> WatchedEntry | None:
        """Record the open movie with the chosen rating and close the view.

        Returns the new entry, or ``None`` when confirming is not enabled.
        """
        detail = self._state.detail
        if not self.can_confirm or detail is None:
            logger.debug(
                f"[DETAIL] Confirm ignored (rating={self._state.user_rating}, "
                f"watched={self.already_watched})"
            )
            return None
        entry = WatchedEntry.from_detail(
            detail, self._state.user_rating, imdb_id=self._state.selected_id
        )
        self._store.add(entry)
        self.close()
        return entry

    def teardown(self) -> None:
        super().teardown()
        self._release_bindings()

    def _change_selection(self, imdb_id: str | None) -> None:
        self._cancel_pending()
        self._release_bindings()

        if imdb_id is None:
            self._publish(DetailState())
            return

        self._scope = ExitStack()
        if self._keys is not None:
            self._scope.enter_context(self._keys.listening(self._on_key))

        self._publish(DetailState(selected_id=imdb_id, is_loading=True, status=FetchStatus.LOADING))
        self._start(
            f"detail {imdb_id}",
            lambda: self._catalog.get_movie(imdb_id),
            self._on_detail,
            self._on_failure,
        )

    def _on_detail(self, detail: MovieDetail) -> None:
        if self._title is not None and self._scope is not None and detail.title:
            self._scope.enter_context(self._title.bound(detail.title))
        self._publish(
            replace(self._state, detail=detail, is_loading=False, error="", status=FetchStatus.SUCCESS)
        )

    def _on_failure(self, kind: FailureKind) -> None:
        self._publish(
            replace(
                self._state,
                detail=None,
                is_loading=False,
                error=failure_message(kind),
                status=FetchStatus.ERROR,
            )
        )

    def _on_key(self, key: str) -> None:
        if key == ESCAPE_KEY:
            self.close()

    def _release_bindings(self) -> None:
        scope, self._scope = self._scope, None
        if scope is not None:
            scope.close()


__all__ = ["DetailController", "DetailState", "MAX_RATING"]
