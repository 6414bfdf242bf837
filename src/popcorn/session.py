"""Wires the search and detail controllers to one watched list."""

from __future__ import annotations

from popcorn.clients.base import MovieCatalog
from popcorn.config import Settings
from popcorn.controllers import (
    DetailController,
    KeyListenerRegistry,
    SearchController,
    TitleDisplay,
)
from popcorn.models import WatchedEntry, WatchedSummary
from popcorn.services import WatchedListStore, summarize


class BrowserSession:
    """One user's browsing session: search box, detail pane, watched list.

    Starting a new search closes the open detail view.
    """

    def __init__(
        self,
        catalog: MovieCatalog,
        *,
        store: WatchedListStore | None = None,
        keys: KeyListenerRegistry | None = None,
        title: TitleDisplay | None = None,
        min_query_length: int = 3,
        max_rating: int = 10,
    ) -> None:
        self.store = store if store is not None else WatchedListStore()
        self.keys = keys if keys is not None else KeyListenerRegistry()
        self.title = title if title is not None else TitleDisplay()
        self.detail = DetailController(
            catalog,
            self.store,
            keys=self.keys,
            title=self.title,
            max_rating=max_rating,
        )
        self.search = SearchController(
            catalog,
            min_query_length=min_query_length,
            on_search_start=self.detail.close,
        )

    @classmethod
    def from_settings(cls, catalog: MovieCatalog, settings: Settings) -> BrowserSession:
        return cls(
            catalog,
            title=TitleDisplay(settings.default_title),
            min_query_length=settings.min_query_length,
            max_rating=settings.max_rating,
        )

    def set_query(self, query: str) -> None:
        self.search.set_query(query)

    def select(self, imdb_id: str) -> None:
        self.detail.select(imdb_id)

    def close(self) -> None:
        self.detail.close()

    def rate(self, rating: int) -> None:
        self.detail.set_user_rating(rating)

    def confirm(self) -> WatchedEntry | None:
        return self.detail.confirm()

    def delete_watched(self, imdb_id: str) -> bool:
        return self.store.remove(imdb_id)

    def press_key(self, key: str) -> None:
        self.keys.dispatch(key)

    def summary(self) -> WatchedSummary:
        return summarize(self.store)

    async def wait_idle(self) -> None:
        await self.search.wait_idle()
        await self.detail.wait_idle()

    def teardown(self) -> None:
        self.search.teardown()
        self.detail.teardown()

    async def aclose(self) -> None:
        pending = [h for h in (self.search.pending, self.detail.pending) if h is not None]
        self.teardown()
        for handle in pending:
            await handle.wait()

    async def __aenter__(self) -> BrowserSession:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


__all__ = ["BrowserSession"]
