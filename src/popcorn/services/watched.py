"""In-memory list of movies the user has confirmed as watched."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from popcorn.models import WatchedEntry

logger = logging.getLogger(__name__)


class WatchedListStore:
    """Ordered, synchronous collection of ``WatchedEntry`` values.

    The store is the only owner of its entries: they are appended once by
    ``add`` and removed by id with ``remove``. Entries are immutable.
    """

    def __init__(self, entries: list[WatchedEntry] | None = None) -> None:
        self._entries: list[WatchedEntry] = []
        for entry in entries or []:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WatchedEntry]:
        return iter(tuple(self._entries))

    def __contains__(self, imdb_id: object) -> bool:
        return isinstance(imdb_id, str) and self.contains(imdb_id)

    @property
    def entries(self) -> tuple[WatchedEntry, ...]:
        return tuple(self._entries)

    def contains(self, imdb_id: str) -> bool:
        return any(entry.imdb_id == imdb_id for entry in self._entries)

    def get(self, imdb_id: str) -> WatchedEntry | None:
        for entry in self._entries:
            if entry.imdb_id == imdb_id:
                return entry
        return None

    def add(self, entry: WatchedEntry) -> None:
        if self.contains(entry.imdb_id):
            raise ValueError(f"{entry.imdb_id} is already in the watched list")
        self._entries.append(entry)
        logger.info(f"[WATCHED] Added {entry.title} ({entry.imdb_id}) rated {entry.user_rating}")

    def remove(self, imdb_id: str) -> bool:
        remaining = [entry for entry in self._entries if entry.imdb_id != imdb_id]
        removed = len(remaining) != len(self._entries)
        self._entries = remaining
        if removed:
            logger.info(f"[WATCHED] Removed {imdb_id}")
        return removed


__all__ = ["WatchedListStore"]
