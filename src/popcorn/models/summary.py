from __future__ import annotations

from pydantic import BaseModel


class WatchedSummary(BaseModel):
    """Aggregate statistics over the watched list."""

    count: int = 0
    avg_imdb_rating: float = 0.0
    avg_user_rating: float = 0.0
    avg_runtime: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.count == 0
