from __future__ import annotations

from collections.abc import Iterable

from popcorn.models import WatchedEntry, WatchedSummary


def average(values: Iterable[float | int | None]) -> float:
    """Arithmetic mean of the known values; 0.0 when there are none."""
    known = [float(value) for value in values if value is not None]
    if not known:
        return 0.0
    return sum(known) / len(known)


def summarize(entries: Iterable[WatchedEntry]) -> WatchedSummary:
    items = list(entries)
    return WatchedSummary(
        count=len(items),
        avg_imdb_rating=average(entry.imdb_rating for entry in items),
        avg_user_rating=average(entry.user_rating for entry in items),
        avg_runtime=average(entry.runtime for entry in items),
    )


def format_summary(summary: WatchedSummary) -> str:
    return (
        f"{summary.count} movies | "
        f"IMDb {summary.avg_imdb_rating:.2f} | "
        f"yours {summary.avg_user_rating:.2f} | "
        f"{summary.avg_runtime:.2f} min"
    )


__all__ = ["average", "format_summary", "summarize"]
