from .movie import (
    MAX_USER_RATING,
    MovieDetail,
    SearchResult,
    WatchedEntry,
    parse_rating,
    parse_runtime,
)
from .summary import WatchedSummary

__all__ = [
    "MAX_USER_RATING",
    "MovieDetail",
    "SearchResult",
    "WatchedEntry",
    "WatchedSummary",
    "parse_rating",
    "parse_runtime",
]
