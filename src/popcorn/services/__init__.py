from .stats import average, format_summary, summarize
from .watched import WatchedListStore

__all__ = ["WatchedListStore", "average", "format_summary", "summarize"]
