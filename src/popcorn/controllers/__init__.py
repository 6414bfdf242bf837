"""Fetch controllers that turn user input into cancellable catalog requests."""

from popcorn.controllers.base import (
    FailureKind,
    FetchController,
    FetchStatus,
    RequestHandle,
    classify_failure,
    failure_message,
)
from popcorn.controllers.bindings import ESCAPE_KEY, KeyListenerRegistry, TitleDisplay
from popcorn.controllers.detail import DetailController, DetailState
from popcorn.controllers.search import SearchController, SearchState

__all__ = [
    "DetailController",
    "DetailState",
    "ESCAPE_KEY",
    "FailureKind",
    "FetchController",
    "FetchStatus",
    "KeyListenerRegistry",
    "RequestHandle",
    "SearchController",
    "SearchState",
    "TitleDisplay",
    "classify_failure",
    "failure_message",
]
