"""Side-channel resources a detail view binds for the lifetime of a selection."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

ESCAPE_KEY = "Escape"
DEFAULT_TITLE = "usePopcorn"

KeyListener = Callable[[str], None]


class KeyListenerRegistry:
    """Process-wide key event fan-out (the document-level ``keydown`` equivalent)."""

    def __init__(self) -> None:
        self._listeners: list[KeyListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: KeyListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: KeyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, key: str) -> None:
        # listeners may unregister themselves while handling the key
        for listener in list(self._listeners):
            listener(key)

    @contextmanager
    def listening(self, listener: KeyListener) -> Iterator[None]:
        self.add_listener(listener)
        try:
            yield
        finally:
            self.remove_listener(listener)


class TitleDisplay:
    """An external label (window or terminal title) that shows the open movie."""

    def __init__(self, default: str = DEFAULT_TITLE) -> None:
        self.default = default
        self.title = default

    @contextmanager
    def bound(self, title: str) -> Iterator[None]:
        previous = self.title
        self.title = title
        logger.debug(f"[TITLE] {title}")
        try:
            yield
        finally:
            self.title = previous


__all__ = ["DEFAULT_TITLE", "ESCAPE_KEY", "KeyListenerRegistry", "TitleDisplay"]
