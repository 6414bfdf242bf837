"""Shared fetch-controller primitives: request handles, status and failure taxonomy."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC
from collections.abc import Awaitable, Callable, Coroutine
from contextlib import suppress
from enum import Enum
from typing import Any

from popcorn.clients.base import CatalogError, MovieNotFoundError

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Movie not found"
TRANSPORT_MESSAGE = "Unable to fetch the movies. Please check your Network"


class FetchStatus(str, Enum):
    """Lifecycle of the controller's current request."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


class FailureKind(str, Enum):
    """Why a request did not produce data."""

    QUERY_TOO_SHORT = "query_too_short"  # gating, never surfaced as an error
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    CANCELLED = "cancelled"  # never surfaced, never logged as a failure


class RequestHandle:
    """Cancellation token owning exactly one in-flight fetch task."""

    def __init__(self, label: str) -> None:
        self.label = label
        self.status = FetchStatus.IDLE
        self._cancelled = False
        self._task: asyncio.Task[None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def start(self, coro: Coroutine[Any, Any, None]) -> None:
        self.status = FetchStatus.LOADING
        self._task = asyncio.get_running_loop().create_task(coro, name=self.label)

    def cancel(self) -> None:
        """Invalidate the handle; any later response is ignored."""
        self._cancelled = True
        if self.status is FetchStatus.LOADING:
            self.status = FetchStatus.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the task to finish; a cancelled task is not an error."""
        if self._task is None:
            return
        with suppress(asyncio.CancelledError):
            await self._task

    def __repr__(self) -> str:
        return f"RequestHandle({self.label!r}, {self.status.value})"


def classify_failure(exc: BaseException, handle: RequestHandle) -> FailureKind:
    """Map a failed request to the taxonomy.

    Cancellation is decided by origin (the handle or the task), and always
    before any other classification.
    """
    if handle.cancelled or isinstance(exc, asyncio.CancelledError):
        return FailureKind.CANCELLED
    if isinstance(exc, MovieNotFoundError):
        return FailureKind.NOT_FOUND
    return FailureKind.TRANSPORT


def failure_message(kind: FailureKind) -> str:
    if kind is FailureKind.NOT_FOUND:
        return NOT_FOUND_MESSAGE
    if kind is FailureKind.TRANSPORT:
        return TRANSPORT_MESSAGE
    return ""


class FetchController[StateT](ABC):
    """
    Base class for controllers that publish the result of one live request.

    Subclasses own an immutable state snapshot, call ``_start`` to issue a
    request and ``_cancel_pending`` before every new trigger. At most one
    ``RequestHandle`` is live per controller.
    """

    tag: str = "FETCH"

    def __init__(self, initial: StateT) -> None:
        self._state = initial
        self._handle: RequestHandle | None = None
        self._listeners: list[Callable[[StateT], None]] = []

    @property
    def state(self) -> StateT:
        return self._state

    @property
    def pending(self) -> RequestHandle | None:
        """The live request handle, if a fetch is in flight."""
        return self._handle

    def subscribe(self, listener: Callable[[StateT], None]) -> Callable[[], None]:
        """Register ``listener`` for every published state; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def wait_idle(self) -> None:
        """Wait until no request is in flight (including ones started meanwhile)."""
        while self._handle is not None and not self._handle.done:
            await self._handle.wait()

    def teardown(self) -> None:
        self._cancel_pending()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        handle = self._handle
        self.teardown()
        if handle is not None:
            await handle.wait()

    def _publish(self, state: StateT) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception(f"[{self.tag}] State listener failed")

    def _cancel_pending(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        if not handle.done:
            logger.debug(f"[{self.tag}] Cancelling stale request: {handle.label}")
        handle.cancel()

    def _start[PayloadT](
        self,
        label: str,
        fetch: Callable[[], Awaitable[PayloadT]],
        on_success: Callable[[PayloadT], None],
        on_failure: Callable[[FailureKind], None],
    ) -> RequestHandle:
        self._cancel_pending()
        handle = RequestHandle(label)
        self._handle = handle
        handle.start(self._execute(handle, fetch, on_success, on_failure))
        return handle

    async def _execute[PayloadT](
        self,
        handle: RequestHandle,
        fetch: Callable[[], Awaitable[PayloadT]],
        on_success: Callable[[PayloadT], None],
        on_failure: Callable[[FailureKind], None],
    ) -> None:
        try:
            payload = await fetch()
        except asyncio.CancelledError:
            logger.debug(f"[{self.tag}] {handle.label} cancelled")
            raise
        except Exception as exc:
            kind = classify_failure(exc, handle)
            if kind is FailureKind.CANCELLED:
                logger.debug(f"[{self.tag}] Ignoring failure of cancelled {handle.label}")
                return
            if isinstance(exc, CatalogError):
                logger.warning(f"[{self.tag}] {handle.label} failed: {exc}")
            else:
                logger.exception(f"[{self.tag}] {handle.label} failed unexpectedly")
            handle.status = FetchStatus.ERROR
            self._settle(handle)
            on_failure(kind)
            return

        if handle.cancelled:
            logger.debug(f"[{self.tag}] Ignoring late response for {handle.label}")
            return
        handle.status = FetchStatus.SUCCESS
        self._settle(handle)
        on_success(payload)

    def _settle(self, handle: RequestHandle) -> None:
        if self._handle is handle:
            self._handle = None


__all__ = [
    "FailureKind",
    "FetchController",
    "FetchStatus",
    "NOT_FOUND_MESSAGE",
    "RequestHandle",
    "TRANSPORT_MESSAGE",
    "classify_failure",
    "failure_message",
]
