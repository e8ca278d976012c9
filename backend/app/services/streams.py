"""Cancellable subscriptions and push-based value streams.

Everything here runs on the event loop thread. Producers on other threads
(the Firestore listener) hand values over with ``loop.call_soon_threadsafe``
before they reach a stream.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle to an active registration; ``cancel()`` tears it down.

    Cancelling is idempotent. Usable as a context manager so teardown runs
    when the owning scope exits.
    """

    def __init__(self, teardown: Callable[[], None] | None = None) -> None:
        self._teardown = teardown
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        teardown, self._teardown = self._teardown, None
        if teardown is not None:
            teardown()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()


class ValueStream(Generic[T]):
    """Holds a current value and notifies observers whenever it changes."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._observers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None], *, emit_current: bool = True) -> Subscription:
        """Register ``callback``; it receives the current value immediately unless told not to."""
        self._observers.append(callback)

        def _remove() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        subscription = Subscription(_remove)
        if emit_current:
            callback(self._value)
        return subscription

    def emit(self, value: T) -> None:
        self._value = value
        # Copy so observers may unsubscribe while being notified
        for callback in list(self._observers):
            try:
                callback(value)
            except Exception:
                logger.exception("Stream observer failed")

    async def updates(self, *, emit_current: bool = True) -> AsyncIterator[T]:
        """Iterate over values as they are emitted.

        The registration is removed when the iterator is closed, e.g. when an
        SSE client disconnects.
        """
        queue: asyncio.Queue[T] = asyncio.Queue()
        with self.subscribe(queue.put_nowait, emit_current=emit_current):
            while True:
                yield await queue.get()
