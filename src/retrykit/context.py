"""
Cancellable context passed to retried operations.

A Context ends either when cancel() is called or when its deadline passes.
The retry loop checks it before every attempt and waits on it between
attempts, so cancelling from another thread (or another task) abandons a
pending wait immediately.
"""

import asyncio
import threading
import time
from typing import Callable

from .exceptions import CancelledError, ContextError, DeadlineExceededError


def _wake(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)


class Context:
    """
    Cancellation and deadline carrier for a retry call.

    Usage:
        >>> ctx = Context(timeout=30.0)
        >>> do_retry(ctx, config, fetch, [ServiceUnavailable()])
        >>> ctx.cancel()  # from any thread
    """

    def __init__(
        self,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the context.

        Args:
            timeout: Seconds until the deadline (None = no deadline)
            clock: Monotonic clock used for the deadline
        """
        self._clock = clock
        self.deadline = clock() + timeout if timeout is not None else None
        self._cancelled = threading.Event()
        self._deadline_hit = False
        self._lock = threading.Lock()
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future]] = []

    @classmethod
    def background(cls) -> "Context":
        """Create a context that is never cancelled unless cancel() is called."""
        return cls()

    def cancel(self) -> None:
        """Cancel the context and wake every pending wait. Safe from any thread."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            waiters, self._waiters = self._waiters, []
        for loop, waiter in waiters:
            loop.call_soon_threadsafe(_wake, waiter)

    def remaining(self) -> float | None:
        """Seconds left until the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def err(self) -> ContextError | None:
        """Return the reason the context ended, or None while it is live."""
        if self._cancelled.is_set():
            return CancelledError()
        if self._deadline_hit or (self.deadline is not None and self._clock() >= self.deadline):
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        """Whether the context was cancelled or its deadline passed."""
        return self.err() is not None

    def _bound(self, delay: float) -> tuple[float, bool]:
        """Clip delay to the deadline; waits longer than TIMEOUT_MAX run in chunks."""
        remaining = self.remaining()
        if remaining is not None and remaining <= delay:
            return remaining, True
        return delay, False

    def wait(self, delay: float) -> bool:
        """
        Block for delay seconds unless the context ends first.

        Returns:
            True if the full delay elapsed, False if the context ended
        """
        if self.done():
            return False
        timeout, hits_deadline = self._bound(delay)
        while timeout > 0:
            chunk = min(timeout, threading.TIMEOUT_MAX)
            if self._cancelled.wait(chunk):
                return False
            timeout -= chunk
        if hits_deadline:
            self._deadline_hit = True
            return False
        return True

    async def sleep(self, delay: float) -> bool:
        """
        Async version of wait(); task cancellation propagates as usual.

        Returns:
            True if the full delay elapsed, False if the context ended
        """
        if self.done():
            return False
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        entry = (loop, waiter)
        with self._lock:
            if self._cancelled.is_set():
                return False
            self._waiters.append(entry)

        timeout, hits_deadline = self._bound(delay)
        try:
            while timeout > 0 and not waiter.done():
                chunk = min(timeout, threading.TIMEOUT_MAX)
                await asyncio.wait({waiter}, timeout=chunk)
                timeout -= chunk
        finally:
            waiter.cancel()
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)

        if self._cancelled.is_set():
            return False
        if hits_deadline:
            self._deadline_hit = True
            return False
        return True
