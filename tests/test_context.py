"""Tests for Context - behavior focused."""

import asyncio
import threading
import time

import pytest
from retrykit import CancelledError, Context, DeadlineExceededError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestContextState:
    """Test cancellation and deadline state."""

    def test_background_context_is_live(self):
        """A fresh background context is not done and has no error."""
        ctx = Context.background()

        assert ctx.done() is False
        assert ctx.err() is None
        assert ctx.remaining() is None

    def test_cancel_sets_error(self):
        """cancel() ends the context with CancelledError."""
        ctx = Context()
        ctx.cancel()

        assert ctx.done() is True
        assert isinstance(ctx.err(), CancelledError)

    def test_cancel_is_idempotent(self):
        """Cancelling twice is harmless."""
        ctx = Context()
        ctx.cancel()
        ctx.cancel()

        assert isinstance(ctx.err(), CancelledError)

    def test_deadline_passes(self):
        """Once the clock reaches the deadline, err() is DeadlineExceededError."""
        clock = FakeClock()
        ctx = Context(timeout=5.0, clock=clock)

        assert ctx.remaining() == 5.0
        clock.now = 5.0

        assert ctx.remaining() == 0.0
        assert isinstance(ctx.err(), DeadlineExceededError)

    def test_cancel_wins_over_deadline(self):
        """An explicitly cancelled context reports cancellation."""
        clock = FakeClock()
        ctx = Context(timeout=1.0, clock=clock)
        clock.now = 2.0
        ctx.cancel()

        assert isinstance(ctx.err(), CancelledError)

    def test_error_messages(self):
        """Errors carry the familiar context messages."""
        assert str(CancelledError()) == "context canceled"
        assert str(DeadlineExceededError()) == "context deadline exceeded"


class TestContextWait:
    """Test the blocking wait."""

    def test_wait_elapses(self):
        """A live context waits out the full delay."""
        assert Context().wait(0.01) is True

    def test_wait_on_cancelled_context_returns_immediately(self):
        """No waiting once the context is cancelled."""
        ctx = Context()
        ctx.cancel()

        start = time.monotonic()
        assert ctx.wait(10.0) is False
        assert time.monotonic() - start < 1.0

    def test_cancel_from_another_thread_wakes_wait(self):
        """cancel() from another thread interrupts a pending wait."""
        ctx = Context()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()

        start = time.monotonic()
        try:
            assert ctx.wait(10.0) is False
        finally:
            timer.cancel()

        assert time.monotonic() - start < 5.0
        assert isinstance(ctx.err(), CancelledError)

    def test_wait_longer_than_timeout_max(self):
        """Delays past threading.TIMEOUT_MAX wait instead of overflowing."""
        ctx = Context()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()

        try:
            assert ctx.wait(threading.TIMEOUT_MAX * 2) is False
        finally:
            timer.cancel()

        assert isinstance(ctx.err(), CancelledError)

    def test_wait_stops_at_deadline(self):
        """A delay past the deadline ends at the deadline."""
        ctx = Context(timeout=0.05)

        start = time.monotonic()
        assert ctx.wait(10.0) is False
        assert time.monotonic() - start < 5.0
        assert isinstance(ctx.err(), DeadlineExceededError)


class TestContextSleep:
    """Test the async wait."""

    @pytest.mark.asyncio
    async def test_sleep_elapses(self):
        """A live context sleeps the full delay."""
        assert await Context().sleep(0.01) is True

    @pytest.mark.asyncio
    async def test_cancel_wakes_sleep(self):
        """cancel() resolves the pending sleep early."""
        ctx = Context()
        asyncio.get_running_loop().call_later(0.05, ctx.cancel)

        start = time.monotonic()
        assert await ctx.sleep(10.0) is False
        assert time.monotonic() - start < 5.0

    @pytest.mark.asyncio
    async def test_cancel_from_thread_wakes_sleep(self):
        """cancel() from a foreign thread is delivered to the event loop."""
        ctx = Context()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()

        try:
            assert await ctx.sleep(10.0) is False
        finally:
            timer.cancel()

    @pytest.mark.asyncio
    async def test_sleep_longer_than_timeout_max(self):
        """Async sleeps past threading.TIMEOUT_MAX are cancellable."""
        ctx = Context()
        asyncio.get_running_loop().call_later(0.05, ctx.cancel)

        assert await ctx.sleep(threading.TIMEOUT_MAX * 2) is False

    @pytest.mark.asyncio
    async def test_sleep_stops_at_deadline(self):
        """Async sleep also honours the deadline."""
        ctx = Context(timeout=0.05)

        assert await ctx.sleep(10.0) is False
        assert isinstance(ctx.err(), DeadlineExceededError)

    @pytest.mark.asyncio
    async def test_task_cancel_cleans_up_waiter(self):
        """A cancelled sleeping task leaves no registered waiter behind."""
        ctx = Context()
        task = asyncio.create_task(ctx.sleep(10.0))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert ctx._waiters == []
