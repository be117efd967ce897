"""
Backoff sequences and the modifiers that wrap them.

A backoff is a stateful generator: every call to next() consumes one attempt
and returns (delay, ok). Base shapes always return ok=True; modifiers wrap
another backoff and may return ok=False to stop the retry loop.
"""

import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Callable

from .config import BackoffType, DEFAULT_MAX_RETRIES, RetryConfig

logger = logging.getLogger(__name__)

# Largest delay a sequence returns: the max int64 nanosecond duration, in seconds.
MAX_DELAY = (2**63 - 1) / 1_000_000_000

STOP: tuple[float, bool] = (0.0, False)


def _scale(initial_delay: float, factor: int) -> tuple[float, bool]:
    """Return (initial_delay * factor, saturated) capped at MAX_DELAY."""
    if initial_delay <= 0:
        return 0.0, False
    if factor > MAX_DELAY / initial_delay:
        return MAX_DELAY, True
    return min(initial_delay * factor, MAX_DELAY), False


class Backoff(ABC):
    """Common interface for backoff shapes and modifiers."""

    @abstractmethod
    def next(self) -> tuple[float, bool]:
        """
        Consume one attempt.

        Returns:
            (delay in seconds, True) to continue, or (0.0, False) to stop
        """
        ...


class ConstantBackoff(Backoff):
    """Always returns the same delay."""

    def __init__(self, delay: float):
        self.delay = delay
        self.attempt = 0

    def next(self) -> tuple[float, bool]:
        self.attempt += 1
        return self.delay, True


class ExponentialBackoff(Backoff):
    """Doubles the delay on every attempt: initial_delay * 2 ** (attempt - 1)."""

    def __init__(self, initial_delay: float):
        self.initial_delay = initial_delay
        self.attempt = 0
        self._saturated = False

    def next(self) -> tuple[float, bool]:
        self.attempt += 1
        if self._saturated:
            return MAX_DELAY, True
        delay, self._saturated = _scale(self.initial_delay, 2 ** (self.attempt - 1))
        return delay, True


class FibonacciBackoff(Backoff):
    """Grows the delay along the Fibonacci sequence: 1, 1, 2, 3, 5, ..."""

    def __init__(self, initial_delay: float):
        self.initial_delay = initial_delay
        self.attempt = 0
        self._saturated = False
        self._prev, self._curr = 0, 1

    def next(self) -> tuple[float, bool]:
        self.attempt += 1
        if self._saturated:
            return MAX_DELAY, True
        self._prev, self._curr = self._curr, self._prev + self._curr
        delay, self._saturated = _scale(self.initial_delay, self._prev)
        return delay, True


class WithJitter(Backoff):
    """
    Adds a random offset in [-jitter, +jitter] to each delay.

    The result is clamped to [0, MAX_DELAY]. Each instance owns its random
    generator, so sequences running in different threads share no state.
    """

    def __init__(self, jitter: float, inner: Backoff, rng: random.Random | None = None):
        self.jitter = abs(jitter)
        self.inner = inner
        self._rng = rng or random.Random()

    def next(self) -> tuple[float, bool]:
        delay, ok = self.inner.next()
        if not ok:
            return STOP
        delay += self._rng.uniform(-self.jitter, self.jitter)
        return min(MAX_DELAY, max(0.0, delay)), True


class WithMaxDuration(Backoff):
    """
    Stops once max_duration seconds have passed since construction.

    The budget starts when the sequence is built, right before the first
    attempt, so operation runtime counts against it. Delays are capped at the
    remaining budget, so a wait never runs past it. A zero delay stays zero.
    """

    def __init__(
        self,
        max_duration: float,
        inner: Backoff,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_duration = max_duration
        self.inner = inner
        self._clock = clock
        self._start = clock()

    def next(self) -> tuple[float, bool]:
        remaining = self.max_duration - (self._clock() - self._start)
        if remaining <= 0:
            return STOP
        delay, ok = self.inner.next()
        if not ok:
            return STOP
        return min(delay, remaining), True


class WithMaxRetries(Backoff):
    """
    Stops after max_retries calls to next().

    max_retries counts retries, so the operation runs at most
    max_retries + 1 times.
    """

    def __init__(self, max_retries: int, inner: Backoff):
        self.max_retries = max_retries
        self.inner = inner
        self.attempt = 0

    def next(self) -> tuple[float, bool]:
        if self.attempt >= self.max_retries:
            return STOP
        self.attempt += 1
        return self.inner.next()


def _base_shape(config: RetryConfig) -> Backoff:
    try:
        backoff_type = BackoffType(config.backoff_type)
    except ValueError:
        backoff_type = BackoffType.EXPONENTIAL

    if backoff_type == BackoffType.CONSTANT:
        return ConstantBackoff(config.initial_delay)
    if backoff_type == BackoffType.FIBONACCI:
        return FibonacciBackoff(config.initial_delay)
    return ExponentialBackoff(config.initial_delay)


def build_backoff(config: RetryConfig) -> Backoff:
    """
    Compile a config into a fresh backoff sequence.

    Wrapping order is shape -> jitter -> max duration -> max retries, so the
    attempt count is checked first on every call. An unset max_retries (0)
    falls back to the default of 3; a negative one means unlimited.

    Args:
        config: Retry configuration

    Returns:
        A new Backoff owned by a single retry loop call
    """
    backoff = _base_shape(config)

    if config.jitter > 0:
        backoff = WithJitter(config.jitter, backoff)

    if config.max_duration > 0:
        backoff = WithMaxDuration(config.max_duration, backoff)

    if config.max_retries > 0:
        backoff = WithMaxRetries(config.max_retries, backoff)
    elif config.max_retries == 0:
        backoff = WithMaxRetries(DEFAULT_MAX_RETRIES, backoff)

    logger.debug(
        f"Built {type(backoff).__name__} backoff from {config.backoff_type!r} "
        f"(initial {config.initial_delay}s, max_retries {config.max_retries}, "
        f"max_duration {config.max_duration}s, jitter {config.jitter}s)"
    )
    return backoff
