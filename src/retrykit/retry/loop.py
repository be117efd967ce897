"""
Retry loop and retry decorators.

The loop calls the operation, classifies whatever it raises and either
re-raises, gives up with RetryExhaustedError, or waits for the next delay
from a freshly built backoff.
"""

import functools
import logging
from typing import Awaitable, Callable, Iterable, ParamSpec, TypeVar

from .backoff import Backoff, build_backoff
from .config import RetryConfig, default_config
from ..context import Context
from ..exceptions import RetryableError, RetryExhaustedError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

OnRetry = Callable[[int, Exception, float], None]


def retryable_error(err: BaseException | None) -> RetryableError | None:
    """
    Mark an error as retryable.

    Raise the result from an operation passed to
    do_retry_with_custom_retryable_error (or do_retry) to request a retry.
    None passes through unchanged.
    """
    if err is None:
        return None
    if isinstance(err, RetryableError):
        return err
    return RetryableError(err)


def _self_marked(exc: Exception) -> Exception | None:
    if isinstance(exc, RetryableError):
        return exc.unwrap()
    if getattr(exc, "retryable", False) is True:
        return exc
    return None


def _matches(exc: Exception, retryable_errors: tuple[BaseException, ...], strict: bool) -> bool:
    if strict:
        return any(exc is err for err in retryable_errors)
    message = str(exc)
    return any(message == str(err) for err in retryable_errors)


def _classifier(
    retryable_errors: Iterable[BaseException], strict: bool
) -> Callable[[Exception], Exception | None]:
    errors = tuple(retryable_errors)

    def classify(exc: Exception) -> Exception | None:
        """Return the error to retry on, or None for a terminal error."""
        if errors and _matches(exc, errors, strict):
            return exc.unwrap() if isinstance(exc, RetryableError) else exc
        return _self_marked(exc)

    return classify


def _next_delay(
    ctx: Context,
    backoff: Backoff,
    exc: Exception,
    cause: Exception,
    attempt: int,
    on_retry: OnRetry | None,
) -> float:
    """Ask the backoff for the next delay, raising when retrying must stop."""
    err = ctx.err()
    if err is not None:
        raise err from exc

    delay, ok = backoff.next()
    if not ok:
        logger.debug(f"Retries exhausted after {attempt} attempts: {cause}")
        raise RetryExhaustedError(cause, attempt) from cause

    if on_retry:
        on_retry(attempt, cause, delay)
    else:
        logger.debug(f"Attempt {attempt} failed: {cause}, retrying in {delay:.3f}s")
    return delay


def _run(
    ctx: Context,
    config: RetryConfig,
    fn: Callable[[Context], T],
    classify: Callable[[Exception], Exception | None],
    on_retry: OnRetry | None,
) -> T:
    backoff = build_backoff(config)
    attempt = 0

    while True:
        err = ctx.err()
        if err is not None:
            raise err

        attempt += 1
        try:
            return fn(ctx)
        except Exception as exc:
            cause = classify(exc)
            if cause is None:
                raise
            delay = _next_delay(ctx, backoff, exc, cause, attempt, on_retry)

        if not ctx.wait(delay):
            raise ctx.err()


async def _async_run(
    ctx: Context,
    config: RetryConfig,
    fn: Callable[[Context], Awaitable[T]],
    classify: Callable[[Exception], Exception | None],
    on_retry: OnRetry | None,
) -> T:
    backoff = build_backoff(config)
    attempt = 0

    while True:
        err = ctx.err()
        if err is not None:
            raise err

        attempt += 1
        try:
            return await fn(ctx)
        except Exception as exc:
            cause = classify(exc)
            if cause is None:
                raise
            delay = _next_delay(ctx, backoff, exc, cause, attempt, on_retry)

        if not await ctx.sleep(delay):
            raise ctx.err()


def do_retry(
    ctx: Context,
    config: RetryConfig,
    fn: Callable[[Context], T],
    retryable_errors: Iterable[BaseException] = (),
    *,
    strict: bool = False,
    on_retry: OnRetry | None = None,
) -> T:
    """
    Call fn until it succeeds, raises a terminal error, or retrying stops.

    An error is retried when its message equals the message of any entry in
    retryable_errors (identity instead when strict=True), or when the
    operation marked it with retryable_error().

    Args:
        ctx: Cancellation context, also passed to fn
        config: Retry configuration
        fn: Operation to run
        retryable_errors: Sentinel errors that should be retried
        strict: Match retryable_errors by identity rather than message
        on_retry: Optional callback(attempt, exception, delay) called before each wait

    Returns:
        Whatever fn returns on its first successful call

    Raises:
        RetryExhaustedError: The backoff refused another attempt
        CancelledError: ctx was cancelled
        DeadlineExceededError: ctx deadline passed
        Exception: Any terminal error raised by fn, unmodified
    """
    return _run(ctx, config, fn, _classifier(retryable_errors, strict), on_retry)


def do_retry_with_custom_retryable_error(
    ctx: Context,
    config: RetryConfig,
    fn: Callable[[Context], T],
    *,
    on_retry: OnRetry | None = None,
) -> T:
    """Like do_retry, but only errors fn marked with retryable_error() are retried."""
    return _run(ctx, config, fn, _self_marked, on_retry)


async def async_do_retry(
    ctx: Context,
    config: RetryConfig,
    fn: Callable[[Context], Awaitable[T]],
    retryable_errors: Iterable[BaseException] = (),
    *,
    strict: bool = False,
    on_retry: OnRetry | None = None,
) -> T:
    """Async version of do_retry. Cancelling the calling task aborts the wait."""
    return await _async_run(ctx, config, fn, _classifier(retryable_errors, strict), on_retry)


async def async_do_retry_with_custom_retryable_error(
    ctx: Context,
    config: RetryConfig,
    fn: Callable[[Context], Awaitable[T]],
    *,
    on_retry: OnRetry | None = None,
) -> T:
    """Async version of do_retry_with_custom_retryable_error."""
    return await _async_run(ctx, config, fn, _self_marked, on_retry)


def with_retry(
    config: RetryConfig | None = None,
    retryable_errors: Iterable[BaseException] = (),
    on_retry: OnRetry | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for synchronous functions with retry logic.

    Args:
        config: Retry configuration (default: default_config())
        retryable_errors: Sentinel errors that should be retried
        on_retry: Optional callback(attempt, exception, delay) called before each retry

    Returns:
        Decorated function with retry behavior
    """
    if config is None:
        config = default_config()
    classify = _classifier(retryable_errors, strict=False)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return _run(
                Context.background(),
                config,
                lambda ctx: func(*args, **kwargs),
                classify,
                on_retry,
            )

        return wrapper

    return decorator


def async_with_retry(
    config: RetryConfig | None = None,
    retryable_errors: Iterable[BaseException] = (),
    on_retry: OnRetry | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for async functions with retry logic.

    Args:
        config: Retry configuration (default: default_config())
        retryable_errors: Sentinel errors that should be retried
        on_retry: Optional callback(attempt, exception, delay) called before each retry

    Returns:
        Decorated async function with retry behavior
    """
    if config is None:
        config = default_config()
    classify = _classifier(retryable_errors, strict=False)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await _async_run(
                Context.background(),
                config,
                lambda ctx: func(*args, **kwargs),
                classify,
                on_retry,
            )

        return wrapper

    return decorator
