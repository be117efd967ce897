"""
retrykit - Retry Logic.

Backoff sequences, their modifiers, and the retry loop that drives them.
"""

from .config import BackoffType, RetryConfig, default_config
from .backoff import (
    MAX_DELAY,
    Backoff,
    ConstantBackoff,
    ExponentialBackoff,
    FibonacciBackoff,
    WithJitter,
    WithMaxDuration,
    WithMaxRetries,
    build_backoff,
)
from .loop import (
    async_do_retry,
    async_do_retry_with_custom_retryable_error,
    async_with_retry,
    do_retry,
    do_retry_with_custom_retryable_error,
    retryable_error,
    with_retry,
)

__all__ = [
    # Config
    "BackoffType",
    "RetryConfig",
    "default_config",
    # Backoff
    "MAX_DELAY",
    "Backoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "WithJitter",
    "WithMaxDuration",
    "WithMaxRetries",
    "build_backoff",
    # Loop
    "do_retry",
    "do_retry_with_custom_retryable_error",
    "async_do_retry",
    "async_do_retry_with_custom_retryable_error",
    "retryable_error",
    "with_retry",
    "async_with_retry",
]
