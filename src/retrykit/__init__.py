"""
retrykit - Bounded, jittered, cancellable retries.

Wraps unreliable operations (network calls, external resources) in a retry
loop driven by a declarative backoff configuration.
"""

from .context import Context
from .exceptions import (
    RetryKitError,
    RetryableError,
    RetryExhaustedError,
    ContextError,
    CancelledError,
    DeadlineExceededError,
)
from .retry import (
    BackoffType,
    RetryConfig,
    async_do_retry,
    async_do_retry_with_custom_retryable_error,
    async_with_retry,
    build_backoff,
    default_config,
    do_retry,
    do_retry_with_custom_retryable_error,
    retryable_error,
    with_retry,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Context
    "Context",
    # Exceptions
    "RetryKitError",
    "RetryableError",
    "RetryExhaustedError",
    "ContextError",
    "CancelledError",
    "DeadlineExceededError",
    # Retry
    "BackoffType",
    "RetryConfig",
    "default_config",
    "build_backoff",
    "do_retry",
    "do_retry_with_custom_retryable_error",
    "async_do_retry",
    "async_do_retry_with_custom_retryable_error",
    "retryable_error",
    "with_retry",
    "async_with_retry",
]
