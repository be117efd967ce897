"""
retrykit - Exception Hierarchy.

Retry-aware exceptions raised by the retry loop and its context.
"""

from .base import (
    RetryKitError,
    RetryableError,
    RetryExhaustedError,
    ContextError,
    CancelledError,
    DeadlineExceededError,
)

__all__ = [
    "RetryKitError",
    "RetryableError",
    "RetryExhaustedError",
    "ContextError",
    "CancelledError",
    "DeadlineExceededError",
]
