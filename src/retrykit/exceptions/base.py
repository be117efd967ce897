"""
Base exception classes for retry operations.

Each exception includes a `retryable` flag indicating whether the failed
operation may be attempted again.
"""


class RetryKitError(Exception):
    """Base exception for all retrykit errors."""

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable

    def __str__(self) -> str:
        return self.message


class RetryableError(RetryKitError):
    """Marks a wrapped error as retryable. Always retryable."""

    def __init__(self, err: BaseException):
        super().__init__(str(err), retryable=True)
        self.err = err

    def unwrap(self) -> BaseException:
        """Return the wrapped error."""
        return self.err


class RetryExhaustedError(RetryKitError):
    """Raised when the backoff refuses another attempt. Not retryable."""

    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__(
            f"retries exhausted after {attempts} attempts: {last_error}",
            retryable=False,
        )
        self.last_error = last_error
        self.attempts = attempts


class ContextError(RetryKitError):
    """Raised when the surrounding context ends the retry loop."""

    def __init__(self, message: str):
        super().__init__(message, retryable=False)


class CancelledError(ContextError):
    """Raised when the context was cancelled."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceededError(ContextError):
    """Raised when the context deadline passed."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)
