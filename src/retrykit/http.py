"""
Helpers for retrying httpx requests.

Transient transport failures and retryable status codes are turned into
RetryableError, so an operation can raise them straight into the retry loop.
"""

import logging

import httpx

from .exceptions import RetryableError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Connect errors, read/write/pool timeouts and dropped connections.
_TRANSIENT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def is_retryable_status(status_code: int) -> bool:
    """Check if the given status code should trigger a retry."""
    return status_code in RETRYABLE_STATUS_CODES


def classify_http_error(exc: Exception) -> Exception:
    """
    Mark transient httpx errors as retryable.

    Args:
        exc: Error raised by an httpx call

    Returns:
        RetryableError wrapping exc if it is transient, otherwise exc itself
    """
    if isinstance(exc, _TRANSIENT_ERRORS):
        logger.debug(f"Transient transport error: {exc!r}")
        return RetryableError(exc)
    if isinstance(exc, httpx.HTTPStatusError) and is_retryable_status(
        exc.response.status_code
    ):
        return RetryableError(exc)
    return exc


def raise_for_retryable_status(response: httpx.Response) -> httpx.Response:
    """
    Raise for 4xx/5xx responses, marking retryable statuses.

    Returns:
        The response, unchanged, when its status is a success
    """
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        marked = classify_http_error(e)
        if marked is e:
            raise
        raise marked from e
    return response
