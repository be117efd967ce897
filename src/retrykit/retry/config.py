"""
Retry configuration and backoff type definitions.
"""

from dataclasses import dataclass, fields
from enum import Enum

DEFAULT_INITIAL_DELAY = 3.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_MAX_DURATION = 10.0
DEFAULT_JITTER = 0.2


class BackoffType(str, Enum):
    """Available backoff shapes."""

    FIBONACCI = "fibonacci"  # delay = initial * fib(attempt)
    CONSTANT = "constant"  # delay = initial
    EXPONENTIAL = "exponential"  # delay = initial * (2 ** (attempt - 1))


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    A zero value on any field (0, 0.0, None or "") means "unset", so a bare
    RetryConfig() is an empty set of overrides. Use default_config() for a
    populated configuration.

    Attributes:
        initial_delay: Base delay in seconds fed to the backoff shape
        max_retries: Retries after the first attempt (-1 = unlimited)
        backoff_type: Backoff shape; unrecognized values fall back to exponential
        jitter: Random +/- offset in seconds added to each delay (0 = disabled)
        max_duration: Total retry budget in seconds (0 = unlimited)
    """

    initial_delay: float = 0.0
    max_retries: int = 0
    backoff_type: BackoffType | str | None = None
    jitter: float = 0.0
    max_duration: float = 0.0

    def update(self, overrides: "RetryConfig") -> None:
        """
        Merge overrides into this config, field by field.

        Only non-zero override values are applied. A field can therefore not
        be reset to zero through this method.
        """
        for f in fields(self):
            value = getattr(overrides, f.name)
            if value:
                setattr(self, f.name, value)

    @classmethod
    def default(cls) -> "RetryConfig":
        """Preset with the package defaults (3s constant, 3 retries, 10s budget)."""
        return cls(
            initial_delay=DEFAULT_INITIAL_DELAY,
            max_retries=DEFAULT_MAX_RETRIES,
            backoff_type=BackoffType.CONSTANT,
            max_duration=DEFAULT_MAX_DURATION,
            jitter=DEFAULT_JITTER,
        )

    @classmethod
    def infinite(cls) -> "RetryConfig":
        """Preset that retries until success or cancellation."""
        config = cls.default()
        config.max_retries = -1
        config.max_duration = 0.0
        return config


def default_config() -> RetryConfig:
    """
    Return a fresh default configuration.

    Defaults:
        - initial_delay: 3s
        - max_retries: 3
        - backoff_type: constant
        - max_duration: 10s
        - jitter: 0.2s

    To retry forever, set max_duration to 0 and max_retries to -1
    (see RetryConfig.infinite). To disable jitter, set jitter to 0.
    """
    return RetryConfig.default()
