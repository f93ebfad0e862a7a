"""Retry policy for API requests. Delays come from the error taxonomy."""

from .policy import DEFAULT_RETRY, NO_RETRY, RetryPolicy

__all__ = ["RetryPolicy", "DEFAULT_RETRY", "NO_RETRY"]
