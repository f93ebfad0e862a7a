"""Retry policy for ProductBoard API requests.

Decides whether a failed request is retried and how long to wait first.
Classification and delays come from the error taxonomy; the policy adds
the attempt ceiling and a retry hook.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ..errors import get_retry_delay, is_retryable

if TYPE_CHECKING:
    from ..errors import ApiError


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configurable retry policy for API requests.
    
    Attributes:
        max_retries: Maximum retry attempts (0 = no retries)
        on_retry: Optional callback (attempt, error, delay) fired before each retry
    
    Example:
        >>> policy = RetryPolicy(max_retries=3)
        >>> policy.should_retry(error, attempt=0)
        True
        >>> policy.get_delay(error, attempt=1)
        2.0
    """
    
    max_retries: int = 3
    on_retry: Callable[[int, ApiError, float], None] | None = None
    
    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Determine if retry should be attempted.
        
        Args:
            error: Exception from the failed attempt
            attempt: Retries already taken (0-indexed)
        """
        return attempt < self.max_retries and is_retryable(error)
    
    def get_delay(self, error: ApiError, attempt: int) -> float:
        """Seconds to wait before the next attempt. Rate limits honour Retry-After."""
        return get_retry_delay(error, attempt)


DEFAULT_RETRY = RetryPolicy()
NO_RETRY = RetryPolicy(max_retries=0)
