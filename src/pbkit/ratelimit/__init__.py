"""Token bucket admission control for outbound requests."""

from .limiter import RateLimiter, refill

__all__ = ["RateLimiter", "refill"]
