"""Token bucket rate limiter for outbound API requests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from ..logging import get_logger

log = get_logger("pbkit.ratelimit")


def refill(
    tokens: int,
    last_refill: float,
    now: float,
    *,
    max_tokens: int,
    refill_rate: int,
    refill_interval: float,
) -> tuple[int, float]:
    """Compute bucket state after lazy refill. Returns (tokens, last_refill).

    Only whole elapsed intervals add tokens; `last_refill` advances by exactly
    those intervals so progress inside the current interval is kept.
    """
    intervals = int((now - last_refill) // refill_interval)
    if intervals <= 0:
        return tokens, last_refill
    return (
        min(max_tokens, tokens + intervals * refill_rate),
        last_refill + intervals * refill_interval,
    )


class RateLimiter:
    """Token bucket limiter: callers proceed only while a token is available.

    Starts full. Tokens are refilled lazily from elapsed time on every access,
    never by a background timer. `acquire()` suspends the caller until the
    next refill boundary and then tries again; waiters woken at the same
    boundary race for tokens, so admission order is not strictly FIFO.

    Args:
        max_tokens: Bucket capacity
        refill_rate: Tokens added per interval
        refill_interval: Interval length in seconds
        clock: Monotonic time source in seconds
        sleep: Async sleep used while waiting for tokens

    Example:
        >>> limiter = RateLimiter(max_tokens=100, refill_rate=100, refill_interval=60.0)
        >>> await limiter.acquire()
        >>> limiter.try_acquire()
        True
    """

    __slots__ = ("max_tokens", "refill_rate", "refill_interval", "_tokens", "_last_refill", "_clock", "_sleep")

    def __init__(
        self,
        max_tokens: int = 100,
        refill_rate: int = 100,
        refill_interval: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        if max_tokens < 1 or refill_rate < 1 or refill_interval <= 0:
            raise ValueError("max_tokens, refill_rate and refill_interval must be positive")
        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self.refill_interval = refill_interval
        self._clock = clock
        self._sleep = sleep
        self._tokens = max_tokens
        self._last_refill = clock()

    @classmethod
    def per_minute(cls, requests: int, **kwargs: object) -> RateLimiter:
        """Limiter allowing `requests` calls per minute, refilled in full each minute."""
        return cls(max_tokens=requests, refill_rate=requests, refill_interval=60.0, **kwargs)  # type: ignore[arg-type]

    def _refill(self) -> None:
        self._tokens, self._last_refill = refill(
            self._tokens, self._last_refill, self._clock(),
            max_tokens=self.max_tokens, refill_rate=self.refill_rate, refill_interval=self.refill_interval,
        )

    def try_acquire(self) -> bool:
        """Take a token if one is available. Never waits."""
        self._refill()
        if self._tokens > 0:
            self._tokens -= 1
            return True
        return False

    async def acquire(self) -> None:
        """Take a token, suspending until one is available."""
        while not self.try_acquire():
            wait = self.wait_time()
            log.debug("rate limited, waiting", wait_seconds=round(wait, 3))
            await self._sleep(wait)

    def wait_time(self) -> float:
        """Seconds until a token is available (0.0 if one is available now)."""
        self._refill()
        if self._tokens > 0:
            return 0.0
        return max(self.refill_interval - (self._clock() - self._last_refill), 0.0)

    @property
    def tokens(self) -> int:
        self._refill()
        return self._tokens

    def is_rate_limited(self) -> bool:
        """Check without consuming a token."""
        return self.tokens <= 0

    def reset(self) -> None:
        """Refill to full capacity."""
        self._tokens = self.max_tokens
        self._last_refill = self._clock()

    def stats(self) -> dict[str, float]:
        return {
            "tokens": self.tokens,
            "max_tokens": self.max_tokens,
            "wait_time": self.wait_time(),
        }
