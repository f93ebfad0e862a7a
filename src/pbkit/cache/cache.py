"""API response caching with TTL and LRU eviction.

Prevents repeated API calls for identical reads. Cache keys are the tool
name followed by the canonical JSON of its parameters, so a whole tool's
result family can be invalidated by prefix after a write.
"""

from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from pydantic import BaseModel

DEFAULT_TTL: float = 300.0  # 5 minutes
DEFAULT_MAX_ENTRIES: int = 500
T = TypeVar("T")

_MISSING: Any = object()


@dataclass(slots=True)
class CacheEntry:
    """A cached value with its absolute expiry (clock seconds)."""
    value: Any
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class ApiCache:
    """In-memory LRU cache with per-entry TTL.

    Expired entries are never returned, even before they are physically
    removed. When a new key would exceed `max_entries`, expired entries are
    dropped first and then the least recently used entry is evicted.

    Args:
        default_ttl: Default TTL in seconds for entries
        max_entries: Maximum number of entries before eviction
        clock: Monotonic time source in seconds

    Example:
        >>> cache = ApiCache(default_ttl=60)
        >>> key = ApiCache.make_key("pb_feature_get", {"id": "f1"})
        >>> cache.set(key, {"id": "f1"})
        >>> cache.get(key)
        {'id': 'f1'}
    """

    __slots__ = ("_entries", "_default_ttl", "_max_entries", "_clock", "_lock")

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()  # RLock allows reentrant calls (e.g. set -> _evict)

    @staticmethod
    def make_key(name: str, params: BaseModel | Mapping[str, object] | None = None) -> str:
        """Generate cache key from tool name and parameters.

        None values are dropped and keys sorted, so equal parameter sets
        always produce the same key.
        """
        if params is None:
            params_dict: Mapping[str, object] = {}
        elif hasattr(params, "model_dump"):
            params_dict = params.model_dump(mode="json", exclude_none=True)  # type: ignore[union-attr]
        else:
            params_dict = params  # type: ignore[assignment]

        cleaned = {k: v for k, v in params_dict.items() if v is not None}
        params_json = json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)
        return f"{name}:{params_json}"

    def get(self, key: str, default: Any = None) -> Any:
        """Get cached value if present and not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expired(self._clock()):
                del self._entries[key]
                return default
            self._entries.move_to_end(key)
            return entry.value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store value, overwriting any existing entry for the key."""
        with self._lock:
            expires_at = self._clock() + (self._default_ttl if ttl is None else ttl)
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self._max_entries:
                self._evict_unlocked()
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    async def wrap(self, key: str, compute: Callable[[], Awaitable[T]], ttl: float | None = None) -> T:
        """Return cached value, or await `compute` once and cache its result.

        Concurrent calls for the same key are not de-duplicated; each may
        compute and overwrite. Exceptions from `compute` are not cached.
        """
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        result = await compute()
        self.set(key, result, ttl)
        return result

    def delete(self, key: str) -> bool:
        """Remove specific entry from cache."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_pattern(self, prefix: str) -> int:
        """Remove all entries whose key starts with prefix. Returns count removed."""
        with self._lock:
            keys = [k for k in self._entries if k.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_unlocked(self) -> None:
        """Drop expired entries, then the LRU entry if still at capacity. Caller must hold lock."""
        now = self._clock()
        for key in [k for k, v in self._entries.items() if v.expired(now)]:
            del self._entries[key]
        while len(self._entries) >= self._max_entries:
            self._entries.popitem(last=False)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def stats(self) -> dict[str, object]:
        """Get cache statistics for monitoring."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max": self._max_entries,
                "default_ttl": self._default_ttl,
            }
