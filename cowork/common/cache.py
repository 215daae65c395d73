"""
Read-through cache with a fixed staleness window.

Behavior:
    - An entry is fresh while `now - stamp < ttl_seconds` (default 300).
    - policy "per_key": each key carries its own stamp.
    - policy "shared": one stamp for the whole cache, refreshed by any `put`;
      this keeps listings loaded together equally stale.
    - `invalidate_all()` after every mutation; no partial invalidation is
      attempted by callers.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple


logger = logging.getLogger("cowork.cache")

MISS = object()


class TimedCache:
    def __init__(
        self,
        ttl_seconds: float = 300,
        *,
        policy: str = "per_key",
        clock: Callable[[], float] = time.monotonic,
    ):
        if policy not in ("per_key", "shared"):
            raise ValueError("invalid_cache_policy")
        if ttl_seconds <= 0:
            raise ValueError("invalid_cache_ttl")
        self.ttl_seconds = ttl_seconds
        self.policy = policy
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._shared_stamp: Optional[float] = None

    def _fresh(self, stamp: float) -> bool:
        return self._clock() - stamp < self.ttl_seconds

    def get(self, key: Hashable) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        stamp = self._shared_stamp if self.policy == "shared" else entry[0]
        if stamp is None or not self._fresh(stamp):
            return MISS
        return entry[1]

    def put(self, key: Hashable, value: Any) -> None:
        now = self._clock()
        self._entries[key] = (now, value)
        if self.policy == "shared":
            self._shared_stamp = now

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        self._entries.clear()
        self._shared_stamp = None

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not MISS:
            logger.debug("cache.hit key=%s", key)
            return cached
        value = await loader()
        self.put(key, value)
        return value

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["TimedCache", "MISS"]
