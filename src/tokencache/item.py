"""Cache entry model and TTL conversion."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Union

TTL_FOREVER = 0
TTL_DEFAULT = 300

TTLLike = Union[int, float, timedelta, None]


def normalize_ttl(ttl: TTLLike) -> int:
    """Convert a TTL request into relative seconds.

    ``None`` means no expiry, a ``timedelta`` is truncated to whole seconds.
    """
    if ttl is None:
        return TTL_FOREVER
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    return int(ttl)


@dataclass
class CacheItem:
    key: str
    value: Any = None
    ttl: int = TTL_DEFAULT
    hit: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.hit is None:
            self.hit = self.value is not None

    def get(self) -> Any:
        if not self.hit:
            return None
        return self.value

    def is_hit(self) -> bool:
        return bool(self.hit)

    def set(self, value: Any) -> "CacheItem":
        self.value = value
        return self

    def set_hit(self, hit: bool) -> "CacheItem":
        self.hit = hit
        return self

    def expires_at(self, when: Optional[datetime]) -> "CacheItem":
        # a point in the past yields a negative ttl, which stores treat as already expired
        if when is None:
            self.ttl = TTL_FOREVER
        else:
            self.ttl = int(when.timestamp() - time.time())
        return self

    def expires_after(self, duration: TTLLike) -> "CacheItem":
        self.ttl = normalize_ttl(duration)
        return self
