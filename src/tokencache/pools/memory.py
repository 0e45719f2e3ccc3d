"""In-process dictionary store with read-time TTL enforcement."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

from ..item import TTL_DEFAULT, TTL_FOREVER, TTLLike, normalize_ttl
from ..store import _MISSING
from .base import PrefixedStore

logger = logging.getLogger(__name__)


class MemoryStore(PrefixedStore):
    """
    Dict-backed store owned by a single process.

    Entries are kept as ``(value, expires_at)``; ``expires_at`` is None for
    entries written with TTL 0. Expired entries stay in the dict until they
    are read, overwritten or deleted.
    """

    def __init__(self, prefix: str = "") -> None:
        super().__init__(prefix)
        self._cache: Dict[str, Tuple[Any, Optional[float]]] = {}

    def _lookup(self, key: str) -> Optional[Tuple[Any, Optional[float]]]:
        full_key = self.build_key(key)
        entry = self._cache.get(full_key)
        if entry is None:
            return None

        expires_at = entry[1]
        if expires_at is not None and time.time() >= expires_at:
            # another caller may have dropped it between the check and here
            self._cache.pop(full_key, None)
            logger.debug(f"Expired {full_key}")
            return None

        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._lookup(key)
        if entry is None:
            return default
        return entry[0]

    def set(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        seconds = normalize_ttl(ttl)
        expires_at = None if seconds == TTL_FOREVER else time.time() + seconds
        self._cache[self.build_key(key)] = (value, expires_at)
        return True

    def delete(self, key: str) -> bool:
        # an expired entry counts as absent
        if self._lookup(key) is None:
            return False
        return self._cache.pop(self.build_key(key), _MISSING) is not _MISSING

    def add(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        if self._lookup(key) is not None:
            return False
        return self.set(key, value, ttl)

    def has(self, key: str) -> bool:
        return self._lookup(key) is not None

    def clear(self) -> bool:
        self._cache.clear()
        return True

    def dump(self) -> Dict[str, Tuple[Any, Optional[float]]]:
        return dict(self._cache)

    def restore(self, data: Dict[str, Tuple[Any, Optional[float]]]) -> None:
        self._cache = dict(data)
