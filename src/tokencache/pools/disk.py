"""Cross-process store on top of diskcache."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional, Union

from diskcache import Cache as DiskCache
from diskcache import Timeout

from ..item import TTL_DEFAULT, TTL_FOREVER, TTLLike, normalize_ttl
from ..store import StoreError
from .base import PrefixedStore

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (Timeout, sqlite3.Error, OSError)


class DiskStore(PrefixedStore):
    """
    Store shared by every process that opens the same directory.

    diskcache enforces expiry at read time, so TTL handling maps directly:
    TTL 0 becomes ``expire=None`` and a negative TTL is already expired.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        prefix: str = "",
        timeout: float = 2.0,
        cache: Optional[DiskCache] = None,
    ) -> None:
        super().__init__(prefix)
        self.directory = Path(directory)
        if cache is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            cache = DiskCache(str(self.directory), timeout=timeout)
        self._cache = cache
        logger.info(f"DiskStore opened at {self.directory}")

    @staticmethod
    def _expire(ttl: TTLLike) -> Optional[int]:
        seconds = normalize_ttl(ttl)
        return None if seconds == TTL_FOREVER else seconds

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self._cache.get(self.build_key(key), default=default)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"disk get failed for {key}: {e}") from e

    def set(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        try:
            return bool(self._cache.set(self.build_key(key), value, expire=self._expire(ttl)))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"disk set failed for {key}: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            return bool(self._cache.delete(self.build_key(key)))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"disk delete failed for {key}: {e}") from e

    def add(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        try:
            return bool(self._cache.add(self.build_key(key), value, expire=self._expire(ttl)))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"disk add failed for {key}: {e}") from e

    def has(self, key: str) -> bool:
        try:
            return self.build_key(key) in self._cache
        except _BACKEND_ERRORS as e:
            raise StoreError(f"disk lookup failed for {key}: {e}") from e

    def clear(self) -> bool:
        try:
            cleared = self._cache.clear()
        except _BACKEND_ERRORS as e:
            raise StoreError(f"disk clear failed: {e}") from e
        logger.info(f"Cleared {cleared} entries from {self.directory}")
        return True

    def close(self) -> None:
        self._cache.close()
        logger.info("DiskStore closed")
