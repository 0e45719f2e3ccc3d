"""
Store contract shared by every backend adapter.

Adapters implement the single-key primitives (get, set, delete, has, clear).
Multi-key and item-level operations fall back to loops over the primitives
and can be overridden where the backend has native batch calls.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, Iterable, List, Mapping

from .item import TTL_DEFAULT, CacheItem, TTLLike


class StoreError(Exception):
    """Backend failure: unreachable server, timeout, rejected write."""


# Marker for "no value stored" when a stored None must be told apart from a miss.
_MISSING = object()


class Store(abc.ABC):
    # simple key/value interface

    @abc.abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` on miss or expiry."""

    @abc.abstractmethod
    def set(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        """Write ``value`` under ``key``; ``ttl=0`` never expires."""

    @abc.abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; False if it did not exist."""

    @abc.abstractmethod
    def has(self, key: str) -> bool:
        """True if ``key`` exists and is unexpired."""

    @abc.abstractmethod
    def clear(self) -> bool:
        ...

    def add(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        """Write only if ``key`` is absent. Not atomic here; adapters with a native add override it."""
        if self.has(key):
            return False
        return self.set(key, value, ttl)

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        return {k: self.get(k, default) for k in keys}

    def set_multiple(self, values: Mapping[str, Any], ttl: TTLLike = TTL_DEFAULT) -> bool:
        ok = True
        for k, v in values.items():
            if not self.set(k, v, ttl):
                ok = False
        return ok

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        for k in keys:
            self.delete(k)
        return True

    # item interface

    def get_item(self, key: str) -> CacheItem:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            return CacheItem(key, hit=False)
        return CacheItem(key, value, hit=True)

    def get_items(self, keys: Iterable[str]) -> Dict[str, CacheItem]:
        keys = list(keys)
        values = self.get_multiple(keys, _MISSING)
        items: Dict[str, CacheItem] = {}
        for k in keys:
            value = values.get(k, _MISSING)
            if value is _MISSING:
                items[k] = CacheItem(k, hit=False)
            else:
                items[k] = CacheItem(k, value, hit=True)
        return items

    def has_item(self, key: str) -> bool:
        return self.has(key)

    def delete_item(self, key: str) -> bool:
        return self.delete(key)

    def delete_items(self, keys: List[str]) -> bool:
        return self.delete_multiple(keys)

    def save(self, item: CacheItem) -> bool:
        return self.set(item.key, item.value, item.ttl)

    def save_deferred(self, item: CacheItem) -> bool:
        return self.save(item)

    def commit(self) -> bool:
        return True
