#!/usr/bin/env python3
"""
Cache Facade
Compute-if-absent caching over any Store, plus grouped entries.

Implements:
- get_set(key, compute, ttl) → value
- write_grouped / read_grouped / get_group_else / invalidate_group
- the full Store surface by delegation, so a Cache can stand in for a Store
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional

from .groups import GroupEngine, GroupLookup
from .item import TTL_DEFAULT, TTL_FOREVER, CacheItem, TTLLike
from .observability import CacheStats, EventSink
from .store import Store, StoreError

logger = logging.getLogger(__name__)


class Cache(Store):
    """
    Facade over an injected Store.

    Design principles:
    - Lazy: the compute function only runs on a miss
    - Best effort: a failed write never hides a freshly computed value
    - Graceful degradation: store read failure = miss, not error
    - No mutual exclusion: concurrent misses may all compute and write
    """

    def __init__(
        self,
        store: Store,
        groups: Optional[GroupEngine] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        if groups is None:
            groups = GroupEngine(store, stats=CacheStats())
        self.store = store
        self.groups = groups
        # one set of counters for plain and grouped operations
        self.stats = groups.stats
        if events is not None:
            self.stats.sink = events

    def get_set(self, key: str, compute: Callable[[], Any], ttl: TTLLike = TTL_DEFAULT) -> Any:
        """
        Get a cached value, or compute and store it on a miss.

        ```python
        profile = cache.get_set(f"profile:{user_id}", lambda: load_profile(user_id), ttl=600)
        ```

        Args:
            key: Cache key
            compute: Called with no arguments on a miss; returning None
                     means "do not cache" (False, 0 and "" are cached)
            ttl: Seconds to keep the computed value, 0 for no expiry

        Returns:
            The cached or freshly computed value
        """
        try:
            item = self.store.get_item(key)
        except StoreError as e:
            logger.warning(f"Cache get error for {key}: {e}")
            self.stats.record("store_error", key, detail=str(e))
            item = CacheItem(key, hit=False)

        if item.is_hit():
            self.stats.record("hit", key)
            return item.get()

        self.stats.record("miss", key)
        value = compute()
        if value is None:
            logger.debug(f"Skipping cache write for {key} (no value)")
            return None

        try:
            ok = self.store.save(CacheItem(key, value, ttl))
        except StoreError as e:
            logger.error(f"Cache write error for {key}: {e}")
            self.stats.record("store_error", key, detail=str(e))
            ok = False

        if ok:
            self.stats.record("write", key)
            logger.debug(f"Cached {key} (ttl={ttl})")
        else:
            self.stats.record("write_failed", key)
        return value

    # grouped entries

    def write_grouped(
        self,
        group: str,
        key: str,
        value: Any,
        ttl: TTLLike = TTL_DEFAULT,
        ref: Optional[Hashable] = None,
    ) -> bool:
        return self.groups.write_grouped(group, key, value, ttl, ref)

    def read_grouped(self, group: str, key: str) -> GroupLookup:
        return self.groups.read_grouped(group, key)

    def get_grouped(self, group: str, key: str) -> Any:
        return self.groups.get_grouped(group, key)

    def get_group_else(
        self,
        group: str,
        key: str,
        compute: Callable[[], Any],
        ttl: TTLLike = TTL_DEFAULT,
    ) -> Any:
        return self.groups.get_group_else(group, key, compute, ttl)

    def invalidate_group(self, group: str, ttl: TTLLike = TTL_FOREVER) -> bool:
        return self.groups.invalidate_group(group, ttl)

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.as_dict()

    # pass-through to the store

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def set(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        return self.store.set(key, value, ttl)

    def add(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        return self.store.add(key, value, ttl)

    def delete(self, key: str) -> bool:
        return self.store.delete(key)

    def has(self, key: str) -> bool:
        return self.store.has(key)

    def clear(self) -> bool:
        return self.store.clear()

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        return self.store.get_multiple(keys, default)

    def set_multiple(self, values: Mapping[str, Any], ttl: TTLLike = TTL_DEFAULT) -> bool:
        return self.store.set_multiple(values, ttl)

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        return self.store.delete_multiple(keys)

    def get_item(self, key: str) -> CacheItem:
        return self.store.get_item(key)

    def get_items(self, keys: Iterable[str]) -> Dict[str, CacheItem]:
        return self.store.get_items(keys)

    def has_item(self, key: str) -> bool:
        return self.store.has_item(key)

    def delete_item(self, key: str) -> bool:
        return self.store.delete_item(key)

    def delete_items(self, keys: List[str]) -> bool:
        return self.store.delete_items(keys)

    def save(self, item: CacheItem) -> bool:
        return self.store.save(item)

    def save_deferred(self, item: CacheItem) -> bool:
        return self.store.save_deferred(item)

    def commit(self) -> bool:
        return self.store.commit()
