"""
tokencache
Compute-if-absent caching and O(1) group invalidation over pluggable stores.
"""

from .cache import Cache
from .groups import GroupEngine, GroupLookup, GroupState, new_reference
from .item import TTL_DEFAULT, TTL_FOREVER, CacheItem, normalize_ttl
from .store import Store, StoreError

__all__ = [
    'Cache', 'GroupEngine', 'GroupLookup', 'GroupState', 'new_reference',
    'CacheItem', 'TTL_DEFAULT', 'TTL_FOREVER', 'normalize_ttl',
    'Store', 'StoreError',
]
