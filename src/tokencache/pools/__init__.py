"""Backend adapters implementing the Store contract."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..store import Store
from .base import PrefixedStore
from .blackhole import BlackholeStore
from .disk import DiskStore
from .memcached import MemcachedStore
from .memory import MemoryStore

if TYPE_CHECKING:
    from ..config import CacheConfig

BACKENDS = ("memory", "blackhole", "disk", "memcached")


def build_store(config: "CacheConfig") -> Store:
    """Construct the adapter named by ``config.backend``."""
    backend = config.backend
    if backend == "memory":
        return MemoryStore(prefix=config.prefix)
    if backend == "blackhole":
        return BlackholeStore()
    if backend == "disk":
        return DiskStore(config.disk_directory, prefix=config.prefix)
    if backend == "memcached":
        return MemcachedStore.from_servers(
            config.memcached_servers,
            prefix=config.prefix,
            timeout=config.memcached_timeout_sec,
        )
    raise ValueError(f"unknown cache backend {backend!r}, expected one of {', '.join(BACKENDS)}")


__all__ = [
    'BACKENDS', 'build_store',
    'PrefixedStore', 'MemoryStore', 'BlackholeStore', 'DiskStore', 'MemcachedStore',
]
