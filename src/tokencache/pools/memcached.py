"""Networked store backed by one or more memcached servers (pymemcache)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from pymemcache.client.hash import HashClient
from pymemcache.exceptions import MemcacheError
from pymemcache.serde import pickle_serde

from ..item import TTL_DEFAULT, TTLLike, normalize_ttl
from ..store import StoreError
from .base import PrefixedStore

logger = logging.getLogger(__name__)

DEFAULT_PORT = 11211
DEFAULT_WEIGHT = 50

_BACKEND_ERRORS = (MemcacheError, OSError)


def parse_servers(servers: Sequence[str]) -> List[Tuple[str, int]]:
    """
    Turn ``host[:port[:weight]]`` strings into ``(host, port)`` pairs.

    HashClient spreads keys with rendezvous hashing and has no notion of
    weight, so a weight is validated and then dropped.
    """
    parsed = []
    for server in servers:
        parts = server.strip().split(":")
        if len(parts) > 3 or not parts[0]:
            raise ValueError(f"invalid memcached server: {server!r}")
        host = parts[0]
        port = int(parts[1]) if len(parts) > 1 and parts[1] else DEFAULT_PORT
        weight = int(parts[2]) if len(parts) > 2 and parts[2] else DEFAULT_WEIGHT
        if weight != DEFAULT_WEIGHT:
            logger.debug(f"Ignoring weight {weight} for {host}:{port}")
        parsed.append((host, port))
    return parsed


class MemcachedStore(PrefixedStore):
    """
    Store on a pymemcache client.

    The client is injected so tests (and callers with their own pooling
    settings) can supply it; ``from_servers`` builds the usual HashClient.
    Memcached enforces TTL itself, with 0 meaning no expiry.
    """

    def __init__(self, client: Any, prefix: str = "") -> None:
        super().__init__(prefix)
        self._client = client

    @classmethod
    def from_servers(
        cls,
        servers: Sequence[str],
        prefix: str = "",
        timeout: float = 1.0,
    ) -> "MemcachedStore":
        client = HashClient(
            parse_servers(servers),
            serde=pickle_serde,
            connect_timeout=timeout,
            timeout=timeout,
            default_noreply=False,
        )
        logger.info(f"MemcachedStore connected to {', '.join(servers)}")
        return cls(client, prefix=prefix)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self._client.get(self.build_key(key), default=default)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached get failed for {key}: {e}") from e

    def set(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        try:
            return bool(self._client.set(self.build_key(key), value, expire=normalize_ttl(ttl), noreply=False))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached set failed for {key}: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            return bool(self._client.delete(self.build_key(key), noreply=False))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached delete failed for {key}: {e}") from e

    def add(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        try:
            return bool(self._client.add(self.build_key(key), value, expire=normalize_ttl(ttl), noreply=False))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached add failed for {key}: {e}") from e

    def has(self, key: str) -> bool:
        marker = object()
        return self.get(key, marker) is not marker

    def clear(self) -> bool:
        try:
            return bool(self._client.flush_all(noreply=False))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached flush failed: {e}") from e

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        keys = list(keys)
        full_keys = {self.build_key(k): k for k in keys}
        try:
            found = self._client.get_many(list(full_keys))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached get_many failed: {e}") from e

        # get_many omits misses; report every requested key
        result = {k: default for k in keys}
        for full_key, value in found.items():
            result[full_keys[full_key]] = value
        return result

    def set_multiple(self, values: Mapping[str, Any], ttl: TTLLike = TTL_DEFAULT) -> bool:
        payload = {self.build_key(k): v for k, v in values.items()}
        try:
            failed = self._client.set_many(payload, expire=normalize_ttl(ttl), noreply=False)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached set_many failed: {e}") from e

        if failed:
            logger.warning(f"memcached set_many rejected {len(failed)} keys")
            return False
        return True

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        try:
            return bool(self._client.delete_many([self.build_key(k) for k in keys], noreply=False))
        except _BACKEND_ERRORS as e:
            raise StoreError(f"memcached delete_many failed: {e}") from e

    def close(self) -> None:
        self._client.close()
