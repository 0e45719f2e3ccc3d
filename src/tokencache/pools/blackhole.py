"""No-op store: accepts every write, answers every read with a miss."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from ..item import TTL_DEFAULT, TTLLike
from ..store import Store


class BlackholeStore(Store):
    def get(self, key: str, default: Any = None) -> Any:
        return default

    def set(self, key: str, value: Any, ttl: TTLLike = TTL_DEFAULT) -> bool:
        return True

    def delete(self, key: str) -> bool:
        return True

    def has(self, key: str) -> bool:
        return False

    def clear(self) -> bool:
        return True

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        return {k: default for k in keys}

    def set_multiple(self, values: Mapping[str, Any], ttl: TTLLike = TTL_DEFAULT) -> bool:
        return True
