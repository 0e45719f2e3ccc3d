"""Key prefixing shared by the backend adapters."""

from __future__ import annotations

from ..store import Store


class PrefixedStore(Store):
    """Store that namespaces every key under a configured prefix.

    ``set_prefix("users")`` on a store configured with prefix ``"app:"``
    yields keys like ``"app:users_<key>"``.
    """

    def __init__(self, prefix: str = "") -> None:
        self._base_prefix = prefix
        self.prefix = prefix

    def set_prefix(self, prefix: str = "") -> None:
        if prefix:
            self.prefix = f"{self._base_prefix}{prefix}_"
        else:
            self.prefix = self._base_prefix

    def build_key(self, key: str) -> str:
        return f"{self.prefix}{key}"
