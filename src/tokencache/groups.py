#!/usr/bin/env python3
"""
Group Invalidation
Reference-token scheme for invalidating a whole family of keys at once.

Every group has one token stored under the group name. A member is stored
as the envelope ``(ref, value)`` where ``ref`` is the token that was current
when the member was written. A member is valid only while its ``ref`` equals
the group's current token, so writing a new token invalidates every member
without touching them. Stale members stay in the store until their own TTL
runs out or they are rewritten.

Implements:
- write_grouped(group, key, value, ttl, ref) → bool
- read_grouped(group, key) → GroupLookup(state, value, ref)
- get_group_else(group, key, compute, ttl) → value
- invalidate_group(group, ttl) → bool
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Optional

from .item import TTL_DEFAULT, TTL_FOREVER, TTLLike
from .observability import CacheStats
from .store import Store, StoreError

logger = logging.getLogger(__name__)


def new_reference() -> int:
    """Fresh group token.

    A nanosecond clock reading: two writers minting a token in the same
    nanosecond would collide, which is accepted as negligible.
    """
    return time.time_ns()


class GroupState(Enum):
    ABSENT = "absent"
    VALID = "valid"
    STALE = "stale"


@dataclass(frozen=True)
class GroupLookup:
    state: GroupState
    value: Any = None
    # the group's current token, when it resolved; pass it back to write_grouped
    ref: Optional[Hashable] = None

    @property
    def is_valid(self) -> bool:
        return self.state is GroupState.VALID


def _is_envelope(data: Any) -> bool:
    return isinstance(data, (tuple, list)) and len(data) == 2


class GroupEngine:
    """
    Stateless wrapper around a Store implementing grouped reads and writes.

    Design principles:
    - Fail open: a store failure on read is a miss, never a stale value
    - No retries and no locking; concurrency is whatever the store provides
    - Batch reads and writes are not assumed atomic
    """

    def __init__(
        self,
        store: Store,
        ref_factory: Callable[[], Hashable] = new_reference,
        stats: Optional[CacheStats] = None,
    ) -> None:
        self._store = store
        self._ref_factory = ref_factory
        self.stats = stats if stats is not None else CacheStats()

    def write_grouped(
        self,
        group: str,
        key: str,
        value: Any,
        ttl: TTLLike = TTL_DEFAULT,
        ref: Optional[Hashable] = None,
    ) -> bool:
        """
        Store ``value`` under ``key`` as a member of ``group``.

        Args:
            group: Group name; its slot holds the current token
            key: Member key
            value: Payload, wrapped into the ``(ref, value)`` envelope
            ttl: Applied to both the token and the member
            ref: Token to write under; a fresh one is minted when omitted.
                 Pass ``GroupLookup.ref`` from a failed read to rejoin the
                 current generation instead of invalidating it.

        Returns:
            False if the store reported any failure
        """
        if ref is None:
            ref = self._ref_factory()

        try:
            ok = self._store.set_multiple({group: ref, key: (ref, value)}, ttl)
        except StoreError as e:
            logger.error(f"Grouped write error for {group}/{key}: {e}")
            self.stats.record("store_error", key, group=group, detail=str(e))
            ok = False

        if ok:
            self.stats.record("write", key, group=group)
            logger.debug(f"Grouped write {group}/{key} (ref={ref})")
        else:
            self.stats.record("write_failed", key, group=group)
        return ok

    def read_grouped(self, group: str, key: str) -> GroupLookup:
        """Resolve ``key`` within ``group`` to VALID, STALE or ABSENT."""
        try:
            items = self._store.get_items([group, key])
        except StoreError as e:
            logger.warning(f"Grouped read error for {group}/{key}: {e}")
            self.stats.record("store_error", key, group=group, detail=str(e))
            return GroupLookup(GroupState.ABSENT)

        if not isinstance(items, Mapping) or group not in items or key not in items:
            self.stats.record("miss", key, group=group)
            return GroupLookup(GroupState.ABSENT)

        group_item = items[group]
        member_item = items[key]
        current = group_item.get() if group_item.is_hit() else None

        if not member_item.is_hit():
            self.stats.record("miss", key, group=group)
            return GroupLookup(GroupState.ABSENT, ref=current)

        envelope = member_item.get()
        if not _is_envelope(envelope):
            logger.debug(f"Malformed grouped entry under {key}, treating as miss")
            self.stats.record("miss", key, group=group, detail="malformed")
            return GroupLookup(GroupState.ABSENT, ref=current)

        if not group_item.is_hit():
            self.stats.record("stale", key, group=group, detail="group missing")
            return GroupLookup(GroupState.STALE)

        ref, value = envelope
        if ref != current:
            self.stats.record("stale", key, group=group)
            return GroupLookup(GroupState.STALE, ref=current)

        self.stats.record("hit", key, group=group)
        return GroupLookup(GroupState.VALID, value=value, ref=current)

    def get_grouped(self, group: str, key: str) -> Any:
        """Value of a valid member, else None."""
        lookup = self.read_grouped(group, key)
        return lookup.value if lookup.is_valid else None

    def get_group_else(
        self,
        group: str,
        key: str,
        compute: Callable[[], Any],
        ttl: TTLLike = TTL_DEFAULT,
    ) -> Any:
        """
        Return the valid member value, or compute, store and return it.

        ``compute`` is not called on a valid hit. Returning None from it
        means "do not cache". The recomputed value is written under the
        group's current token when one exists, so other members stay valid.
        """
        lookup = self.read_grouped(group, key)
        if lookup.is_valid:
            return lookup.value

        value = compute()
        if value is not None:
            self.write_grouped(group, key, value, ttl, lookup.ref)
        return value

    def invalidate_group(self, group: str, ttl: TTLLike = TTL_FOREVER) -> bool:
        """Replace the group's token, making every current member stale."""
        ref = self._ref_factory()
        try:
            ok = self._store.set(group, ref, ttl)
        except StoreError as e:
            logger.error(f"Invalidate error for group {group}: {e}")
            self.stats.record("store_error", group, group=group, detail=str(e))
            return False

        if ok:
            self.stats.record("invalidate", group, group=group)
            logger.info(f"Invalidated group {group} (ref={ref})")
        return ok
