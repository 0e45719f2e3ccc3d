#!/usr/bin/env python3
"""
Unit tests for group invalidation
Token matching, stale detection, independent TTL expiry, re-stitching
"""

import itertools
import sys
import time
from pathlib import Path
from unittest.mock import Mock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from tokencache.cache import Cache
from tokencache.groups import GroupEngine, GroupLookup, GroupState, new_reference
from tokencache.item import TTL_FOREVER, CacheItem
from tokencache.pools import BlackholeStore, MemoryStore
from tokencache.store import Store, StoreError


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(store):
    # deterministic tokens: 1, 2, 3, ...
    return GroupEngine(store, ref_factory=itertools.count(1).__next__)


class TestWriteGrouped:
    def test_writes_token_and_envelope(self, engine, store):
        assert engine.write_grouped("g", "k", "v1", 300)
        assert store.get("g") == 1
        assert store.get("k") == (1, "v1")

    def test_explicit_ref_is_used(self, engine, store):
        engine.write_grouped("g", "k", "v1", 300, ref=42)
        assert store.get("g") == 42
        assert store.get("k") == (42, "v1")

    def test_single_batch_with_uniform_ttl(self):
        pool = Mock(spec=Store)
        pool.set_multiple.return_value = True
        engine = GroupEngine(pool, ref_factory=lambda: 7)

        assert engine.write_grouped("g", "k", "v1", 120)
        pool.set_multiple.assert_called_once_with({"g": 7, "k": (7, "v1")}, 120)

    def test_batch_failure_returns_false(self):
        pool = Mock(spec=Store)
        pool.set_multiple.return_value = False
        assert not GroupEngine(pool).write_grouped("g", "k", "v1")

    def test_default_reference_is_a_clock_reading(self):
        before = time.time_ns()
        assert new_reference() >= before


class TestReadGrouped:
    def test_valid_after_write(self, engine):
        engine.write_grouped("g", "k", "v1", 300)
        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.VALID
        assert lookup.value == "v1"

    def test_token_bump_makes_member_stale(self, engine, store):
        engine.write_grouped("g", "k", "v1", 300)
        store.set("g", 99, 300)

        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.STALE
        assert lookup.value is None
        assert lookup.ref == 99

    def test_invalidate_group(self, engine):
        engine.write_grouped("g", "a", "va", 300)
        engine.write_grouped("g", "b", "vb", 300, ref=1)

        assert engine.invalidate_group("g")

        assert engine.read_grouped("g", "a").state is GroupState.STALE
        assert engine.read_grouped("g", "b").state is GroupState.STALE

    def test_expired_member_with_matching_token_is_absent(self, engine, store, monkeypatch):
        engine.write_grouped("g", "k", "v1", 10)
        # keep the token alive past the member's own ttl
        store.set("g", 1, TTL_FOREVER)

        future = time.time() + 11
        monkeypatch.setattr("time.time", lambda: future)

        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.ABSENT
        assert lookup.ref == 1

    def test_missing_member_reports_current_token(self, engine, store):
        store.set("g", 5)
        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.ABSENT
        assert lookup.ref == 5

    def test_missing_group_makes_member_stale(self, engine, store):
        engine.write_grouped("g", "k", "v1", 300)
        store.delete("g")

        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.STALE
        assert lookup.ref is None

    def test_nothing_stored_is_absent(self, engine):
        assert engine.read_grouped("g", "k") == GroupLookup(GroupState.ABSENT)

    @pytest.mark.parametrize("garbage", ["wrongvalue", ["wrongvalue"], (1, 2, 3), "ab", 17, {"ref": 1, "val": 2}])
    def test_malformed_envelope_is_absent(self, engine, store, garbage):
        store.set("g", 1)
        store.set("k", garbage)

        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.ABSENT
        assert lookup.value is None

    def test_list_envelope_is_accepted(self, engine, store):
        # serializers such as JSON hand tuples back as lists
        store.set("g", 1)
        store.set("k", [1, "v1"])
        assert engine.read_grouped("g", "k").value == "v1"

    def test_store_failure_is_absent(self):
        pool = Mock(spec=Store)
        pool.get_items.side_effect = StoreError("timeout")
        engine = GroupEngine(pool)

        assert engine.read_grouped("g", "k").state is GroupState.ABSENT
        assert engine.stats.store_errors == 1

    def test_non_mapping_result_is_absent(self):
        pool = Mock(spec=Store)
        pool.get_items.return_value = [CacheItem("g", 1), CacheItem("k", (1, "v"))]
        assert GroupEngine(pool).read_grouped("g", "k").state is GroupState.ABSENT

    def test_incomplete_result_is_absent(self):
        pool = Mock(spec=Store)
        pool.get_items.return_value = {"g": CacheItem("g", 1)}
        assert GroupEngine(pool).read_grouped("g", "k").state is GroupState.ABSENT

    def test_mocked_hit(self):
        pool = Mock(spec=Store)
        pool.get_items.return_value = {
            "grp1": CacheItem("grp1", 115),
            "key1": CacheItem("key1", (115, "val1")),
        }
        engine = GroupEngine(pool)

        assert engine.get_grouped("grp1", "key1") == "val1"
        pool.get_items.assert_called_once_with(["grp1", "key1"])


class TestGetGroupElse:
    def test_valid_member_does_not_compute(self, engine):
        engine.write_grouped("g", "k", "v1", 300)
        compute = Mock()

        assert engine.get_group_else("g", "k", compute) == "v1"
        compute.assert_not_called()

    def test_stale_member_rejoins_current_generation(self, engine, store):
        engine.write_grouped("g", "k", "v1", 300)
        engine.invalidate_group("g")
        token = store.get("g")

        assert engine.get_group_else("g", "k", lambda: "v2", 300) == "v2"

        assert store.get("g") == token
        lookup = engine.read_grouped("g", "k")
        assert lookup.state is GroupState.VALID
        assert lookup.value == "v2"

    def test_new_member_keeps_siblings_valid(self, engine):
        engine.write_grouped("g", "a", "va", 300)
        engine.get_group_else("g", "b", lambda: "vb", 300)

        assert engine.read_grouped("g", "a").is_valid
        assert engine.read_grouped("g", "b").is_valid

    def test_absent_group_gets_fresh_token(self, engine, store):
        assert engine.get_group_else("g", "k", lambda: "v1") == "v1"
        assert store.get("g") == 1
        assert engine.read_grouped("g", "k").is_valid

    def test_none_is_not_cached(self, engine, store):
        assert engine.get_group_else("g", "k", lambda: None) is None
        assert not store.has("k")
        assert not store.has("g")

    def test_false_is_cached(self, engine):
        engine.get_group_else("g", "k", lambda: False)
        compute = Mock()
        assert engine.get_group_else("g", "k", compute) is False
        compute.assert_not_called()

    def test_discarding_store_still_returns_value(self):
        engine = GroupEngine(BlackholeStore())
        assert engine.get_group_else("g", "k", lambda: "v1") == "v1"

    def test_rejected_write_still_returns_value(self):
        pool = Mock(spec=Store)
        pool.get_items.return_value = {"g": CacheItem("g", hit=False), "k": CacheItem("k", hit=False)}
        pool.set_multiple.return_value = False
        engine = GroupEngine(pool)

        assert engine.get_group_else("g", "k", lambda: "v1") == "v1"
        assert engine.stats.write_failures == 1


class TestCacheGroupDelegation:
    def test_facade_shares_engine_stats(self):
        store = MemoryStore()
        cache = Cache(store, groups=GroupEngine(store, ref_factory=itertools.count(1).__next__))
        cache.write_grouped("g", "k", "v1")
        assert cache.get_grouped("g", "k") == "v1"

        cache.invalidate_group("g")
        assert cache.read_grouped("g", "k").state is GroupState.STALE

        stats = cache.get_stats()
        assert stats["writes"] == 1
        assert stats["hits"] == 1
        assert stats["stale"] == 1
        assert stats["invalidations"] == 1
