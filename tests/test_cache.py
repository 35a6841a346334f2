from __future__ import annotations

import json

from tripguide.services.cache import TTLCache, make_cache_key, search_cache_tag
from tripguide.services.storage import MemoryKeyValueStore, SqliteKeyValueStore


def test_ttl_cache_set_get(cache):
    payload = [{"id": 1, "type": "node", "tags": {"name": "Nyhavn"}}]
    cache.set("key", payload)
    assert cache.get("key") == payload


def test_ttl_cache_expired_entry_is_removed_on_read(cache, clock):
    cache.set("key", ["value"])

    clock.now += 24 * 60 * 60 + 1
    assert cache.get("key") is None
    assert cache.store.get_item("key") is None


def test_ttl_cache_entry_valid_at_exact_ttl(cache, clock):
    cache.set("key", "value")
    clock.now += 24 * 60 * 60
    assert cache.get("key") == "value"


def test_ttl_cache_persists_data_and_epoch_ms_timestamp(cache, clock):
    cache.set("key", {"a": 1})
    entry = json.loads(cache.store.get_item("key"))
    assert entry == {"data": {"a": 1}, "timestamp": int(clock.now * 1000)}


def test_ttl_cache_write_failure_is_swallowed(clock):
    cache = TTLCache(MemoryKeyValueStore(max_size=1), ttl_s=60, clock=clock)
    cache.set("a", "one")
    cache.set("b", "two")  # store is full

    assert cache.get("a") == "one"
    assert cache.get("b") is None


def test_ttl_cache_full_store_makes_room_from_expired_entries(clock):
    cache = TTLCache(MemoryKeyValueStore(max_size=1), ttl_s=60, clock=clock)
    cache.set("a", "one")
    clock.now += 61
    cache.set("b", "two")

    assert cache.store.keys() == ["b"]
    assert cache.get("b") == "two"


def test_ttl_cache_unserialisable_payload_is_swallowed(cache):
    cache.set("key", object())
    assert cache.get("key") is None


def test_ttl_cache_overwrite_replaces_entry(cache, clock):
    cache.set("key", "old")
    clock.now += 100
    cache.set("key", "new")
    assert cache.get("key") == "new"


def test_ttl_cache_corrupt_entry_is_a_miss(cache):
    cache.store.set_item("key", "not json")
    assert cache.get("key") is None


def test_sqlite_store_round_trip(tmp_path, clock):
    store = SqliteKeyValueStore(str(tmp_path / "cache.sqlite"))
    cache = TTLCache(store, ttl_s=60, clock=clock)
    cache.set("k", [1, 2, 3])
    assert cache.get("k") == [1, 2, 3]
    assert store.keys() == ["k"]

    store.close()
    reopened = TTLCache(SqliteKeyValueStore(str(tmp_path / "cache.sqlite")), ttl_s=60, clock=clock)
    assert reopened.get("k") == [1, 2, 3]


def test_make_cache_key_rounds_to_three_decimals():
    assert make_cache_key(55.6761, 12.5683, "markets") == "overpass_markets_55.676_12.568"
    assert make_cache_key(55.67612, 12.56831, "markets") == make_cache_key(55.6761, 12.5683, "markets")


def test_search_cache_tag_includes_every_parameter():
    assert search_cache_tag("food-dinner", 6, None) == "food-dinner-nearby-r6km"
    assert search_cache_tag("tourist-spots", 10, "DK") == "tourist-spots-in-DK-r10km"
    assert search_cache_tag("food-dinner", 6, None) != search_cache_tag("food-lunch", 6, None)
    assert search_cache_tag("markets", 4, None) != search_cache_tag("markets", 6, None)


def test_ttl_cache_corrupt_entry_is_removed_and_frees_room(clock):
    cache = TTLCache(MemoryKeyValueStore(max_size=1), ttl_s=60, clock=clock)
    cache.store.set_item("broken", '{"data": 1}')

    assert cache.get("broken") is None
    assert cache.store.get_item("broken") is None

    cache.store.set_item("broken", "not json")
    cache.set("fresh", "value")
    assert cache.store.keys() == ["fresh"]
