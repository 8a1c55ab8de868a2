# tests/test_cache.py

"""
Tests for the TTL cache used by the session store.
"""

import pytest

from core.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=60, clock=clock)


def test_cache_set_and_get(cache):
    cache.set("test_key", "test_value", ttl_seconds=60)
    assert cache.get("test_key") == "test_value"


def test_cache_expiration(cache, clock):
    cache.set("expiring_key", "expired_value", ttl_seconds=1)
    assert cache.get("expiring_key") == "expired_value"

    clock.advance(1)

    assert cache.get("expiring_key") is None
    assert len(cache) == 0


def test_default_ttl(cache, clock):
    cache.set("key", "value")
    clock.advance(59)
    assert cache.get("key") == "value"
    clock.advance(1)
    assert cache.get("key") is None


def test_cache_pop(cache):
    cache.set("key", "value")
    assert cache.pop("key") == "value"
    assert cache.pop("key") is None
    assert cache.get("key") is None


def test_cache_clear(cache):
    cache.set("key1", "value1")
    cache.set("key2", "value2")

    cache.clear()

    assert cache.get("key1") is None
    assert len(cache) == 0


def test_cleanup_expired(cache, clock):
    cache.set("short", 1, ttl_seconds=5)
    cache.set("long", 2, ttl_seconds=500)
    clock.advance(10)

    assert cache.cleanup_expired() == 1
    assert cache.get("long") == 2


def test_set_sweeps_entries_nobody_reads(cache, clock):
    for i in range(1000):
        cache.set(f"token-{i}", i)
    assert len(cache) == 1000

    clock.advance(61)
    cache.set("fresh", "value")

    assert len(cache) == 1
    assert cache.get("fresh") == "value"


def test_sweep_keeps_live_entries(cache, clock):
    cache.set("long", "value", ttl_seconds=3600)
    cache.set("short", "value", ttl_seconds=1)

    clock.advance(61)
    cache.set("fresh", "value")

    assert len(cache) == 2
    assert cache.get("long") == "value"
