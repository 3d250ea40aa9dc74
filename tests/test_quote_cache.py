# tests/test_quote_cache.py
from __future__ import annotations

import random

from core.metrics import derive_quote
from core.quote_cache import QuoteCache
from core.schemas import RawQuote


def _payload(value: float = 101.0):
    return derive_quote(RawQuote(symbol="^GSPC", current_value=value, previous_close=100.0), random.Random(0))


def test_get_absent_returns_none(clock):
    cache = QuoteCache(ttl_seconds=120, clock=clock)
    assert cache.get("^GSPC") is None
    assert "^GSPC" not in cache
    assert cache.is_fresh(None) is False


def test_put_stamps_clock_and_is_fresh_until_ttl(clock):
    cache = QuoteCache(ttl_seconds=120, clock=clock)
    entry = cache.put("^GSPC", _payload())
    assert entry.fetched_at == clock()
    assert cache.get("^GSPC") is entry

    clock.advance(119)
    assert cache.is_fresh(cache.get("^GSPC"))

    clock.advance(1)
    # now - fetched_at == ttl is no longer fresh
    assert not cache.is_fresh(cache.get("^GSPC"))


def test_stale_entries_are_kept_not_evicted(clock):
    cache = QuoteCache(ttl_seconds=10, clock=clock)
    cache.put("^FTSE", _payload())
    clock.advance(10_000)
    entry = cache.get("^FTSE")
    assert entry is not None
    assert not cache.is_fresh(entry)
    assert len(cache) == 1


def test_put_overwrites_unconditionally(clock):
    cache = QuoteCache(ttl_seconds=120, clock=clock)
    cache.put("^N225", _payload(101.0))
    clock.advance(5)
    cache.put("^N225", _payload(99.0))
    entry = cache.get("^N225")
    assert entry.payload.current_value == 99.0
    assert entry.fetched_at == clock()
    assert len(cache) == 1


def test_explicit_ttl_overrides_default(clock):
    cache = QuoteCache(ttl_seconds=120, clock=clock)
    entry = cache.put("^HSI", _payload())
    clock.advance(30)
    assert cache.is_fresh(entry)
    assert not cache.is_fresh(entry, ttl=10)


def test_stats(clock):
    cache = QuoteCache(ttl_seconds=60, max_size=50, clock=clock)
    cache.put("a", _payload())
    clock.advance(100)
    cache.put("b", _payload())
    cache.record("hits")
    cache.record("misses")

    stats = cache.get_stats()
    assert stats["total_items"] == 2
    assert stats["fresh_items"] == 1
    assert stats["stale_items"] == 1
    assert stats["ttl_seconds"] == 60
    assert stats["max_size"] == 50
    assert stats["performance"]["updates"] == 2
    assert stats["performance"]["hit_rate"] == 50.0
