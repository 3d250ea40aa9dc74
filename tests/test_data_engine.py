# tests/test_data_engine.py
from __future__ import annotations

import asyncio
import random
import time
from datetime import datetime, timezone

import httpx
import pytest

from config import Settings
from core.data_engine import MarketDataEngine
from core.errors import InstrumentNotFound
from core.exchanges import COUNTRY_SEEDS, CRYPTO_PAIRS, EXCHANGES, HOT_EVENTS, MOVERS, REMAINING_COUNTRIES
from core.schemas import QuoteSource
from tests.conftest import chart_body, requested_pairs, ticker_row

YAHOO_HOST = "query1.finance.yahoo.com"
BINANCE_HOST = "api.binance.com"


class Upstream:
    """Routes mock requests by host; symbols in `fail` answer 500."""

    def __init__(self):
        self.fail_symbols = set()
        self.missing_pairs = set()
        self.binance_down = False
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.host == YAHOO_HOST:
            symbol = request.url.path.rsplit("/", 1)[-1]
            if symbol in self.fail_symbols:
                return httpx.Response(500, text="upstream error")
            return httpx.Response(200, json=chart_body(price=105.0, prev_close=100.0))
        if request.url.host == BINANCE_HOST:
            if self.binance_down:
                return httpx.Response(503)
            pairs = [p for p in requested_pairs(request) if p not in self.missing_pairs]
            return httpx.Response(200, json=[ticker_row(p, 100.0, 2.5) for p in pairs])
        return httpx.Response(404)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def engine(settings, mock_client, upstream, clock):
    return MarketDataEngine(
        settings,
        client=mock_client(upstream),
        rng=random.Random(2024),
        clock=clock,
        now=lambda: datetime(2024, 1, 10, 15, 0, tzinfo=timezone.utc),
        exchanges=EXCHANGES[:5],
    )


@pytest.mark.asyncio
async def test_all_instruments_returned_with_one_failure(engine, upstream):
    failing = EXCHANGES[2]
    upstream.fail_symbols.add(failing.yahoo_symbol)

    snaps = await engine.get_exchanges()

    assert [s.id for s in snaps] == [e.id for e in EXCHANGES[:5]]
    degraded = [s for s in snaps if s.source is not QuoteSource.LIVE]
    assert [s.id for s in degraded] == [failing.id]
    assert degraded[0].source in (QuoteSource.STALE, QuoteSource.SYNTHETIC)


@pytest.mark.asyncio
async def test_failure_after_success_serves_stale(engine, upstream, clock):
    await engine.get_exchanges()
    clock.advance(engine.settings.cache_ttl_sec + 1)

    failing = EXCHANGES[0]
    upstream.fail_symbols.add(failing.yahoo_symbol)
    snaps = {s.id: s for s in await engine.get_exchanges()}

    assert snaps[failing.id].source is QuoteSource.STALE
    assert snaps[failing.id].index_value == "105.00"
    assert sum(1 for s in snaps.values() if s.source is QuoteSource.LIVE) == 4


@pytest.mark.asyncio
async def test_fresh_cache_makes_no_upstream_calls(engine, upstream):
    await engine.get_exchanges()
    n = len(upstream.calls)
    await engine.get_exchanges()
    assert len(upstream.calls) == n


@pytest.mark.asyncio
async def test_exchange_snapshot_fields(engine):
    snap = await engine.get_exchange("nyse")
    data = snap.model_dump(mode="json", by_alias=True)

    assert data["id"] == "nyse"
    assert data["currency"] == "USD"
    assert data["indexValue"] == "105.00"
    assert data["percentageChange"] == 5.0
    assert data["sentimentPolarity"] == "positive"
    assert 80 <= data["heatScore"] < 100
    assert data["sparkline"] == [100.0, 101.5, 104.0]
    assert data["previousClose"] == 100.0
    # Wednesday 15:00 UTC == 10:00 New York
    assert data["isOpen"] is True
    assert data["source"] == "live"


@pytest.mark.asyncio
async def test_unknown_exchange_raises_not_found(engine):
    with pytest.raises(InstrumentNotFound):
        await engine.get_exchange("atlantis")


@pytest.mark.asyncio
@pytest.mark.parametrize("exchange_id", ["NYSE", " nyse", "tadawul"])
async def test_exchange_lookup_is_exact_and_scoped_to_universe(engine, exchange_id):
    # tadawul exists globally but not in this engine's five-exchange universe
    with pytest.raises(InstrumentNotFound):
        await engine.get_exchange(exchange_id)


@pytest.mark.asyncio
async def test_exchange_fetches_overlap_and_hung_upstream_is_bounded(mock_client):
    universe = EXCHANGES[:6]
    hung = universe[1].yahoo_symbol

    async def slow(request: httpx.Request) -> httpx.Response:
        symbol = request.url.path.rsplit("/", 1)[-1]
        await asyncio.sleep(30.0 if symbol == hung else 0.4)
        return httpx.Response(200, json=chart_body(price=105.0, prev_close=100.0))

    s = Settings(_env_file=None, groq_api_key=None, upstream_timeout_sec=1.0)
    engine = MarketDataEngine(s, client=mock_client(slow), rng=random.Random(7), exchanges=universe)

    started = time.perf_counter()
    snaps = await engine.get_exchanges()
    elapsed = time.perf_counter() - started

    # sequential would be >= 5 * 0.4 + 1.0
    assert elapsed < 2.0
    assert [snap.id for snap in snaps] == [e.id for e in universe]
    live = [snap.id for snap in snaps if snap.source is QuoteSource.LIVE]
    assert len(live) == 5
    assert universe[1].id not in live
    await engine.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("attempts, expected_source, expected_calls", [(1, QuoteSource.SYNTHETIC, 1), (2, QuoteSource.LIVE, 2)])
async def test_yahoo_retry_setting_reaches_provider(mock_client, monkeypatch, attempts, expected_source, expected_calls):
    calls = []

    def flaky(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json=chart_body(price=105.0, prev_close=100.0))

    async def no_sleep(attempt: int) -> None:
        return None

    monkeypatch.setattr("core.providers.yahoo_chart_provider._sleep_backoff", no_sleep)

    s = Settings(_env_file=None, groq_api_key=None, yahoo_retry_attempts=attempts)
    engine = MarketDataEngine(s, client=mock_client(flaky), rng=random.Random(3), exchanges=EXCHANGES[:1])
    assert engine.yahoo.retry_attempts == attempts

    snap = await engine.get_exchange(EXCHANGES[0].id)

    assert snap.source is expected_source
    assert len(calls) == expected_calls
    await engine.aclose()


@pytest.mark.asyncio
async def test_crypto_batch_one_call_and_missing_pair_synthetic(engine, upstream):
    missing = CRYPTO_PAIRS[3].pair
    upstream.missing_pairs.add(missing)

    quotes = await engine.get_crypto()

    binance_calls = [r for r in upstream.calls if r.url.host == BINANCE_HOST]
    assert len(binance_calls) == 1
    assert [q.pair for q in quotes] == [p.pair for p in CRYPTO_PAIRS]
    by_pair = {q.pair: q for q in quotes}
    assert by_pair[missing].source is QuoteSource.SYNTHETIC
    assert by_pair["BTCUSDT"].source is QuoteSource.LIVE
    assert by_pair["BTCUSDT"].symbol == "BTC"
    assert by_pair["BTCUSDT"].usd_24h_change == 2.5
    assert by_pair["BTCUSDT"].sentiment_polarity.value == "positive"


@pytest.mark.asyncio
async def test_crypto_batch_failure_serves_stale_then_synthetic(engine, upstream, clock):
    missing = CRYPTO_PAIRS[0].pair
    upstream.missing_pairs.add(missing)
    await engine.get_crypto()

    clock.advance(engine.settings.cache_ttl_sec + 1)
    upstream.binance_down = True
    by_pair = {q.pair: q for q in await engine.get_crypto()}

    assert by_pair[missing].source is QuoteSource.SYNTHETIC
    assert all(q.source is QuoteSource.STALE for p, q in by_pair.items() if p != missing)


def test_market_movers(engine):
    movers = engine.get_market_movers()

    assert {m.ticker for m in movers} == {t for t, _, _ in MOVERS}
    changes = [abs(m.change_pct) for m in movers]
    assert changes == sorted(changes, reverse=True)
    for m in movers:
        assert -4.0 <= m.change_pct <= 6.0
        assert 5_000_000 <= m.volume < 85_000_000
        assert m.price > 0


def test_country_activity(engine):
    activity = engine.get_country_activity()

    assert set(COUNTRY_SEEDS) <= set(activity)
    assert set(REMAINING_COUNTRIES) <= set(activity)
    assert all(isinstance(v, int) and 0 <= v <= 100 for v in activity.values())
    assert 60 <= activity["US"] <= 100
    assert all(25 <= activity[c] <= 55 for c in REMAINING_COUNTRIES if c not in COUNTRY_SEEDS)


def test_hot_events_are_static(engine):
    events = engine.get_hot_events()
    assert [e.id for e in events] == [e.id for e in HOT_EVENTS]
    events[0].title = "changed"
    assert engine.get_hot_events()[0].title == HOT_EVENTS[0].title


@pytest.mark.asyncio
async def test_ai_context_uses_cache_only(engine, upstream):
    ctx = engine.build_ai_context()
    assert upstream.calls == []
    assert len(ctx["exchanges"]) == 5
    assert "index_value" not in ctx["exchanges"][0]
    assert len(ctx["movers"]) == 6
    assert [c["pair"] for c in ctx["crypto"]] == [p.pair for p in CRYPTO_PAIRS[:5]]

    await engine.get_exchanges()
    n = len(upstream.calls)
    ctx = engine.build_ai_context()
    assert len(upstream.calls) == n
    assert ctx["exchanges"][0]["index_value"] == "105.00"
    assert ctx["exchanges"][0]["percentage_change"] == 5.0


@pytest.mark.asyncio
async def test_cache_stats_and_close(engine):
    await engine.get_exchanges()
    stats = engine.cache_stats()
    assert stats["quotes"]["total_items"] == 5
    assert stats["quotes"]["fresh_items"] == 5
    assert stats["quotes"]["ttl_seconds"] == engine.settings.cache_ttl_sec
    assert stats["crypto"]["total_items"] == 0
    await engine.aclose()
