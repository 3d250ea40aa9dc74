# tests/test_binance_provider.py
from __future__ import annotations

import httpx
import pytest

from core.errors import UpstreamMalformed, UpstreamUnavailable
from core.providers.binance_ticker_provider import BinanceTickerProvider, parse_ticker_payload
from tests.conftest import requested_pairs, ticker_row


def test_parse_rows_keyed_by_pair():
    out = parse_ticker_payload([ticker_row("BTCUSDT", 64000.0, 1.5), ticker_row("ETHUSDT", 3200.0, -2.0)])
    assert set(out) == {"BTCUSDT", "ETHUSDT"}
    btc = out["BTCUSDT"]
    assert btc.last_price == 64000.0
    assert btc.change_pct_24h == 1.5
    assert btc.volume_24h == 123456789.5
    assert btc.low_24h < btc.last_price < btc.high_24h


def test_unparseable_rows_are_skipped():
    rows = [ticker_row("BTCUSDT"), {"symbol": "ETHUSDT", "lastPrice": "n/a"}, "garbage"]
    assert list(parse_ticker_payload(rows)) == ["BTCUSDT"]


def test_error_body_is_malformed():
    with pytest.raises(UpstreamMalformed, match="Invalid symbol"):
        parse_ticker_payload({"code": -1121, "msg": "Invalid symbol."})


def test_non_list_payload_is_malformed():
    with pytest.raises(UpstreamMalformed):
        parse_ticker_payload("nope")


@pytest.mark.asyncio
async def test_single_batched_request(mock_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[ticker_row(p) for p in requested_pairs(request)])

    async with mock_client(handler) as client:
        out = await BinanceTickerProvider(client).fetch_many(["BTCUSDT", "ethusdt"])

    assert len(seen) == 1
    assert seen[0].url.path == "/api/v3/ticker/24hr"
    assert seen[0].url.params["symbols"] == '["BTCUSDT","ETHUSDT"]'
    assert set(out) == {"BTCUSDT", "ETHUSDT"}


@pytest.mark.asyncio
async def test_empty_pair_list_makes_no_call(mock_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with mock_client(handler) as client:
        assert await BinanceTickerProvider(client).fetch_many([]) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("status, exc", [(500, UpstreamUnavailable), (429, UpstreamUnavailable), (400, UpstreamMalformed)])
async def test_status_mapping(mock_client, status, exc):
    async with mock_client(lambda r: httpx.Response(status, json={"code": -1, "msg": "x"})) as client:
        with pytest.raises(exc):
            await BinanceTickerProvider(client).fetch_many(["BTCUSDT"])


@pytest.mark.asyncio
async def test_transport_error_is_unavailable(mock_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(UpstreamUnavailable):
            await BinanceTickerProvider(client).fetch_many(["BTCUSDT"])
