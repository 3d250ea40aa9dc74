# core/providers/binance_ticker_provider.py
"""
core/providers/binance_ticker_provider.py
===========================================================
Binance public 24h ticker — batched ticker-snapshot adapter (no key)

- One GET for the whole pair set: /api/v3/ticker/24hr?symbols=["BTCUSDT",...]
- Rows parsed into TickerSnapshot keyed by pair
- Rows that fail to parse are skipped (logged at DEBUG); the caller degrades
  those pairs individually
- Transport / status failures raise UpstreamUnavailable, shape failures
  raise UpstreamMalformed
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, Iterable, List, Optional

import httpx

from core.errors import UpstreamMalformed, UpstreamUnavailable
from core.schemas import TickerSnapshot

logger = logging.getLogger("core.providers.binance_ticker")

PROVIDER_NAME = "binance_ticker"

BINANCE_TICKER_URL = "https://api.binance.com/api/v3/ticker/24hr"


def _num(x: Any) -> Optional[float]:
    # Binance sends numbers as strings ("64123.01000000")
    if x is None or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def parse_ticker_row(row: Any) -> Optional[TickerSnapshot]:
    if not isinstance(row, dict):
        return None
    pair = str(row.get("symbol") or "").strip().upper()
    last = _num(row.get("lastPrice"))
    if not pair or last is None:
        return None
    return TickerSnapshot(
        pair=pair,
        last_price=last,
        change_pct_24h=_num(row.get("priceChangePercent")) or 0.0,
        volume_24h=_num(row.get("quoteVolume")) or 0.0,
        high_24h=_num(row.get("highPrice")) or last,
        low_24h=_num(row.get("lowPrice")) or last,
    )


def parse_ticker_payload(data: Any) -> Dict[str, TickerSnapshot]:
    if isinstance(data, dict):
        # single-symbol answers come back as a bare object; error bodies carry "code"/"msg"
        if "msg" in data and "lastPrice" not in data:
            raise UpstreamMalformed(str(data.get("msg")), provider=PROVIDER_NAME)
        data = [data]
    if not isinstance(data, list):
        raise UpstreamMalformed("expected a list of ticker rows", provider=PROVIDER_NAME)

    out: Dict[str, TickerSnapshot] = {}
    for row in data:
        snap = parse_ticker_row(row)
        if snap is None:
            logger.debug("skipping unparseable ticker row: %r", row)
            continue
        out[snap.pair] = snap
    return out


async def binance_ticker_snapshots(
    pairs: Iterable[str],
    *,
    client: httpx.AsyncClient,
    url: str = BINANCE_TICKER_URL,
) -> Dict[str, TickerSnapshot]:
    wanted: List[str] = [p.strip().upper() for p in pairs if p and p.strip()]
    if not wanted:
        return {}

    params = {"symbols": json.dumps(wanted, separators=(",", ":"))}
    try:
        r = await client.get(url, params=params)
    except httpx.HTTPError as exc:
        raise UpstreamUnavailable(f"network error: {exc}", provider=PROVIDER_NAME) from exc

    if r.status_code == 429 or r.status_code >= 500:
        raise UpstreamUnavailable(f"HTTP {r.status_code}", provider=PROVIDER_NAME)
    if r.status_code >= 400:
        raise UpstreamMalformed(f"HTTP {r.status_code}", provider=PROVIDER_NAME)

    try:
        data = r.json()
    except ValueError as exc:
        raise UpstreamMalformed("invalid JSON", provider=PROVIDER_NAME) from exc

    return parse_ticker_payload(data)


class BinanceTickerProvider:
    name = PROVIDER_NAME

    def __init__(self, client: httpx.AsyncClient, *, url: str = BINANCE_TICKER_URL) -> None:
        self.client = client
        self.url = url

    async def fetch_many(self, pairs: List[str]) -> Dict[str, TickerSnapshot]:
        return await binance_ticker_snapshots(pairs, client=self.client, url=self.url)


__all__ = [
    "BinanceTickerProvider",
    "binance_ticker_snapshots",
    "parse_ticker_payload",
    "parse_ticker_row",
    "BINANCE_TICKER_URL",
    "PROVIDER_NAME",
]
