# core/providers/yahoo_chart_provider.py
"""
core/providers/yahoo_chart_provider.py
===========================================================
Yahoo Chart Provider (NO yfinance) — quote-chart upstream adapter

- Import-safe (no side effects, no engine imports)
- Defensive parsing for Yahoo chart errors / partial payloads
- Optional retry on 429 / 5xx with jittered backoff (YAHOO_RETRY_ATTEMPTS,
  default 1 = no retry; the fallback resolver still bounds the whole call)
- Raises UpstreamUnavailable / UpstreamMalformed instead of returning
  error dicts, so the caller can pick a fallback tier

Returns RawQuote:
  symbol, current_value, previous_close, series (intraday closes, nulls dropped), currency
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from core.errors import UpstreamMalformed, UpstreamUnavailable
from core.schemas import RawQuote

logger = logging.getLogger("core.providers.yahoo_chart")

PROVIDER_NAME = "yahoo_chart"

YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
    "Referer": "https://finance.yahoo.com/",
}


# -----------------------------------------------------------------------------
# Safe parsers
# -----------------------------------------------------------------------------
def _safe_float(x: Any) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def _get0(lst: Any) -> Dict[str, Any]:
    if isinstance(lst, list) and lst:
        x = lst[0]
        return x if isinstance(x, dict) else {}
    return {}


def _clean_series(series: Any) -> List[float]:
    if not isinstance(series, list):
        return []
    out: List[float] = []
    for v in series:
        f = _safe_float(v)
        if f is not None:
            out.append(f)
    return out


def _extract_chart_error(data: Dict[str, Any]) -> Optional[str]:
    chart = data.get("chart") or {}
    err = chart.get("error") if isinstance(chart, dict) else None
    if not err:
        return None
    if not isinstance(err, dict):
        return str(err)
    code = str(err.get("code") or "").strip()
    desc = str(err.get("description") or "").strip()
    if code and desc:
        return f"{code}: {desc}"
    return code or desc or "yahoo_chart error"


async def _sleep_backoff(attempt: int) -> None:
    # jittered exponential backoff, capped
    base = 0.25 * (2**attempt)
    await asyncio.sleep(min(2.5, base + random.random() * 0.35))


def build_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers=DEFAULT_HEADERS,
        follow_redirects=True,
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
    )


# -----------------------------------------------------------------------------
# Payload parsing
# -----------------------------------------------------------------------------
def parse_chart_payload(symbol: str, data: Any) -> RawQuote:
    """
    Yahoo v8 chart JSON -> RawQuote.

    previous close: meta.chartPreviousClose, then meta.previousClose, else 0
    current value:  meta.regularMarketPrice, then last close, then previous close
    """
    if not isinstance(data, dict) or not data:
        raise UpstreamMalformed("empty response", provider=PROVIDER_NAME, symbol=symbol)

    cerr = _extract_chart_error(data)
    if cerr:
        raise UpstreamMalformed(cerr, provider=PROVIDER_NAME, symbol=symbol)

    chart = data.get("chart") or {}
    result0 = _get0(chart.get("result") if isinstance(chart, dict) else None)
    if not result0:
        raise UpstreamMalformed("no data", provider=PROVIDER_NAME, symbol=symbol)

    meta = result0.get("meta") or {}
    if not isinstance(meta, dict):
        raise UpstreamMalformed("meta is not an object", provider=PROVIDER_NAME, symbol=symbol)

    quote0 = _get0((result0.get("indicators") or {}).get("quote"))
    closes = _clean_series(quote0.get("close"))

    prev_close = _safe_float(meta.get("chartPreviousClose"))
    if prev_close is None:
        prev_close = _safe_float(meta.get("previousClose"))
    if prev_close is None:
        prev_close = 0.0

    price = _safe_float(meta.get("regularMarketPrice"))
    if price is None and closes:
        price = closes[-1]
    if price is None:
        price = prev_close
    if price == 0.0 and prev_close == 0.0:
        raise UpstreamMalformed("no price", provider=PROVIDER_NAME, symbol=symbol)

    currency = meta.get("currency")
    return RawQuote(
        symbol=symbol,
        current_value=price,
        previous_close=prev_close,
        series=closes,
        currency=str(currency) if currency else None,
    )


# -----------------------------------------------------------------------------
# Public: single quote
# -----------------------------------------------------------------------------
async def yahoo_chart_quote(
    symbol: str,
    *,
    client: httpx.AsyncClient,
    url_template: str = YAHOO_CHART_URL,
    range_: str = "1d",
    interval: str = "15m",
    retry_attempts: int = 1,
) -> RawQuote:
    sym = (symbol or "").strip()
    if not sym:
        raise UpstreamMalformed("empty symbol", provider=PROVIDER_NAME)

    url = url_template.format(symbol=quote(sym, safe=""))
    params = {"range": range_, "interval": interval}

    attempts = max(1, int(retry_attempts))
    for attempt in range(attempts):
        try:
            r = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            if attempt < attempts - 1:
                await _sleep_backoff(attempt)
                continue
            raise UpstreamUnavailable(f"network error: {exc}", provider=PROVIDER_NAME, symbol=sym) from exc

        if r.status_code == 429 or 500 <= r.status_code < 600:
            if attempt < attempts - 1:
                await _sleep_backoff(attempt)
                continue
            raise UpstreamUnavailable(f"HTTP {r.status_code}", provider=PROVIDER_NAME, symbol=sym)

        if r.status_code >= 400:
            # Yahoo answers 404 with a chart.error body for unknown symbols
            try:
                body = r.json()
            except ValueError:
                body = None
            cerr = _extract_chart_error(body) if isinstance(body, dict) else None
            raise UpstreamMalformed(cerr or f"HTTP {r.status_code}", provider=PROVIDER_NAME, symbol=sym)

        try:
            data = r.json()
        except ValueError as exc:
            raise UpstreamMalformed("invalid JSON", provider=PROVIDER_NAME, symbol=sym) from exc

        return parse_chart_payload(sym, data)

    raise UpstreamUnavailable("retries exhausted", provider=PROVIDER_NAME, symbol=sym)


class YahooChartProvider:
    """Holds the shared client + request shape for the engine."""

    name = PROVIDER_NAME

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url_template: str = YAHOO_CHART_URL,
        range_: str = "1d",
        interval: str = "15m",
        retry_attempts: int = 1,
    ) -> None:
        self.client = client
        self.url_template = url_template
        self.range_ = range_
        self.interval = interval
        self.retry_attempts = retry_attempts

    async def fetch(self, symbol: str) -> RawQuote:
        return await yahoo_chart_quote(
            symbol,
            client=self.client,
            url_template=self.url_template,
            range_=self.range_,
            interval=self.interval,
            retry_attempts=self.retry_attempts,
        )


__all__ = [
    "YahooChartProvider",
    "yahoo_chart_quote",
    "parse_chart_payload",
    "build_client",
    "YAHOO_CHART_URL",
    "PROVIDER_NAME",
]
