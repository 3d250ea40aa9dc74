# core/data_engine.py
"""
core/data_engine.py
===============================================================
MarketDataEngine — aggregation over the tracked universes (v1.0.0)

What this module guarantees
- ✅ One shared httpx.AsyncClient for every upstream (closed by aclose()).
- ✅ Exchange quotes fetched concurrently (asyncio.gather); one failing
     upstream never blocks or fails the others.
- ✅ Every live fetch goes through FallbackResolver: live -> stale -> synthetic.
- ✅ Crypto pairs resolved from ONE batched ticker call, tiered per pair.
- ✅ Movers / country activity / hot events are simulated locally (no network).
- ✅ build_ai_context() reads cached figures only, never calls upstream.
- ✅ Random source and clocks injectable for tests.

Used by app.state.engine (see main.py).
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from config import Settings, get_settings
from core.errors import InstrumentNotFound
from core.exchanges import (
    COUNTRY_SEEDS,
    CRYPTO_PAIRS,
    EXCHANGES,
    HOT_EVENTS,
    MOVER_BASE_MIN,
    MOVER_BASE_SPAN,
    MOVER_CHANGE_MIN,
    MOVER_CHANGE_SPAN,
    MOVER_VOLUME_MIN,
    MOVER_VOLUME_SPAN,
    MOVERS,
    REMAINING_COUNTRIES,
    REMAINING_SEED,
)
from core.fallback import FallbackResolver
from core.market_clock import is_open
from core.metrics import derive_crypto_quote, derive_quote, synthesize_crypto_quote, synthesize_quote
from core.providers.binance_ticker_provider import BinanceTickerProvider
from core.providers.yahoo_chart_provider import YahooChartProvider, build_client
from core.quote_cache import QuoteCache
from core.schemas import (
    CryptoPair,
    CryptoQuote,
    ExchangeDescriptor,
    ExchangeSnapshot,
    HotEvent,
    MarketMover,
    QuotePayload,
    RawQuote,
    TickerSnapshot,
)

ENGINE_VERSION = "1.0.0"
logger = logging.getLogger("core.data_engine")

AI_CONTEXT_EXCHANGES = 8
AI_CONTEXT_MOVERS = 6
AI_CONTEXT_CRYPTO = 5


class MarketDataEngine:
    """
    Aggregation engine used by app.state.engine (preferred by routers).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Optional[Callable[[], datetime]] = None,
        exchanges: Optional[Sequence[ExchangeDescriptor]] = None,
        crypto_pairs: Optional[Sequence[CryptoPair]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings

        self.rng = rng or random.Random()
        self._now = now

        self._owns_client = client is None
        self.client = client or build_client(max(s.upstream_timeout_sec, s.ticker_timeout_sec))

        self.exchanges: List[ExchangeDescriptor] = list(exchanges if exchanges is not None else EXCHANGES)
        self._exchanges_by_id: Dict[str, ExchangeDescriptor] = {e.id: e for e in self.exchanges}
        self.crypto_pairs: List[CryptoPair] = list(crypto_pairs if crypto_pairs is not None else CRYPTO_PAIRS)
        self._pairs_by_key: Dict[str, CryptoPair] = {p.pair: p for p in self.crypto_pairs}

        self.yahoo = YahooChartProvider(
            self.client,
            url_template=s.yahoo_chart_url,
            range_=s.yahoo_range,
            interval=s.yahoo_interval,
            retry_attempts=s.yahoo_retry_attempts,
        )
        self.binance = BinanceTickerProvider(self.client, url=s.binance_ticker_url)

        self.quote_cache: QuoteCache[QuotePayload] = QuoteCache(
            ttl_seconds=s.cache_ttl_sec, max_size=s.cache_max_size, clock=clock
        )
        self.crypto_cache: QuoteCache[CryptoQuote] = QuoteCache(
            ttl_seconds=s.cache_ttl_sec, max_size=s.cache_max_size, clock=clock
        )

        self.quotes: FallbackResolver[QuotePayload] = FallbackResolver(
            self.quote_cache,
            transform=self._derive_quote,
            synthesize=self._synthesize_quote,
            timeout=s.upstream_timeout_sec,
            provider=self.yahoo.name,
        )
        self.crypto: FallbackResolver[CryptoQuote] = FallbackResolver(
            self.crypto_cache,
            transform=self._derive_crypto,
            synthesize=self._synthesize_crypto,
            timeout=s.ticker_timeout_sec,
            provider=self.binance.name,
        )

        # per-process base prices, so movers drift around a stable level
        self._mover_base: Dict[str, float] = {
            ticker: self.rng.random() * MOVER_BASE_SPAN + MOVER_BASE_MIN for ticker, _, _ in MOVERS
        }

        logger.info(
            "MarketDataEngine init v%s | exchanges=%d | crypto_pairs=%d | ttl=%ss | upstream_timeout=%ss",
            ENGINE_VERSION,
            len(self.exchanges),
            len(self.crypto_pairs),
            s.cache_ttl_sec,
            s.upstream_timeout_sec,
        )

    # ------------------------------------------------------------------
    # Resolver hooks
    # ------------------------------------------------------------------
    def _derive_quote(self, key: str, raw: RawQuote) -> QuotePayload:
        return derive_quote(raw, self.rng)

    def _synthesize_quote(self, key: str) -> QuotePayload:
        return synthesize_quote(self.rng)

    def _pair(self, key: str) -> CryptoPair:
        p = self._pairs_by_key.get(key)
        if p is None:
            return CryptoPair(pair=key, symbol=key.replace("USDT", ""), name=key)
        return p

    def _derive_crypto(self, key: str, snap: TickerSnapshot) -> CryptoQuote:
        return derive_crypto_quote(self._pair(key), snap, self.rng)

    def _synthesize_crypto(self, key: str) -> CryptoQuote:
        return synthesize_crypto_quote(self._pair(key), self.rng)

    def _current_instant(self) -> Optional[datetime]:
        return self._now() if self._now is not None else None

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------
    def _snapshot(self, ex: ExchangeDescriptor, q: QuotePayload, at: Optional[datetime]) -> ExchangeSnapshot:
        return ExchangeSnapshot(
            id=ex.id,
            name=ex.name,
            index_name=ex.index_name,
            country=ex.country,
            timezone=ex.timezone,
            currency=ex.currency,
            open_time=ex.open_time,
            close_time=ex.close_time,
            latitude=ex.latitude,
            longitude=ex.longitude,
            is_open=is_open(ex.timezone, ex.open_time, ex.close_time, at),
            index_value=f"{q.current_value:.2f}",
            percentage_change=q.percentage_change,
            sentiment_polarity=q.sentiment_polarity,
            heat_score=q.heat_score,
            sparkline=list(q.recent_window),
            previous_close=q.previous_close,
            source=q.source,
        )

    async def _resolve_exchange(self, ex: ExchangeDescriptor, at: Optional[datetime]) -> ExchangeSnapshot:
        symbol = ex.yahoo_symbol
        q = await self.quotes.resolve(symbol, None, lambda: self.yahoo.fetch(symbol))
        return self._snapshot(ex, q, at)

    async def get_exchanges(self) -> List[ExchangeSnapshot]:
        at = self._current_instant()
        return list(await asyncio.gather(*(self._resolve_exchange(ex, at) for ex in self.exchanges)))

    async def get_exchange(self, exchange_id: str) -> ExchangeSnapshot:
        ex = self._exchanges_by_id.get(exchange_id)
        if ex is None:
            raise InstrumentNotFound(exchange_id)
        return await self._resolve_exchange(ex, self._current_instant())

    # ------------------------------------------------------------------
    # Crypto
    # ------------------------------------------------------------------
    async def get_crypto(self) -> List[CryptoQuote]:
        keys = [p.pair for p in self.crypto_pairs]
        resolved = await self.crypto.resolve_many(keys, None, self.binance.fetch_many)
        return [resolved[k] for k in keys]

    # ------------------------------------------------------------------
    # Simulated boards
    # ------------------------------------------------------------------
    def get_market_movers(self) -> List[MarketMover]:
        out: List[MarketMover] = []
        for ticker, name, sector in MOVERS:
            change = round(self.rng.random() * MOVER_CHANGE_SPAN + MOVER_CHANGE_MIN, 2)
            price = round(self._mover_base[ticker] * (1 + change / 100.0), 2)
            volume = int(math.floor(self.rng.random() * MOVER_VOLUME_SPAN + MOVER_VOLUME_MIN))
            out.append(MarketMover(ticker=ticker, name=name, sector=sector, price=price, change_pct=change, volume=volume))
        out.sort(key=lambda m: abs(m.change_pct), reverse=True)
        return out

    def get_country_activity(self) -> Dict[str, int]:
        activity: Dict[str, int] = {}
        for iso2, (base, span) in COUNTRY_SEEDS.items():
            activity[iso2] = _score(base + self.rng.random() * span)
        base, span = REMAINING_SEED
        for iso2 in REMAINING_COUNTRIES:
            if iso2 not in activity:
                activity[iso2] = _score(base + self.rng.random() * span)
        return activity

    def get_hot_events(self) -> List[HotEvent]:
        return [e.model_copy() for e in HOT_EVENTS]

    # ------------------------------------------------------------------
    # AI context (cache-only)
    # ------------------------------------------------------------------
    def build_ai_context(self) -> Dict[str, Any]:
        at = self._current_instant()

        exchanges: List[Dict[str, Any]] = []
        for ex in self.exchanges[:AI_CONTEXT_EXCHANGES]:
            row: Dict[str, Any] = {
                "id": ex.id,
                "country": ex.country,
                "index": ex.index_name,
                "is_open": is_open(ex.timezone, ex.open_time, ex.close_time, at),
            }
            entry = self.quote_cache.get(ex.yahoo_symbol)
            if entry is not None:
                q = entry.payload
                row.update(
                    {
                        "index_value": f"{q.current_value:.2f}",
                        "percentage_change": q.percentage_change,
                        "sentiment_polarity": q.sentiment_polarity.value,
                    }
                )
            exchanges.append(row)

        movers = [
            {"ticker": m.ticker, "sector": m.sector, "price": m.price, "change_pct": m.change_pct}
            for m in self.get_market_movers()[:AI_CONTEXT_MOVERS]
        ]

        crypto: List[Dict[str, Any]] = []
        for p in self.crypto_pairs[:AI_CONTEXT_CRYPTO]:
            row = {"symbol": p.symbol, "name": p.name, "pair": p.pair}
            entry = self.crypto_cache.get(p.pair)
            if entry is not None:
                row.update({"usd": entry.payload.usd, "usd_24h_change": entry.payload.usd_24h_change})
            crypto.append(row)

        return {"exchanges": exchanges, "movers": movers, "crypto": crypto}

    # ------------------------------------------------------------------
    # Meta / lifecycle
    # ------------------------------------------------------------------
    def cache_stats(self) -> Dict[str, Any]:
        return {
            "quotes": self.quote_cache.get_stats(),
            "crypto": self.crypto_cache.get_stats(),
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def _score(v: float) -> int:
    return int(max(0, min(100, round(v))))


__all__ = ["MarketDataEngine", "ENGINE_VERSION"]
