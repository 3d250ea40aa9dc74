# core/metrics.py
"""
core/metrics.py
===========================================================
Derived metrics for quotes: % change, sentiment bucket, heat score, sparkline.

Bucket rules (evaluated in order, mutually exclusive)
    pct >  1  -> positive        heat in [80, 100)
    pct >  0  -> mild_positive   heat in [60,  80)
    pct < -1  -> negative        heat in [ 0,  20)
    pct <  0  -> mild_negative   heat in [20,  40)
    else      -> neutral         heat == 50

Heat is random inside its bucket range (visual liveliness). The random source
is always passed in, so callers/tests can seed it.
"""

from __future__ import annotations

import math
import random
from typing import Dict, Iterable, List, Optional, Tuple

from core.schemas import (
    CryptoPair,
    CryptoQuote,
    RECENT_WINDOW_SIZE,
    QuotePayload,
    QuoteSource,
    RawQuote,
    SentimentPolarity,
    TickerSnapshot,
)

HEAT_RANGES: Dict[SentimentPolarity, Tuple[int, int]] = {
    SentimentPolarity.POSITIVE: (80, 100),
    SentimentPolarity.MILD_POSITIVE: (60, 80),
    SentimentPolarity.NEUTRAL: (50, 50),
    SentimentPolarity.MILD_NEGATIVE: (20, 40),
    SentimentPolarity.NEGATIVE: (0, 20),
}

# synthetic quote generation bounds
SYNTHETIC_BASE_MIN = 5000.0
SYNTHETIC_BASE_SPAN = 10000.0
SYNTHETIC_CHANGE_SPAN = 2.0  # +/- percent


def percentage_change(current: float, previous_close: float) -> float:
    if previous_close is None or previous_close <= 0:
        return 0.0
    return round(((current - previous_close) / previous_close) * 100.0, 2)


def classify_sentiment(pct: float) -> SentimentPolarity:
    if pct > 1:
        return SentimentPolarity.POSITIVE
    if pct > 0:
        return SentimentPolarity.MILD_POSITIVE
    if pct < -1:
        return SentimentPolarity.NEGATIVE
    if pct < 0:
        return SentimentPolarity.MILD_NEGATIVE
    return SentimentPolarity.NEUTRAL


def heat_score(bucket: SentimentPolarity, rng: random.Random) -> int:
    lo, hi = HEAT_RANGES[bucket]
    if lo == hi:
        return lo
    v = int(math.floor(lo + rng.random() * (hi - lo)))
    # floor keeps us under `hi`; guard against float rounding landing on it
    return min(v, hi - 1)


def recent_window(series: Iterable[Optional[float]], size: int = RECENT_WINDOW_SIZE) -> List[float]:
    """Trailing `size` finite values, chronological order kept. Never padded."""
    values = [float(v) for v in series if v is not None and math.isfinite(float(v))]
    if size <= 0:
        return []
    return values[-size:]


def derive_quote(raw: RawQuote, rng: random.Random, *, source: QuoteSource = QuoteSource.LIVE) -> QuotePayload:
    pct = percentage_change(raw.current_value, raw.previous_close)
    bucket = classify_sentiment(pct)
    return QuotePayload(
        current_value=raw.current_value,
        previous_close=raw.previous_close,
        percentage_change=pct,
        sentiment_polarity=bucket,
        heat_score=heat_score(bucket, rng),
        recent_window=recent_window(raw.series),
        source=source,
    )


def synthesize_quote(rng: random.Random) -> QuotePayload:
    """Plausible fabricated quote, classified by the same rules as live data."""
    base = rng.random() * SYNTHETIC_BASE_SPAN + SYNTHETIC_BASE_MIN
    drift = round(rng.random() * (2 * SYNTHETIC_CHANGE_SPAN) - SYNTHETIC_CHANGE_SPAN, 2)
    current = round(base * (1 + drift / 100.0), 2)
    raw = RawQuote(symbol="", current_value=current, previous_close=base, series=[])
    return derive_quote(raw, rng, source=QuoteSource.SYNTHETIC)


def derive_crypto_quote(pair: CryptoPair, snapshot: TickerSnapshot, rng: random.Random) -> CryptoQuote:
    """Ticker rows already carry a 24h change; only bucket + heat are derived."""
    pct = round(snapshot.change_pct_24h, 2)
    bucket = classify_sentiment(pct)
    return CryptoQuote(
        symbol=pair.symbol,
        name=pair.name,
        pair=pair.pair,
        usd=snapshot.last_price,
        usd_24h_change=pct,
        volume_24h=snapshot.volume_24h,
        high_24h=snapshot.high_24h,
        low_24h=snapshot.low_24h,
        sentiment_polarity=bucket,
        heat_score=heat_score(bucket, rng),
        source=QuoteSource.LIVE,
    )


def synthesize_crypto_quote(pair: CryptoPair, rng: random.Random) -> CryptoQuote:
    price = round(rng.random() * 1000.0 + 1.0, 4)
    pct = round(rng.random() * (2 * SYNTHETIC_CHANGE_SPAN) - SYNTHETIC_CHANGE_SPAN, 2)
    spread = price * abs(pct) / 100.0
    bucket = classify_sentiment(pct)
    return CryptoQuote(
        symbol=pair.symbol,
        name=pair.name,
        pair=pair.pair,
        usd=price,
        usd_24h_change=pct,
        volume_24h=0.0,
        high_24h=round(price + spread, 4),
        low_24h=round(max(price - spread, 0.0), 4),
        sentiment_polarity=bucket,
        heat_score=heat_score(bucket, rng),
        source=QuoteSource.SYNTHETIC,
    )


__all__ = [
    "HEAT_RANGES",
    "percentage_change",
    "classify_sentiment",
    "heat_score",
    "recent_window",
    "derive_quote",
    "synthesize_quote",
    "derive_crypto_quote",
    "synthesize_crypto_quote",
]
