# core/schemas.py
"""
core/schemas.py
===========================================================
Pydantic models shared by the engine, the AI proxy and the routes.

Groups
- Quote pipeline: RawQuote (adapter output) -> QuotePayload (derived, tiered)
- Static config: ExchangeDescriptor, CryptoPair
- Engine outputs: ExchangeSnapshot, CryptoQuote, MarketMover, HotEvent
- AI results (tagged union on `kind`, which never leaves the process):
    SentimentResult | PatternScanResult | ChatTurn
- Request bodies for the AI endpoints
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

RECENT_WINDOW_SIZE = 24


class SentimentPolarity(str, Enum):
    POSITIVE = "positive"
    MILD_POSITIVE = "mild_positive"
    NEUTRAL = "neutral"
    MILD_NEGATIVE = "mild_negative"
    NEGATIVE = "negative"


class QuoteSource(str, Enum):
    LIVE = "live"
    STALE = "stale"
    SYNTHETIC = "synthetic"


def _clamp_int_0_100(v: Any) -> int:
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise ValueError(f"not a number: {v!r}")
    if math.isnan(f) or math.isinf(f):
        raise ValueError("non-finite score")
    return int(max(0, min(100, round(f))))


# ---------------------------------------------------------------------------
# Quote pipeline
# ---------------------------------------------------------------------------
class RawQuote(BaseModel):
    """What a quote-chart adapter hands back before any derivation."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_value: float
    previous_close: float
    series: List[float] = Field(default_factory=list)
    currency: Optional[str] = None


class TieredPayload(BaseModel):
    """Anything the fallback resolver hands out carries the tier it came from."""

    model_config = ConfigDict(frozen=True)

    source: QuoteSource = QuoteSource.LIVE

    def tagged(self, source: QuoteSource):
        if self.source == source:
            return self
        return self.model_copy(update={"source": source})


class QuotePayload(TieredPayload):
    current_value: float
    previous_close: float
    percentage_change: float
    sentiment_polarity: SentimentPolarity
    heat_score: int = Field(ge=0, le=100)
    recent_window: List[float] = Field(default_factory=list, max_length=RECENT_WINDOW_SIZE)


class TickerSnapshot(BaseModel):
    """One row of a batched 24h ticker call."""

    model_config = ConfigDict(frozen=True)

    pair: str
    last_price: float
    change_pct_24h: float
    volume_24h: float
    high_24h: float
    low_24h: float


# ---------------------------------------------------------------------------
# Static configuration
# ---------------------------------------------------------------------------
class ExchangeDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    index_name: str
    country: str
    timezone: str
    currency: str
    open_time: str
    close_time: str
    yahoo_symbol: str
    latitude: float = 0.0
    longitude: float = 0.0


class CryptoPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    pair: str
    symbol: str
    name: str


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------
class ExchangeSnapshot(BaseModel):
    """Per-instrument aggregate. Serialized with camelCase keys (by_alias)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    index_name: str
    country: str
    timezone: str
    currency: str
    open_time: str
    close_time: str
    latitude: float
    longitude: float
    is_open: bool
    index_value: str
    percentage_change: float
    sentiment_polarity: SentimentPolarity
    heat_score: int
    sparkline: List[float]
    previous_close: float
    source: QuoteSource


class CryptoQuote(TieredPayload):
    symbol: str
    name: str
    pair: str
    usd: float
    usd_24h_change: float
    volume_24h: float
    high_24h: float
    low_24h: float
    sentiment_polarity: SentimentPolarity
    heat_score: int = Field(ge=0, le=100)


class MarketMover(BaseModel):
    ticker: str
    name: str
    sector: str
    price: float
    change_pct: float
    volume: int


class HotEvent(BaseModel):
    id: int
    title: str
    latitude: float
    longitude: float


# ---------------------------------------------------------------------------
# AI results (tagged union)
# ---------------------------------------------------------------------------
class SentimentResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["sentiment"] = Field(default="sentiment", exclude=True)
    sentiment_polarity: str
    heat_score: int
    boom_probability: str
    economic_risk_level: str
    one_line_summary: str

    @field_validator("heat_score", mode="before")
    @classmethod
    def _heat(cls, v: Any) -> int:
        return _clamp_int_0_100(v)

    @field_validator("sentiment_polarity", "boom_probability", "economic_risk_level", "one_line_summary", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None or isinstance(v, (dict, list)):
            raise ValueError("expected a scalar")
        return str(v)


class Pattern(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    asset: str
    confidence: int
    reasoning: str

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v: Any) -> int:
        return _clamp_int_0_100(v)


class PatternScanResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["patterns"] = Field(default="patterns", exclude=True)
    patterns: List[Pattern]
    macro_summary: str
    risk_level: str
    scanned_at: str


class ChatTurn(BaseModel):
    kind: Literal["chat"] = Field(default="chat", exclude=True)
    role: Literal["assistant"] = "assistant"
    content: str


AIAnalysis = Union[SentimentResult, PatternScanResult, ChatTurn]


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class SentimentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    headline: str = ""
    index_data: Optional[Any] = Field(default=None, alias="indexData")


class PatternScanRequest(BaseModel):
    headlines: List[str] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)


__all__ = [
    "RECENT_WINDOW_SIZE",
    "SentimentPolarity",
    "QuoteSource",
    "TieredPayload",
    "RawQuote",
    "QuotePayload",
    "TickerSnapshot",
    "ExchangeDescriptor",
    "CryptoPair",
    "ExchangeSnapshot",
    "CryptoQuote",
    "MarketMover",
    "HotEvent",
    "SentimentResult",
    "Pattern",
    "PatternScanResult",
    "ChatTurn",
    "AIAnalysis",
    "SentimentRequest",
    "PatternScanRequest",
    "ChatMessage",
    "ChatRequest",
]
