# core/ai_proxy.py
"""
core/ai_proxy.py
===========================================================
AI Augmentation Proxy (Groq chat completions) — v1.0.0

Modes
- analyze_sentiment(headline, index_data) -> SentimentResult
- scan_patterns(headlines)                -> PatternScanResult
- chat(messages)                          -> ChatTurn

Guarantees
- ✅ Never raises to the caller: unconfigured credential, transport errors,
     timeouts, non-JSON or off-schema output all map to a demo payload.
- ✅ Every call bounded by settings.ai_timeout_sec.
- ✅ No caching; each call is a fresh round-trip.
- ✅ Chat history capped to the most recent `chat_history_limit` turns.
- ✅ Credential never logged.

The completion client is anything exposing
`await client.chat.completions.create(...)` (groq.AsyncGroq by default).
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from groq import AsyncGroq
from pydantic import BaseModel, ValidationError

from config import Settings, get_settings
from core.errors import ConfigurationMissing, ResponseParseFailure
from core.schemas import ChatMessage, ChatTurn, Pattern, PatternScanResult, SentimentResult

logger = logging.getLogger("core.ai_proxy")

M = TypeVar("M", bound=BaseModel)

SENTIMENT_TEMPERATURE = 0.1
SENTIMENT_MAX_TOKENS = 300
PATTERNS_TEMPERATURE = 0.25
PATTERNS_MAX_TOKENS = 600
CHAT_TEMPERATURE = 0.3
CHAT_MAX_TOKENS = 800

CHAT_UNAVAILABLE_TEXT = "AI chat unavailable — add GROQ_API_KEY to .env"
CHAT_ERROR_TEXT = "I encountered an error processing your request. Please try again."
SENTIMENT_UNAVAILABLE_TEXT = "AI unavailable — add GROQ_API_KEY to .env"
SENTIMENT_FAILED_TEXT = "AI analysis unavailable right now, showing demo data"

_DEMO_PATTERNS = (
    ("Bullish Signal", "AI/Tech Sector", 78, "AI infrastructure spending accelerating across big tech."),
    ("Watch Zone", "Oil / WTI", 61, "Middle East tensions creating supply uncertainty."),
    ("Bearish Warning", "Rate Sensitive", 67, "Fed hold posture compressing growth & real-estate multiples."),
    ("Breakout Alert", "Bitcoin", 72, "BTC ETF inflows at multi-week high; watch $95k resistance."),
    ("Accumulation Zone", "India Equities", 64, "FII flows returning to Nifty after 3-month correction."),
)
_DEMO_MACRO = (
    "Markets are in a cautious risk-on mode with geopolitical headwinds "
    "and strong tech earnings creating crosscurrents."
)

CHAT_SYSTEM_PROMPT = """You are EcoBoom AI — a world-class economic analyst and financial strategist embedded in a global finance monitoring platform.

CURRENT LIVE DATA (use this in your analysis):

EXCHANGES:
{exchanges}

TOP MARKET MOVERS:
{movers}

TRACKED CRYPTO:
{crypto}

RULES:
- You are an expert in macroeconomics, geopolitical risk, monetary policy, and market dynamics.
- Always reference the live data above when relevant.
- Be concise but insightful. Use bullet points for clarity.
- If asked about a specific country or exchange, use the data provided.
- Provide actionable insights, not just descriptions.
- Format responses clearly with bold text and bullet points.
- Never refuse economic questions — you are the expert.
- Keep responses focused and under 300 words unless the user asks for detailed analysis."""


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# -----------------------------------------------------------------------------
# Demo payloads
# -----------------------------------------------------------------------------
def demo_sentiment(summary: str = SENTIMENT_UNAVAILABLE_TEXT) -> SentimentResult:
    return SentimentResult(
        sentiment_polarity="neutral",
        heat_score=50,
        boom_probability="stable market",
        economic_risk_level="Moderate Risk",
        one_line_summary=summary,
    )


def demo_patterns(scanned_at: Optional[str] = None) -> PatternScanResult:
    return PatternScanResult(
        patterns=[Pattern(type=t, asset=a, confidence=c, reasoning=r) for t, a, c, r in _DEMO_PATTERNS],
        macro_summary=_DEMO_MACRO,
        risk_level="Moderate",
        scanned_at=scanned_at or _utc_now_iso(),
    )


def demo_chat() -> ChatTurn:
    return ChatTurn(content=CHAT_UNAVAILABLE_TEXT)


def error_chat() -> ChatTurn:
    return ChatTurn(content=CHAT_ERROR_TEXT)


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------
def parse_json_object(text: str, model: Type[M], **extra: Any) -> M:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ResponseParseFailure(f"completion is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ResponseParseFailure(f"expected a JSON object, got {type(data).__name__}")
    data.update(extra)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseFailure(f"{model.__name__} validation failed: {exc.error_count()} error(s)") from exc


def _as_messages(messages: Sequence[Union[ChatMessage, Mapping[str, Any]]]) -> List[ChatMessage]:
    out: List[ChatMessage] = []
    for m in messages:
        out.append(m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m))
    return out


# -----------------------------------------------------------------------------
# Proxy
# -----------------------------------------------------------------------------
class AIAugmentationProxy:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Any = None,
        context_provider: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings
        self.model = s.groq_model
        self.timeout = float(s.ai_timeout_sec)
        self.history_limit = int(s.chat_history_limit)
        self.headline_limit = int(s.pattern_headline_limit)
        self.context_provider = context_provider

        self._owns_client = False
        if client is not None:
            self.client = client
        elif s.groq_api_key:
            self.client = AsyncGroq(api_key=s.groq_api_key, timeout=self.timeout)
            self._owns_client = True
        else:
            self.client = None
            logger.warning("GROQ_API_KEY missing; AI endpoints will use demo data")

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> str:
        if self.client is None:
            raise ConfigurationMissing("no completion-service credential configured")

        kwargs: Dict[str, Any] = {
            "messages": messages,
            "model": self.model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        completion = await asyncio.wait_for(self.client.chat.completions.create(**kwargs), timeout=self.timeout)
        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise ResponseParseFailure("completion has no message content") from exc
        if not content or not str(content).strip():
            raise ResponseParseFailure("empty completion")
        return str(content)

    # ------------------------------------------------------------------
    # Sentiment
    # ------------------------------------------------------------------
    async def analyze_sentiment(self, headline: str, index_data: Any = None) -> SentimentResult:
        prompt = (
            f'Analyze: "{headline}". Context: {json.dumps(index_data, default=str)}. '
            "Return JSON only: {sentiment_polarity, heat_score (0-100), boom_probability, "
            "economic_risk_level, one_line_summary}"
        )
        try:
            text = await self._complete(
                [{"role": "user", "content": prompt}],
                temperature=SENTIMENT_TEMPERATURE,
                max_tokens=SENTIMENT_MAX_TOKENS,
                json_mode=True,
            )
            return parse_json_object(text, SentimentResult)
        except ConfigurationMissing:
            return demo_sentiment()
        except Exception as exc:
            logger.warning("sentiment analysis failed, serving demo payload: %s", exc)
            return demo_sentiment(SENTIMENT_FAILED_TEXT)

    # ------------------------------------------------------------------
    # Pattern scan
    # ------------------------------------------------------------------
    async def scan_patterns(self, headlines: Sequence[str]) -> PatternScanResult:
        picked = [str(h) for h in list(headlines or [])[: self.headline_limit]]
        numbered = "\n".join(f"{i + 1}. {h}" for i, h in enumerate(picked))
        prompt = (
            "You are a market analyst. Analyze these headlines and return JSON with patterns array "
            "(each: type, asset, confidence 0-100, reasoning), macro_summary, "
            f"risk_level (Low/Moderate/High/Critical).\n\nHeadlines:\n{numbered}"
        )
        try:
            text = await self._complete(
                [{"role": "user", "content": prompt}],
                temperature=PATTERNS_TEMPERATURE,
                max_tokens=PATTERNS_MAX_TOKENS,
                json_mode=True,
            )
            return parse_json_object(text, PatternScanResult, scanned_at=_utc_now_iso())
        except ConfigurationMissing:
            return demo_patterns()
        except Exception as exc:
            logger.warning("pattern scan failed, serving demo payload: %s", exc)
            return demo_patterns()

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------
    def _system_prompt(self) -> str:
        ctx = self.context_provider() if self.context_provider is not None else {}
        return CHAT_SYSTEM_PROMPT.format(
            exchanges=json.dumps(ctx.get("exchanges", []), indent=1, default=str),
            movers=json.dumps(ctx.get("movers", []), indent=1, default=str),
            crypto=json.dumps(ctx.get("crypto", []), indent=1, default=str),
        )

    def trim_history(self, messages: Sequence[Union[ChatMessage, Mapping[str, Any]]]) -> List[ChatMessage]:
        history = _as_messages(messages)
        if self.history_limit <= 0:
            return []
        return history[-self.history_limit :]

    async def chat(self, messages: Sequence[Union[ChatMessage, Mapping[str, Any]]]) -> ChatTurn:
        if not self.configured:
            return demo_chat()
        try:
            history = self.trim_history(messages)
            payload = [{"role": "system", "content": self._system_prompt()}]
            payload.extend({"role": m.role, "content": m.content} for m in history)
            text = await self._complete(
                payload,
                temperature=CHAT_TEMPERATURE,
                max_tokens=CHAT_MAX_TOKENS,
                json_mode=False,
            )
            return ChatTurn(content=text)
        except Exception as exc:
            logger.warning("chat completion failed, serving error turn: %s", exc)
            return error_chat()

    async def aclose(self) -> None:
        if self._owns_client and self.client is not None:
            await self.client.close()


__all__ = [
    "AIAugmentationProxy",
    "demo_sentiment",
    "demo_patterns",
    "demo_chat",
    "error_chat",
    "parse_json_object",
    "CHAT_UNAVAILABLE_TEXT",
    "CHAT_ERROR_TEXT",
]
