# tests/conftest.py
from __future__ import annotations

import json
import random
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from config import Settings


class FakeClock:
    """Monotonic stand-in; advance() moves time forward."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.t = float(start)

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += float(seconds)


def chart_body(
    price: Optional[float] = 105.0,
    prev_close: Optional[float] = 100.0,
    closes: Optional[List[Optional[float]]] = None,
    currency: str = "USD",
) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"currency": currency}
    if price is not None:
        meta["regularMarketPrice"] = price
    if prev_close is not None:
        meta["chartPreviousClose"] = prev_close
    return {
        "chart": {
            "result": [
                {
                    "meta": meta,
                    "indicators": {"quote": [{"close": closes if closes is not None else [100.0, 101.5, None, 104.0]}]},
                }
            ],
            "error": None,
        }
    }


def ticker_row(pair: str, last: float = 100.0, change: float = 2.5) -> Dict[str, str]:
    return {
        "symbol": pair,
        "lastPrice": f"{last:.8f}",
        "priceChangePercent": f"{change:.3f}",
        "quoteVolume": "123456789.50",
        "highPrice": f"{last * 1.03:.8f}",
        "lowPrice": f"{last * 0.97:.8f}",
    }


def requested_pairs(request: httpx.Request) -> List[str]:
    return json.loads(request.url.params["symbols"])


def completion(content: Optional[str]) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    """Mimics `client.chat.completions` of the groq SDK."""

    def __init__(self, reply: Any = None, error: Optional[BaseException] = None, delay: float = 0.0) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.delay:
            import asyncio

            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return completion(self.reply)


class FakeCompletionClient:
    def __init__(self, **kwargs: Any) -> None:
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, groq_api_key=None, log_level="warning")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
