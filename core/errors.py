# core/errors.py
"""
core/errors.py
------------------------------------------------------------
Error taxonomy for the aggregation engine.

Propagation rules
- UpstreamUnavailable / UpstreamMalformed are absorbed by the fallback tiers.
- ConfigurationMissing / ResponseParseFailure are absorbed by AI demo payloads.
- InstrumentNotFound is the only error a caller is expected to see (HTTP 404).
"""

from __future__ import annotations

from typing import Optional


class MarketBridgeError(Exception):
    """Base class for every engine error."""


class UpstreamError(MarketBridgeError):
    def __init__(self, message: str, *, provider: str = "", symbol: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.symbol = symbol

    def __str__(self) -> str:
        base = super().__str__()
        if self.provider and self.symbol:
            return f"{self.provider}[{self.symbol}]: {base}"
        if self.provider:
            return f"{self.provider}: {base}"
        return base


class UpstreamUnavailable(UpstreamError):
    """Network error, HTTP error status or timeout."""


class UpstreamMalformed(UpstreamError):
    """Upstream answered but the payload has an unexpected shape."""


class ConfigurationMissing(MarketBridgeError):
    """No credential configured for the completion service."""


class ResponseParseFailure(MarketBridgeError):
    """Completion output is not JSON or does not match the expected schema."""


class InstrumentNotFound(MarketBridgeError):
    def __init__(self, instrument_id: str) -> None:
        super().__init__(f"Unknown instrument: {instrument_id}")
        self.instrument_id = instrument_id


__all__ = [
    "MarketBridgeError",
    "UpstreamError",
    "UpstreamUnavailable",
    "UpstreamMalformed",
    "ConfigurationMissing",
    "ResponseParseFailure",
    "InstrumentNotFound",
]
