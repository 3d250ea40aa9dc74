# routes/markets.py
"""
MARKET AGGREGATION ROUTES (v1.0.0)

- Engine-driven only: request.app.state.engine (built in main.py lifespan).
- Upstream failures never surface here; the engine degrades to stale/synthetic.
- Unknown exchange id -> 404 (the only error callers see).
- Exchange snapshots serialized with camelCase keys.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request

from core.data_engine import MarketDataEngine
from core.errors import InstrumentNotFound

logger = logging.getLogger("routes.markets")

MARKETS_ROUTES_VERSION = "1.0.0"
router = APIRouter(prefix="/api", tags=["markets"])


def _engine(request: Request) -> MarketDataEngine:
    eng = getattr(request.app.state, "engine", None)
    if eng is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return eng


@router.get("/exchanges")
async def list_exchanges(request: Request) -> List[Dict[str, Any]]:
    snapshots = await _engine(request).get_exchanges()
    return [s.model_dump(mode="json", by_alias=True) for s in snapshots]


@router.get("/exchange/{exchange_id}")
async def get_exchange(exchange_id: str, request: Request) -> Dict[str, Any]:
    try:
        snap = await _engine(request).get_exchange(exchange_id)
    except InstrumentNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return snap.model_dump(mode="json", by_alias=True)


@router.get("/crypto")
async def list_crypto(request: Request) -> List[Dict[str, Any]]:
    quotes = await _engine(request).get_crypto()
    return [q.model_dump(mode="json") for q in quotes]


@router.get("/market-moves")
async def market_moves(request: Request) -> List[Dict[str, Any]]:
    return [m.model_dump(mode="json") for m in _engine(request).get_market_movers()]


@router.get("/country-activity")
async def country_activity(request: Request) -> Dict[str, int]:
    return _engine(request).get_country_activity()


@router.get("/events/hot")
async def hot_events(request: Request) -> List[Dict[str, Any]]:
    return [e.model_dump(mode="json") for e in _engine(request).get_hot_events()]


__all__ = ["router", "MARKETS_ROUTES_VERSION"]
