# routes/ai_analysis.py
"""
AI AUGMENTATION ROUTES (v1.0.0)

- Proxy-driven only: request.app.state.ai (built in main.py lifespan).
- Always HTTP 200 with a renderable body: the proxy substitutes demo
  payloads when the completion service is unconfigured or fails.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request

from core.ai_proxy import AIAugmentationProxy
from core.schemas import ChatRequest, PatternScanRequest, SentimentRequest

logger = logging.getLogger("routes.ai_analysis")

AI_ANALYSIS_VERSION = "1.0.0"
router = APIRouter(prefix="/api/ai", tags=["AI"])


def _proxy(request: Request) -> AIAugmentationProxy:
    ai = getattr(request.app.state, "ai", None)
    if ai is None:
        raise HTTPException(status_code=503, detail="AI proxy not initialized")
    return ai


@router.post("/sentiment")
async def sentiment(request: Request, body: Optional[SentimentRequest] = None) -> Dict[str, Any]:
    body = body or SentimentRequest()
    result = await _proxy(request).analyze_sentiment(body.headline, body.index_data)
    return result.model_dump(mode="json")


@router.post("/patterns")
async def patterns(request: Request, body: Optional[PatternScanRequest] = None) -> Dict[str, Any]:
    body = body or PatternScanRequest()
    result = await _proxy(request).scan_patterns(body.headlines)
    return result.model_dump(mode="json")


@router.post("/chat")
async def chat(request: Request, body: Optional[ChatRequest] = None) -> Dict[str, Any]:
    body = body or ChatRequest()
    turn = await _proxy(request).chat(body.messages)
    return turn.model_dump(mode="json")


__all__ = ["router", "AI_ANALYSIS_VERSION"]
