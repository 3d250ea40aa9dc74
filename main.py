"""
main.py
------------------------------------------------------------
EcoBoom Market Bridge – FastAPI Entry Point — v1.0.0

Goals
- Provide ultra-fast health endpoint for platform checks: /healthz
- One shared MarketDataEngine + AIAugmentationProxy per process (app.state)
- Clean shutdown (lifespan) closes the shared HTTP clients
- Error bodies are always JSON

Run
    uvicorn main:app --host 0.0.0.0 --port ${PORT:-3000} --log-level ${LOG_LEVEL:-info}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from config import Settings, get_settings
from core.ai_proxy import AIAugmentationProxy
from core.data_engine import ENGINE_VERSION, MarketDataEngine
from core.logging import setup_logging
from routes import ai_analysis, markets

APP_BOOT_VERSION = "1.0.0"

logger = logging.getLogger("main")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# App factory (lifespan)
# =============================================================================
def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[MarketDataEngine] = None,
    ai: Optional[AIAugmentationProxy] = None,
) -> FastAPI:
    """
    Build the app. `engine` / `ai` may be injected (tests); otherwise they are
    created in the lifespan from `settings`.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    allow_origins = settings.cors_origins_list
    allow_credentials = False if allow_origins == ["*"] else True

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        app_.state.settings = settings
        app_.state.start_time_utc = _utc_now_iso()

        eng = engine or MarketDataEngine(settings)
        app_.state.engine = eng
        app_.state.ai = ai or AIAugmentationProxy(settings, context_provider=eng.build_ai_context)

        logger.info("==============================================")
        logger.info("🚀 %s starting (boot=%s)", settings.service_name, APP_BOOT_VERSION)
        logger.info("   Env: %s | Version: %s", settings.environment, settings.service_version)
        logger.info("   Exchanges: %d | Crypto pairs: %d", len(eng.exchanges), len(eng.crypto_pairs))
        logger.info("   Cache TTL: %ss | Upstream timeout: %ss", settings.cache_ttl_sec, settings.upstream_timeout_sec)
        logger.info("   AI: %s", "groq (" + settings.groq_model + ")" if app_.state.ai.configured else "demo payloads")
        logger.info("   CORS allow origins: %s", "ALL (*)" if allow_origins == ["*"] else str(allow_origins))
        logger.info("==============================================")

        yield

        # shutdown
        try:
            await app_.state.ai.aclose()
        finally:
            await app_.state.engine.aclose()

    app_ = FastAPI(title=settings.service_name, version=settings.service_version, lifespan=lifespan)

    # CORS
    app_.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception handling (always JSON)
    # -------------------------------------------------------------------------
    @app_.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"status": "error", "detail": exc.detail})

    @app_.exception_handler(RequestValidationError)
    async def _validation_exc_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"status": "error", "detail": "Validation error", "errors": exc.errors()},
        )

    @app_.exception_handler(Exception)
    async def _unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "Internal Server Error", "detail": str(exc)[:2000]},
        )

    # -------------------------------------------------------------------------
    # Fast endpoints
    # -------------------------------------------------------------------------
    @app_.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
    async def root():
        return {
            "status": "ok",
            "app": app_.title,
            "version": app_.version,
            "env": settings.environment,
            "time_utc": _utc_now_iso(),
        }

    @app_.api_route("/healthz", methods=["GET", "HEAD"], include_in_schema=False)
    async def healthz():
        return {"status": "ok"}

    @app_.get("/health", tags=["system"])
    async def health(request: Request) -> Dict[str, Any]:
        eng = getattr(request.app.state, "engine", None)
        proxy = getattr(request.app.state, "ai", None)
        return {
            "status": "ok",
            "app": app_.title,
            "version": app_.version,
            "boot_version": APP_BOOT_VERSION,
            "engine_version": ENGINE_VERSION,
            "env": settings.environment,
            "engine_ready": eng is not None,
            "ai_configured": bool(proxy is not None and proxy.configured),
            "cache": eng.cache_stats() if eng is not None else None,
            "settings": settings.as_safe_dict(),
            "start_time_utc": getattr(request.app.state, "start_time_utc", None),
            "time_utc": _utc_now_iso(),
        }

    app_.include_router(markets.router)
    app_.include_router(ai_analysis.router)

    return app_


# Required by Uvicorn
app = create_app()
