# config.py (REPO ROOT) — v1.0.0
"""
config.py
============================================================
Canonical Settings for EcoBoom Market Bridge (ROOT)

✅ Single source of truth for env vars.
✅ No network at import-time. No side effects at import-time.
✅ Secret-free summary for /health (presence + masked tail only).

Env names accept a couple of aliases each (AliasChoices) so older
deploy configs keep working without renames.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
DEFAULT_BINANCE_TICKER_URL = "https://api.binance.com/api/v3/ticker/24hr"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"


def _mask_tail(s: Optional[str], keep: int = 4) -> str:
    x = (s or "").strip()
    if not x:
        return ""
    if len(x) <= keep:
        return "•" * len(x)
    return ("•" * (len(x) - keep)) + x[-keep:]


def _csv(v: Any) -> List[str]:
    if v is None:
        return []
    s = str(v).strip()
    if not s:
        return []
    return [p.strip() for p in s.split(",") if p.strip()]


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class Settings(BaseSettings):
    """
    Env-backed settings model.
    Defaults reproduce the reference behaviour (120s TTL, ~6s upstream bound).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # ---------------------------------------------------------------------
    # App / Meta
    # ---------------------------------------------------------------------
    service_name: str = Field(default="EcoBoom Market Bridge", validation_alias=_alias("SERVICE_NAME", "APP_NAME"))
    service_version: str = Field(default="dev", validation_alias=_alias("SERVICE_VERSION", "APP_VERSION"))
    environment: str = Field(default="production", validation_alias=_alias("ENVIRONMENT", "APP_ENV"))
    log_level: str = Field(default="info", validation_alias=_alias("LOG_LEVEL"))
    log_json: bool = Field(default=False, validation_alias=_alias("LOG_JSON"))

    # ---------------------------------------------------------------------
    # Cache / upstream bounds
    # ---------------------------------------------------------------------
    cache_ttl_sec: float = Field(default=120.0, validation_alias=_alias("CACHE_TTL_SEC", "CACHE_DEFAULT_TTL"))
    cache_max_size: int = Field(default=1024, validation_alias=_alias("CACHE_MAX_SIZE"))
    upstream_timeout_sec: float = Field(default=6.0, validation_alias=_alias("UPSTREAM_TIMEOUT_SEC", "HTTP_TIMEOUT"))
    ticker_timeout_sec: float = Field(default=5.0, validation_alias=_alias("TICKER_TIMEOUT_SEC"))
    yahoo_retry_attempts: int = Field(default=1, validation_alias=_alias("YAHOO_RETRY_ATTEMPTS"))

    # ---------------------------------------------------------------------
    # Upstream endpoints
    # ---------------------------------------------------------------------
    yahoo_chart_url: str = Field(default=DEFAULT_YAHOO_CHART_URL, validation_alias=_alias("YAHOO_CHART_URL"))
    yahoo_range: str = Field(default="1d", validation_alias=_alias("YAHOO_RANGE"))
    yahoo_interval: str = Field(default="15m", validation_alias=_alias("YAHOO_INTERVAL"))
    binance_ticker_url: str = Field(default=DEFAULT_BINANCE_TICKER_URL, validation_alias=_alias("BINANCE_TICKER_URL"))

    # ---------------------------------------------------------------------
    # Completion service (Groq)
    # ---------------------------------------------------------------------
    groq_api_key: Optional[str] = Field(default=None, validation_alias=_alias("GROQ_API_KEY"))
    groq_model: str = Field(default=DEFAULT_GROQ_MODEL, validation_alias=_alias("GROQ_MODEL"))
    ai_timeout_sec: float = Field(default=20.0, validation_alias=_alias("AI_TIMEOUT_SEC"))
    chat_history_limit: int = Field(default=10, validation_alias=_alias("CHAT_HISTORY_LIMIT"))
    pattern_headline_limit: int = Field(default=10, validation_alias=_alias("PATTERN_HEADLINE_LIMIT"))

    # ---------------------------------------------------------------------
    # CORS
    # ---------------------------------------------------------------------
    cors_origins: str = Field(default="*", validation_alias=_alias("CORS_ORIGINS"))

    @field_validator("cache_ttl_sec", "upstream_timeout_sec", "ticker_timeout_sec", "ai_timeout_sec", mode="before")
    @classmethod
    def _positive_float(cls, v: Any, info: Any) -> Any:
        default = cls.model_fields[info.field_name].default
        try:
            x = float(str(v).strip())
        except (TypeError, ValueError):
            return default
        return x if x > 0 else default

    @field_validator("cache_max_size", "yahoo_retry_attempts", "chat_history_limit", "pattern_headline_limit", mode="before")
    @classmethod
    def _positive_int(cls, v: Any, info: Any) -> Any:
        default = cls.model_fields[info.field_name].default
        try:
            x = int(str(v).strip())
        except (TypeError, ValueError):
            return default
        return x if x > 0 else default

    @field_validator("groq_api_key", mode="before")
    @classmethod
    def _blank_is_none(cls, v: Any) -> Any:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    # ---------------------------------------------------------------------
    # Derived helpers
    # ---------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> List[str]:
        xs = _csv(self.cors_origins)
        if not xs or "*" in xs:
            return ["*"]
        return xs

    @property
    def ai_configured(self) -> bool:
        return bool(self.groq_api_key)

    def as_safe_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "service_version": self.service_version,
            "environment": self.environment,
            "log_level": (self.log_level or "info").strip().lower(),
            "cache_ttl_sec": float(self.cache_ttl_sec),
            "cache_max_size": int(self.cache_max_size),
            "upstream_timeout_sec": float(self.upstream_timeout_sec),
            "ticker_timeout_sec": float(self.ticker_timeout_sec),
            "yahoo_retry_attempts": int(self.yahoo_retry_attempts),
            "groq_model": self.groq_model,
            "groq_key_set": self.ai_configured,
            "groq_key_mask": _mask_tail(self.groq_api_key, keep=4),
            "chat_history_limit": int(self.chat_history_limit),
            "cors_origins": self.cors_origins_list,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings", "DEFAULT_YAHOO_CHART_URL", "DEFAULT_BINANCE_TICKER_URL", "DEFAULT_GROQ_MODEL"]
