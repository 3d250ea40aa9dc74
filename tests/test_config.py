# tests/test_config.py
from __future__ import annotations

import pytest

from config import Settings


def test_defaults():
    s = Settings(_env_file=None, groq_api_key=None)
    assert s.cache_ttl_sec == 120.0
    assert s.upstream_timeout_sec == 6.0
    assert s.chat_history_limit == 10
    assert s.pattern_headline_limit == 10
    assert s.ai_configured is False
    assert s.cors_origins_list == ["*"]


def test_env_aliases(monkeypatch):
    monkeypatch.setenv("APP_NAME", "Bridge Staging")
    monkeypatch.setenv("CACHE_DEFAULT_TTL", "30")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    s = Settings(_env_file=None, groq_api_key=None)
    assert s.service_name == "Bridge Staging"
    assert s.cache_ttl_sec == 30.0
    assert s.cors_origins_list == ["https://a.example", "https://b.example"]


@pytest.mark.parametrize("raw", ["-5", "0", "soon"])
def test_non_positive_or_garbage_numbers_fall_back(raw):
    s = Settings(_env_file=None, groq_api_key=None, cache_ttl_sec=raw, chat_history_limit=raw)
    assert s.cache_ttl_sec == 120.0
    assert s.chat_history_limit == 10


def test_blank_key_is_unconfigured():
    assert Settings(_env_file=None, groq_api_key="   ").ai_configured is False


def test_safe_dict_masks_key():
    s = Settings(_env_file=None, groq_api_key="gsk_abcdef123456")
    safe = s.as_safe_dict()
    assert safe["groq_key_set"] is True
    assert safe["groq_key_mask"].endswith("3456")
    assert "abcdef" not in safe["groq_key_mask"]
    assert "gsk_abcdef123456" not in str(safe)


def test_yahoo_retry_attempts(monkeypatch):
    assert Settings(_env_file=None, groq_api_key=None).yahoo_retry_attempts == 1
    monkeypatch.setenv("YAHOO_RETRY_ATTEMPTS", "3")
    s = Settings(_env_file=None, groq_api_key=None)
    assert s.yahoo_retry_attempts == 3
    assert s.as_safe_dict()["yahoo_retry_attempts"] == 3
