# core/fallback.py
"""
core/fallback.py
===========================================================
Tiered fallback resolver (live -> stale cache -> synthetic).

resolve(key, ttl, fetch_fn)
  1) fresh cache entry          -> return it as stored, no upstream call
  2) fetch_fn() within timeout  -> transform, tag live, cache, return
  3) failure + any cache entry  -> return cached payload tagged "stale"
  4) failure + nothing cached   -> synthesize, tag "synthetic", DO NOT cache

Never raises to the caller (cancellation excepted). Every upstream call is
bounded by `timeout`; on expiry we drop straight to tiers 3/4.

resolve_many() is the batched flavour for providers that answer many keys in
one round-trip (ticker snapshots): one call for all non-fresh keys, then the
same per-key tiering for anything the batch did not deliver.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar

from core.quote_cache import QuoteCache
from core.schemas import QuoteSource

logger = logging.getLogger("core.fallback")

T = TypeVar("T")

DEFAULT_UPSTREAM_TIMEOUT_SEC = 6.0

FetchOne = Callable[[], Awaitable[Any]]
FetchMany = Callable[[List[str]], Awaitable[Mapping[str, Any]]]


def _reason(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout"
    msg = str(exc).strip()
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


class FallbackResolver(Generic[T]):
    def __init__(
        self,
        cache: QuoteCache,
        *,
        transform: Callable[[str, Any], T],
        synthesize: Callable[[str], T],
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SEC,
        provider: str = "upstream",
    ) -> None:
        self.cache = cache
        self.transform = transform
        self.synthesize = synthesize
        self.timeout = float(timeout)
        self.provider = provider

    # ------------------------------------------------------------------
    # Single key
    # ------------------------------------------------------------------
    async def resolve(self, key: str, ttl: Optional[float], fetch_fn: FetchOne) -> T:
        entry = self.cache.get(key)
        if self.cache.is_fresh(entry, ttl):
            self.cache.record("hits")
            return entry.payload

        try:
            raw = await asyncio.wait_for(fetch_fn(), timeout=self.timeout)
            payload = self.transform(key, raw).tagged(QuoteSource.LIVE)
        except Exception as exc:
            return self._degrade(key, _reason(exc))

        self.cache.put(key, payload)
        self.cache.record("misses")
        return payload

    # ------------------------------------------------------------------
    # Batched keys
    # ------------------------------------------------------------------
    async def resolve_many(self, keys: Sequence[str], ttl: Optional[float], fetch_many: FetchMany) -> Dict[str, T]:
        out: Dict[str, T] = {}
        pending: List[str] = []
        for key in keys:
            entry = self.cache.get(key)
            if self.cache.is_fresh(entry, ttl):
                self.cache.record("hits")
                out[key] = entry.payload
            else:
                pending.append(key)

        if not pending:
            return {k: out[k] for k in keys}

        raws: Mapping[str, Any] = {}
        batch_error: Optional[str] = None
        try:
            raws = await asyncio.wait_for(fetch_many(list(pending)), timeout=self.timeout) or {}
        except Exception as exc:
            batch_error = _reason(exc)

        for key in pending:
            raw = raws.get(key) if batch_error is None else None
            if raw is None:
                out[key] = self._degrade(key, batch_error or "missing from batch")
                continue
            try:
                payload = self.transform(key, raw).tagged(QuoteSource.LIVE)
            except Exception as exc:
                out[key] = self._degrade(key, _reason(exc))
                continue
            self.cache.put(key, payload)
            self.cache.record("misses")
            out[key] = payload

        return {k: out[k] for k in keys}

    # ------------------------------------------------------------------
    # Tiers 3 / 4
    # ------------------------------------------------------------------
    def _degrade(self, key: str, reason: str) -> T:
        logger.warning(
            "%s fetch failed for %s: %s",
            self.provider,
            key,
            reason,
            extra={"symbol": key, "provider": self.provider},
        )
        entry = self.cache.get(key)
        if entry is not None:
            self.cache.record("stale_hits")
            logger.info("serving stale cache for %s", key, extra={"symbol": key, "tier": "stale"})
            return entry.payload.tagged(QuoteSource.STALE)

        self.cache.record("misses")
        logger.info("serving synthetic payload for %s", key, extra={"symbol": key, "tier": "synthetic"})
        return self.synthesize(key).tagged(QuoteSource.SYNTHETIC)


__all__ = ["FallbackResolver", "DEFAULT_UPSTREAM_TIMEOUT_SEC"]
