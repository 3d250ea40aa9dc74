# core/market_clock.py
"""
core/market_clock.py
------------------------------------------------------------
Market session evaluator (pure, no state).

A market is "open" when, in its own timezone:
  - the local weekday is Monday..Friday, and
  - open_local <= HH:MM <= close_local   (both ends inclusive)

Local time is resolved through zoneinfo, so DST shifts are handled by the
tz database rather than fixed UTC offsets. Zero-padded 24h "HH:MM" strings
compare lexicographically the same way they compare numerically.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

WEEKEND = {5, 6}  # Saturday, Sunday (datetime.weekday())


@lru_cache(maxsize=128)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def _ensure_aware(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def local_now(tz_name: str, now: Optional[datetime] = None) -> datetime:
    return _ensure_aware(now).astimezone(_zone(tz_name))


def local_hhmm(tz_name: str, now: Optional[datetime] = None) -> str:
    """Zero-padded 24h local time. An hour rendered as "24" is normalized to "00"."""
    local = local_now(tz_name, now)
    hh = f"{local.hour:02d}"
    if hh == "24":
        hh = "00"
    return f"{hh}:{local.minute:02d}"


def is_weekend(tz_name: str, now: Optional[datetime] = None) -> bool:
    return local_now(tz_name, now).weekday() in WEEKEND


def is_open(tz_name: str, open_local: str, close_local: str, now: Optional[datetime] = None) -> bool:
    """
    True iff the market in `tz_name` is trading at `now` (defaults to the current instant).

    `open_local` / `close_local` are "HH:MM" strings in the market's local time.
    """
    if is_weekend(tz_name, now):
        return False
    t = local_hhmm(tz_name, now)
    return open_local <= t <= close_local


__all__ = ["is_open", "is_weekend", "local_hhmm", "local_now"]
