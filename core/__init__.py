# core/__init__.py
"""
core/__init__.py
------------------------------------------------------------
Core package: cache, fallback tiers, derived metrics, session clock,
upstream adapters, aggregation engine and AI proxy.

Keep imports LIGHT here; import submodules directly
(e.g. `from core.data_engine import MarketDataEngine`).
"""

CORE_PACKAGE_VERSION = "1.0.0"

__all__ = ["CORE_PACKAGE_VERSION"]
