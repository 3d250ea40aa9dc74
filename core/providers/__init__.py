# core/providers/__init__.py
"""Upstream adapters: quote-chart (Yahoo) and batched ticker snapshots (Binance)."""
