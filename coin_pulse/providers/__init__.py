"""Upstream market-data and news adapters."""
