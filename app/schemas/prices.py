"""
app/schemas/prices.py

Response schemas for price cache status, price refresh and market hours.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PriceStatusResponse(BaseModel):
    """
    Price cache report; ``cache_age`` is in minutes and null without cached prices.
    """

    stale_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    cache_age: int | None = None
    market_open: bool
    cache_stale: bool
    force_refresh_needed: bool
    last_cache_update: datetime | None = None
    provider_name: str


class MarketStatusResponse(BaseModel):
    is_open: bool
    status: str
    open_time: datetime
    close_time: datetime
    next_open: datetime
    next_close: datetime
    time_to_next: str


class SymbolRefreshResponse(BaseModel):
    symbol: str
    updated: bool
    price: float | None = None
    error: str | None = None


class PriceRefreshResponse(BaseModel):
    """
    Result of a price refresh; ``refreshed`` is false when the cache was left alone.
    """

    refreshed: bool
    reason: str
    total_symbols: int = Field(..., ge=0)
    updated_symbols: int = Field(..., ge=0)
    failed_symbols: int = Field(..., ge=0)
    results: list[SymbolRefreshResponse]
    provider_name: str
    timestamp: datetime
