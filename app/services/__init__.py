"""
app/services package marker.
"""

from app.services.bulk_update import RECORD_CONFLICT, RECORD_NOT_FOUND, BulkUpdateCoordinator
from app.services.market_hours import (
    MarketHoursService,
    MarketPhase,
    MarketStatus,
    get_market_hours_service,
)
from app.services.price_refresh import (
    PriceRefreshService,
    PriceRefreshSummary,
    RefreshReason,
    SymbolRefreshResult,
)
from app.services.price_staleness import (
    PriceStatus,
    PriceStatusService,
    StalenessDecision,
    decide,
)
from app.services.quote_service import get_crypto_quote_provider, get_quote_provider

__all__ = [
    "RECORD_CONFLICT",
    "RECORD_NOT_FOUND",
    "BulkUpdateCoordinator",
    "MarketHoursService",
    "MarketPhase",
    "MarketStatus",
    "get_market_hours_service",
    "PriceRefreshService",
    "PriceRefreshSummary",
    "RefreshReason",
    "SymbolRefreshResult",
    "PriceStatus",
    "PriceStatusService",
    "StalenessDecision",
    "decide",
    "get_crypto_quote_provider",
    "get_quote_provider",
]
