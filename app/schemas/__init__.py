"""
app/schemas package marker.
"""

from app.schemas.plugins import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    EntryCreatedResponse,
    EntryUpdatedResponse,
    FieldErrorResponse,
    ManualEntrySchemaResponse,
    PluginActionResponse,
    PluginHealthResponse,
    PluginInfoResponse,
    RefreshResponse,
    ValidationResponse,
)
from app.schemas.prices import (
    MarketStatusResponse,
    PriceRefreshResponse,
    PriceStatusResponse,
    SymbolRefreshResponse,
)

__all__ = [
    "BulkUpdateRequest",
    "BulkUpdateResponse",
    "EntryCreatedResponse",
    "EntryUpdatedResponse",
    "FieldErrorResponse",
    "ManualEntrySchemaResponse",
    "MarketStatusResponse",
    "PluginActionResponse",
    "PluginHealthResponse",
    "PluginInfoResponse",
    "PriceRefreshResponse",
    "PriceStatusResponse",
    "RefreshResponse",
    "SymbolRefreshResponse",
    "ValidationResponse",
]
