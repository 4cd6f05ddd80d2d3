"""
app/api/dependencies.py

Shared FastAPI dependencies and the mapping from plugin errors to HTTP errors.

The plugin manager and the price and market hours services are owned
by the application object (``app.state``) rather than module globals, so each
test can build its own application around an isolated registry.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.plugins.errors import (
    BulkUpdateFailedError,
    BulkUpdateNotSupportedError,
    CategorySchemaNotSupportedError,
    ManualEntryNotSupportedError,
    ManualEntryValidationError,
    PluginAlreadyRegisteredError,
    PluginDisabledError,
    PluginError,
    PluginInitializationError,
    PluginNotRegisteredError,
    RecordConflictError,
    RecordNotFoundError,
    StorageError,
)
from app.plugins.manager import PluginManager
from app.services.market_hours import MarketHoursService
from app.services.price_refresh import PriceRefreshService
from app.services.price_staleness import PriceStatusService


def get_plugin_manager(request: Request) -> PluginManager:
    manager = getattr(request.app.state, "plugin_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Plugin manager is not initialized.",
        )
    return manager


def get_price_status_service(request: Request) -> PriceStatusService:
    service = getattr(request.app.state, "price_status_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Price status service is not initialized.",
        )
    return service


def get_price_refresh_service(request: Request) -> PriceRefreshService:
    service = getattr(request.app.state, "price_refresh_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Price refresh service is not initialized.",
        )
    return service


def get_market_hours(request: Request) -> MarketHoursService:
    service = getattr(request.app.state, "market_hours_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Market hours service is not initialized.",
        )
    return service


def to_http_exception(exc: PluginError) -> HTTPException:
    """
    Translate a plugin-layer error into the HTTP error the client sees.

    Validation and bulk total failures keep their structured payloads so the
    client can render field-level feedback without parsing messages.
    """

    if isinstance(exc, ManualEntryValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "validation failed",
                "errors": [
                    {"field": error.field, "message": error.message, "code": error.code}
                    for error in exc.errors
                ],
            },
        )
    if isinstance(exc, BulkUpdateFailedError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": str(exc),
                "failures": [
                    {"id": failure.id, "error": failure.error, "fields": list(failure.fields)}
                    for failure in exc.failures
                ],
            },
        )
    if isinstance(exc, (PluginNotRegisteredError, RecordNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(
        exc,
        (
            ManualEntryNotSupportedError,
            BulkUpdateNotSupportedError,
            CategorySchemaNotSupportedError,
        ),
    ):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, (PluginAlreadyRegisteredError, PluginDisabledError, RecordConflictError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, (StorageError, PluginInitializationError)):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
