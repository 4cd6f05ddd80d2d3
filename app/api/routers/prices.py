"""
app/api/routers/prices.py

Price cache status, price refresh and market hours endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import (
    get_market_hours,
    get_price_refresh_service,
    get_price_status_service,
    to_http_exception,
)
from app.plugins.errors import PluginError
from app.schemas.prices import (
    MarketStatusResponse,
    PriceRefreshResponse,
    PriceStatusResponse,
    SymbolRefreshResponse,
)
from app.services.market_hours import MarketHoursService
from app.services.price_refresh import PriceRefreshService
from app.services.price_staleness import PriceStatusService

router = APIRouter(tags=["prices"])


@router.get("/prices/status", response_model=PriceStatusResponse)
def price_status(
    service: PriceStatusService = Depends(get_price_status_service),
) -> PriceStatusResponse:
    """
    Report how many priced symbols need a refresh and how old the cache is.
    """

    try:
        report = service.get_price_status()
    except PluginError as exc:
        raise to_http_exception(exc) from exc

    return PriceStatusResponse(
        stale_count=report.stale_count,
        total_count=report.total_count,
        cache_age=report.cache_age,
        market_open=report.market_open,
        cache_stale=report.cache_stale,
        force_refresh_needed=report.force_refresh_needed,
        last_cache_update=report.last_cache_update,
        provider_name=report.provider_name,
    )


@router.post("/prices/refresh", response_model=PriceRefreshResponse)
def refresh_prices(
    force: bool = Query(False, description="Refresh even when the cache is recent."),
    service: PriceRefreshService = Depends(get_price_refresh_service),
) -> PriceRefreshResponse:
    """
    Re-quote every priced symbol when the cache is stale, or always with ``force``.
    """

    try:
        summary = service.refresh(force=force)
    except PluginError as exc:
        raise to_http_exception(exc) from exc

    return PriceRefreshResponse(
        refreshed=summary.refreshed,
        reason=summary.reason,
        total_symbols=summary.total_symbols,
        updated_symbols=summary.updated_symbols,
        failed_symbols=summary.failed_symbols,
        results=[
            SymbolRefreshResponse(
                symbol=result.symbol,
                updated=result.updated,
                price=result.price,
                error=result.error,
            )
            for result in summary.results
        ],
        provider_name=summary.provider_name,
        timestamp=summary.timestamp,
    )


@router.get("/market/status", response_model=MarketStatusResponse)
def market_status(service: MarketHoursService = Depends(get_market_hours)) -> MarketStatusResponse:
    report = service.get_market_status()
    return MarketStatusResponse(
        is_open=report.is_open,
        status=report.status,
        open_time=report.open_time,
        close_time=report.close_time,
        next_open=report.next_open,
        next_close=report.next_close,
        time_to_next=report.time_to_next,
    )
