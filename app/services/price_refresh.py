"""
app/services/price_refresh.py

Batch price refresh for stock holdings and equity grants.

The staleness policy decides whether the quote provider is called at all:
a fresh cache is left alone unless the caller forces a refresh. When a
refresh runs, every priced symbol is re-quoted outside the transaction and
the successful quotes are written in one commit, which also corrects the
zero prices stored by writes whose quote lookup failed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from app.connectors.base import QuoteProvider, QuoteUnavailableError
from app.logging_utils import log_event
from app.plugins.errors import StorageError
from app.repositories.price_repository import PriceRepository
from app.services.market_hours import MarketHoursService
from app.services.price_staleness import PriceStatusService
from db.session import SessionFactory

logger = logging.getLogger(__name__)


class RefreshReason:
    FORCED = "forced"
    CACHE_STALE = "cache_stale"
    CACHE_FRESH = "cache_fresh"
    NO_SYMBOLS = "no_symbols"


@dataclass(frozen=True)
class SymbolRefreshResult:
    symbol: str
    updated: bool
    price: float | None = None
    error: str | None = None


@dataclass(frozen=True)
class PriceRefreshSummary:
    """
    Outcome of one refresh call.

    ``refreshed`` is False when the provider was not called; ``reason``
    says why the call did or did not happen.
    """

    refreshed: bool
    reason: str
    total_symbols: int
    updated_symbols: int
    failed_symbols: int
    results: tuple[SymbolRefreshResult, ...]
    provider_name: str
    timestamp: datetime


class PriceRefreshService:
    """
    Re-quotes priced symbols when the staleness policy asks for it.

    Parameters
    ----------
    session_factory:
        Opens the sessions used to read symbols and write prices.
    quote_provider:
        Quote boundary for equity symbols.
    status_service:
        Supplies the configured staleness thresholds.
    market_hours:
        Market clock used for the open/closed ceiling.
    on_update:
        Called after prices were written, e.g. to drop cached balances.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        quote_provider: QuoteProvider,
        status_service: PriceStatusService,
        market_hours: MarketHoursService,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._quote_provider = quote_provider
        self._status_service = status_service
        self._market_hours = market_hours
        self._on_update = on_update

    def refresh(self, *, force: bool = False, now: datetime | None = None) -> PriceRefreshSummary:
        current = now or datetime.now(timezone.utc)
        try:
            with self._session_factory() as session:
                repository = PriceRepository(session)
                symbols = repository.list_symbols()
                last_update = repository.latest_cache_update()
        except SQLAlchemyError as exc:
            logger.exception("Failed to read priced symbols error=%s", exc)
            raise StorageError("failed to read priced symbols") from exc

        if not symbols:
            return self._summary(refreshed=False, reason=RefreshReason.NO_SYMBOLS, results=(), at=current)

        decision = self._status_service.decide(
            last_cache_update=last_update,
            market_open=self._market_hours.is_market_open(current),
            now=current,
        )
        if not force and not decision.stale and not decision.force_refresh_needed:
            log_event(
                logger,
                logging.INFO,
                "price_refresh_skipped",
                symbol_count=len(symbols),
                cache_age_seconds=int(decision.cache_age.total_seconds()) if decision.cache_age else 0,
            )
            return self._summary(
                refreshed=False,
                reason=RefreshReason.CACHE_FRESH,
                results=tuple(SymbolRefreshResult(symbol=symbol, updated=False) for symbol in symbols),
                at=current,
            )

        results = tuple(self._quote(symbol) for symbol in symbols)
        quoted = [result for result in results if result.updated]
        if quoted:
            self._write(quoted, observed_at=current)
            if self._on_update is not None:
                self._on_update()

        summary = self._summary(
            refreshed=True,
            reason=RefreshReason.FORCED if force else RefreshReason.CACHE_STALE,
            results=results,
            at=current,
        )
        log_event(
            logger,
            logging.INFO,
            "price_refresh_completed",
            reason=summary.reason,
            total_symbols=summary.total_symbols,
            updated_symbols=summary.updated_symbols,
            failed_symbols=[result.symbol for result in results if not result.updated],
        )
        return summary

    def _quote(self, symbol: str) -> SymbolRefreshResult:
        try:
            price = self._quote_provider.get_current_price(symbol)
        except QuoteUnavailableError as exc:
            logger.warning("Price refresh lookup failed symbol=%s error=%s", symbol, exc)
            return SymbolRefreshResult(symbol=symbol, updated=False, error=str(exc))
        return SymbolRefreshResult(symbol=symbol, updated=True, price=price)

    def _write(self, quoted: list[SymbolRefreshResult], *, observed_at: datetime) -> None:
        with self._session_factory() as session:
            try:
                repository = PriceRepository(session)
                for result in quoted:
                    repository.apply_price(symbol=result.symbol, price=result.price)
                    repository.record_price(
                        symbol=result.symbol,
                        price=result.price,
                        source=self._quote_provider.provider_name,
                        observed_at=observed_at,
                    )
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Price refresh write failed error=%s", exc)
                raise StorageError("failed to store refreshed prices") from exc

    def _summary(
        self,
        *,
        refreshed: bool,
        reason: str,
        results: tuple[SymbolRefreshResult, ...],
        at: datetime,
    ) -> PriceRefreshSummary:
        updated = sum(1 for result in results if result.updated)
        return PriceRefreshSummary(
            refreshed=refreshed,
            reason=reason,
            total_symbols=len(results),
            updated_symbols=updated,
            failed_symbols=len(results) - updated if refreshed else 0,
            results=results,
            provider_name=self._quote_provider.provider_name,
            timestamp=at,
        )
