"""
app/services/price_staleness.py

Price-staleness policy and the price status report built on top of it.

``decide`` is a pure function shared by the read path (annotating responses)
and refresh decisions (whether to call a quote provider at all). It does no
I/O; ``PriceStatusService`` gathers the inputs from storage and the market
clock and delegates the classification to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from app.config import PriceCacheSettings, get_price_cache_settings
from app.logging_utils import log_event
from app.plugins.errors import StorageError
from app.repositories.price_repository import PriceRepository
from app.services.market_hours import MarketHoursService
from db.session import SessionFactory

logger = logging.getLogger(__name__)

FORCE_REFRESH_OPEN_CEILING = timedelta(minutes=30)
FORCE_REFRESH_CLOSED_CEILING = timedelta(hours=12)


@dataclass(frozen=True)
class StalenessDecision:
    stale: bool
    force_refresh_needed: bool
    cache_age: timedelta | None


def decide(
    *,
    last_cache_update: datetime | None,
    refresh_interval: timedelta,
    market_open: bool,
    now: datetime | None = None,
    open_ceiling: timedelta = FORCE_REFRESH_OPEN_CEILING,
    closed_ceiling: timedelta = FORCE_REFRESH_CLOSED_CEILING,
) -> StalenessDecision:
    """
    Classify cached market data.

    - No cache at all: stale and force refresh.
    - stale: cache age exceeds ``refresh_interval``.
    - force refresh: age exceeds ``open_ceiling`` while the market is open,
      or ``closed_ceiling`` while it is closed, whatever the interval says.
    """

    if last_cache_update is None:
        return StalenessDecision(stale=True, force_refresh_needed=True, cache_age=None)

    current = now or datetime.now(timezone.utc)
    cache_age = _aware(current) - _aware(last_cache_update)
    stale = cache_age > refresh_interval
    ceiling = open_ceiling if market_open else closed_ceiling
    return StalenessDecision(
        stale=stale,
        force_refresh_needed=cache_age > ceiling,
        cache_age=cache_age,
    )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class PriceStatus:
    """
    Derived price cache report; recomputed per query, never stored.

    ``cache_age`` is in whole minutes, None when nothing is cached.
    """

    stale_count: int
    total_count: int
    cache_age: int | None
    market_open: bool
    cache_stale: bool
    force_refresh_needed: bool
    last_cache_update: datetime | None
    provider_name: str


class PriceStatusService:
    """
    Builds ``PriceStatus`` from the quote cache and the market clock.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        market_hours: MarketHoursService,
        provider_name: str,
        settings: PriceCacheSettings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._market_hours = market_hours
        self._provider_name = provider_name
        self._settings = settings or get_price_cache_settings()

    def get_price_status(self, *, now: datetime | None = None) -> PriceStatus:
        current = now or datetime.now(timezone.utc)
        try:
            with self._session_factory() as session:
                repository = PriceRepository(session)
                stale_count, total_count = repository.count_symbols()
                last_update = repository.latest_cache_update()
        except SQLAlchemyError as exc:
            logger.exception("Failed to read price cache error=%s", exc)
            raise StorageError("failed to read price cache") from exc

        market_open = self._market_hours.is_market_open(current)
        decision = self.decide(last_cache_update=last_update, market_open=market_open, now=current)
        cache_age_minutes = (
            int(decision.cache_age.total_seconds() // 60) if decision.cache_age is not None else None
        )
        log_event(
            logger,
            logging.DEBUG,
            "price_status",
            stale_count=stale_count,
            total_count=total_count,
            cache_age_minutes=cache_age_minutes,
            market_open=market_open,
            force_refresh_needed=decision.force_refresh_needed,
        )
        return PriceStatus(
            stale_count=stale_count,
            total_count=total_count,
            cache_age=cache_age_minutes,
            market_open=market_open,
            cache_stale=decision.stale,
            force_refresh_needed=decision.force_refresh_needed,
            last_cache_update=last_update,
            provider_name=self._provider_name,
        )

    def decide(
        self,
        *,
        last_cache_update: datetime | None,
        market_open: bool,
        now: datetime | None = None,
    ) -> StalenessDecision:
        """
        Apply the policy with this service's configured thresholds.
        """

        return decide(
            last_cache_update=last_cache_update,
            refresh_interval=timedelta(minutes=self._settings.refresh_interval_minutes),
            market_open=market_open,
            now=now,
            open_ceiling=timedelta(minutes=self._settings.force_refresh_open_minutes),
            closed_ceiling=timedelta(minutes=self._settings.force_refresh_closed_minutes),
        )
