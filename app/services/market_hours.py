"""
app/services/market_hours.py

Regular-session market hours in the exchange's local timezone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import MarketHoursSettings, get_market_hours_settings

logger = logging.getLogger(__name__)


class MarketPhase:
    OPEN = "open"
    PRE_MARKET = "pre_market"
    AFTER_HOURS = "after_hours"
    CLOSED = "closed"


@dataclass(frozen=True)
class MarketStatus:
    is_open: bool
    status: str
    open_time: datetime
    close_time: datetime
    next_open: datetime
    next_close: datetime
    time_to_next: str


class MarketHoursService:
    """
    Answers "is the market open right now" for the configured session.

    Every method accepts an optional ``now`` so callers and tests can pin the clock.
    """

    def __init__(self, *, settings: MarketHoursSettings) -> None:
        self._settings = settings
        self._location = _load_timezone(settings.timezone)

    @property
    def location(self) -> tzinfo:
        return self._location

    def is_business_day(self, day: date) -> bool:
        return self._settings.weekend_trading or day.weekday() < 5

    def is_market_open(self, now: datetime | None = None) -> bool:
        local_now = self._local_now(now)
        if not self.is_business_day(local_now.date()):
            return False
        open_at, close_at = self._session_bounds(local_now.date())
        return open_at < local_now < close_at

    def get_market_status(self, now: datetime | None = None) -> MarketStatus:
        local_now = self._local_now(now)
        open_at, close_at = self._session_bounds(local_now.date())
        is_open = self.is_market_open(local_now)

        if is_open:
            phase = MarketPhase.OPEN
            next_open = self._next_business_session(local_now.date())[0]
            next_close = close_at
        elif not self.is_business_day(local_now.date()):
            phase = MarketPhase.CLOSED
            next_open, next_close = self._next_business_session(local_now.date())
        elif local_now <= open_at:
            phase = MarketPhase.PRE_MARKET
            next_open, next_close = open_at, close_at
        else:
            phase = MarketPhase.AFTER_HOURS
            next_open, next_close = self._next_business_session(local_now.date())

        target = next_close if is_open else next_open
        return MarketStatus(
            is_open=is_open,
            status=phase,
            open_time=open_at,
            close_time=close_at,
            next_open=next_open,
            next_close=next_close,
            time_to_next=_format_duration(target - local_now),
        )

    def _local_now(self, now: datetime | None) -> datetime:
        current = now or datetime.now(timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(self._location)

    def _session_bounds(self, day: date) -> tuple[datetime, datetime]:
        open_at = datetime.combine(day, self._settings.open_time, tzinfo=self._location)
        close_at = datetime.combine(day, self._settings.close_time, tzinfo=self._location)
        return open_at, close_at

    def _next_business_session(self, day: date) -> tuple[datetime, datetime]:
        candidate = day + timedelta(days=1)
        while not self.is_business_day(candidate):
            candidate += timedelta(days=1)
        return self._session_bounds(candidate)


def _load_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown market timezone timezone=%s falling back to UTC", name)
        return timezone.utc


def _format_duration(delta: timedelta) -> str:
    total_minutes = int(delta.total_seconds() // 60)
    if total_minutes <= 0:
        return "0m"
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


@lru_cache(maxsize=1)
def get_market_hours_service() -> MarketHoursService:
    """
    Build and cache the market hours service from environment settings.
    """

    return MarketHoursService(settings=get_market_hours_settings())
