"""
Tests for the price-staleness policy and the price status report.

Coverage:
- no cache means stale and force refresh
- open/closed market ceilings override the refresh interval
- PriceStatusService counts stale symbols across holdings and grants
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from app.config import MarketHoursSettings, PriceCacheSettings
from app.repositories.price_repository import PriceRepository
from app.services.market_hours import MarketHoursService
from app.services.price_staleness import PriceStatusService, decide
from db.models.account import Account
from db.models.equity_grant import EquityGrant
from db.models.stock_holding import StockHolding

NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)  # Wednesday
INTERVAL = timedelta(minutes=15)


# ---------------------------------------------------------------------------
# decide()
# ---------------------------------------------------------------------------


class TestDecide:
    def test_no_cache_is_stale_and_forces_refresh(self) -> None:
        decision = decide(last_cache_update=None, refresh_interval=INTERVAL, market_open=False, now=NOW)

        assert decision.stale is True
        assert decision.force_refresh_needed is True
        assert decision.cache_age is None

    def test_fresh_cache(self) -> None:
        decision = decide(
            last_cache_update=NOW - timedelta(minutes=5),
            refresh_interval=INTERVAL,
            market_open=True,
            now=NOW,
        )

        assert decision.stale is False
        assert decision.force_refresh_needed is False
        assert decision.cache_age == timedelta(minutes=5)

    def test_market_open_forces_refresh_after_thirty_minutes(self) -> None:
        decision = decide(
            last_cache_update=NOW - timedelta(minutes=45),
            refresh_interval=INTERVAL,
            market_open=True,
            now=NOW,
        )

        assert decision.stale is True
        assert decision.force_refresh_needed is True

    def test_market_closed_tolerates_older_cache(self) -> None:
        decision = decide(
            last_cache_update=NOW - timedelta(minutes=45),
            refresh_interval=INTERVAL,
            market_open=False,
            now=NOW,
        )

        assert decision.stale is True
        assert decision.force_refresh_needed is False

    def test_market_closed_forces_refresh_after_twelve_hours(self) -> None:
        decision = decide(
            last_cache_update=NOW - timedelta(hours=13),
            refresh_interval=INTERVAL,
            market_open=False,
            now=NOW,
        )

        assert decision.force_refresh_needed is True

    def test_ceiling_applies_even_with_long_interval(self) -> None:
        decision = decide(
            last_cache_update=NOW - timedelta(minutes=45),
            refresh_interval=timedelta(hours=2),
            market_open=True,
            now=NOW,
        )

        assert decision.stale is False
        assert decision.force_refresh_needed is True

    def test_naive_timestamps_are_treated_as_utc(self) -> None:
        decision = decide(
            last_cache_update=(NOW - timedelta(minutes=10)).replace(tzinfo=None),
            refresh_interval=INTERVAL,
            market_open=True,
            now=NOW,
        )

        assert decision.cache_age == timedelta(minutes=10)


# ---------------------------------------------------------------------------
# PriceStatusService
# ---------------------------------------------------------------------------


@pytest.fixture()
def market_hours() -> MarketHoursService:
    return MarketHoursService(
        settings=MarketHoursSettings(open_time=time(9, 30), close_time=time(16, 0), timezone="UTC")
    )


@pytest.fixture()
def status_service(session_factory, market_hours: MarketHoursService) -> PriceStatusService:
    return PriceStatusService(
        session_factory=session_factory,
        market_hours=market_hours,
        provider_name="mock",
        settings=PriceCacheSettings(),
    )


def _seed_holdings(session_factory) -> None:
    with session_factory() as session:
        account = Account(
            account_name="Stock Holdings Portfolio",
            account_type="investment",
            institution="Manual Entry",
            data_source_type="manual",
        )
        session.add(account)
        session.flush()
        session.add_all(
            [
                StockHolding(
                    account_id=account.id,
                    institution_name="Fidelity",
                    symbol="AAPL",
                    shares_owned=10,
                    current_price=175.5,
                    drip_enabled="unknown",
                    is_vested_equity=False,
                ),
                StockHolding(
                    account_id=account.id,
                    institution_name="Fidelity",
                    symbol="NVDA",
                    shares_owned=5,
                    current_price=0,
                    drip_enabled="unknown",
                    is_vested_equity=False,
                ),
                EquityGrant(
                    account_id=account.id,
                    grant_type="rsu",
                    company_symbol="AAPL",
                    total_shares=100,
                    vested_shares=25,
                    unvested_shares=75,
                    current_price=None,
                    grant_date=NOW.date() - timedelta(days=400),
                    vest_start_date=NOW.date() - timedelta(days=365),
                    vesting_schedule="quarterly",
                ),
            ]
        )
        session.commit()


class TestPriceStatusService:
    def test_empty_cache(self, status_service: PriceStatusService) -> None:
        status = status_service.get_price_status(now=NOW)

        assert status.total_count == 0
        assert status.stale_count == 0
        assert status.cache_age is None
        assert status.cache_stale is True
        assert status.force_refresh_needed is True
        assert status.market_open is True
        assert status.provider_name == "mock"

    def test_counts_symbols_missing_prices(self, status_service: PriceStatusService, session_factory) -> None:
        _seed_holdings(session_factory)
        with session_factory() as session:
            PriceRepository(session).record_price(
                symbol="AAPL", price=175.5, source="mock", observed_at=NOW - timedelta(minutes=45)
            )
            session.commit()

        status = status_service.get_price_status(now=NOW)

        # AAPL appears in both tables but counts once; either missing price marks it stale.
        assert status.total_count == 2
        assert status.stale_count == 2
        assert status.cache_age == 45
        assert status.cache_stale is True
        assert status.force_refresh_needed is True
        assert status.last_cache_update == NOW - timedelta(minutes=45)

    def test_closed_market_does_not_force_refresh(
        self, status_service: PriceStatusService, session_factory
    ) -> None:
        evening = NOW.replace(hour=20)
        with session_factory() as session:
            PriceRepository(session).record_price(
                symbol="MSFT", price=378.85, source="mock", observed_at=evening - timedelta(minutes=45)
            )
            session.commit()

        status = status_service.get_price_status(now=evening)

        assert status.market_open is False
        assert status.cache_stale is True
        assert status.force_refresh_needed is False
