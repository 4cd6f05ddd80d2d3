"""
Tests for the batch price refresh.

Coverage:
- a fresh cache skips the quote provider unless the refresh is forced
- a stale cache re-quotes every symbol and corrects zero prices
- failed lookups keep the stored price and are reported per symbol
- the update hook only fires when prices were written
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest
from sqlalchemy import select

from app.config import MarketHoursSettings, PriceCacheSettings
from app.connectors.mock_quote_connector import MockQuoteProvider
from app.repositories.price_repository import PriceRepository
from app.services.market_hours import MarketHoursService
from app.services.price_refresh import PriceRefreshService, RefreshReason
from app.services.price_staleness import PriceStatusService
from db.models.account import Account
from db.models.equity_grant import EquityGrant
from db.models.stock_holding import StockHolding
from db.models.stock_price import StockPrice

NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)  # Wednesday, market open


class CountingQuoteProvider(MockQuoteProvider):
    def __init__(self, prices: dict[str, float]) -> None:
        super().__init__(prices)
        self.calls: list[str] = []

    def get_current_price(self, symbol: str) -> float:
        self.calls.append(symbol)
        return super().get_current_price(symbol)


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


@pytest.fixture()
def provider() -> CountingQuoteProvider:
    return CountingQuoteProvider({"AAPL": 180.0, "NVDA": 500.0})


@pytest.fixture()
def updates() -> list[int]:
    return []


@pytest.fixture()
def service(
    session_factory,
    provider: CountingQuoteProvider,
    status_service: PriceStatusService,
    market_hours: MarketHoursService,
    updates: list[int],
) -> PriceRefreshService:
    return PriceRefreshService(
        session_factory=session_factory,
        quote_provider=provider,
        status_service=status_service,
        market_hours=market_hours,
        on_update=lambda: updates.append(1),
    )


def _seed(session_factory, *, cached_minutes_ago: int | None) -> None:
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
                    institution_name="Schwab",
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
        if cached_minutes_ago is not None:
            PriceRepository(session).record_price(
                symbol="AAPL",
                price=175.5,
                source="mock",
                observed_at=NOW - timedelta(minutes=cached_minutes_ago),
            )
        session.commit()


def _prices(session_factory) -> dict[str, list[float | None]]:
    with session_factory() as session:
        holdings = session.execute(select(StockHolding).order_by(StockHolding.symbol)).scalars().all()
        grants = session.execute(select(EquityGrant)).scalars().all()
        return {
            "holdings": [row.current_price for row in holdings],
            "grants": [row.current_price for row in grants],
        }


def _cache_rows(session_factory) -> int:
    with session_factory() as session:
        return len(session.execute(select(StockPrice)).scalars().all())


# ---------------------------------------------------------------------------
# Skipping the provider
# ---------------------------------------------------------------------------


class TestRefreshSkipped:
    def test_no_symbols(self, service: PriceRefreshService, provider: CountingQuoteProvider) -> None:
        summary = service.refresh(now=NOW)

        assert summary.refreshed is False
        assert summary.reason == RefreshReason.NO_SYMBOLS
        assert summary.total_symbols == 0
        assert provider.calls == []

    def test_fresh_cache_does_not_call_provider(
        self,
        service: PriceRefreshService,
        provider: CountingQuoteProvider,
        session_factory,
        updates: list[int],
    ) -> None:
        _seed(session_factory, cached_minutes_ago=5)
        before = _prices(session_factory)

        summary = service.refresh(now=NOW)

        assert summary.refreshed is False
        assert summary.reason == RefreshReason.CACHE_FRESH
        assert summary.total_symbols == 2
        assert summary.updated_symbols == 0
        assert summary.failed_symbols == 0
        assert provider.calls == []
        assert _prices(session_factory) == before
        assert _cache_rows(session_factory) == 1
        assert updates == []


# ---------------------------------------------------------------------------
# Refreshing
# ---------------------------------------------------------------------------


class TestRefreshRuns:
    def test_forced_refresh_ignores_fresh_cache(
        self, service: PriceRefreshService, provider: CountingQuoteProvider, session_factory
    ) -> None:
        _seed(session_factory, cached_minutes_ago=5)

        summary = service.refresh(force=True, now=NOW)

        assert summary.refreshed is True
        assert summary.reason == RefreshReason.FORCED
        assert provider.calls == ["AAPL", "NVDA"]
        assert _prices(session_factory) == {"holdings": [180.0, 500.0], "grants": [180.0]}

    def test_stale_cache_corrects_zero_prices(
        self,
        service: PriceRefreshService,
        status_service: PriceStatusService,
        session_factory,
        updates: list[int],
    ) -> None:
        _seed(session_factory, cached_minutes_ago=45)
        assert status_service.get_price_status(now=NOW).stale_count == 2

        summary = service.refresh(now=NOW)

        assert summary.refreshed is True
        assert summary.reason == RefreshReason.CACHE_STALE
        assert summary.updated_symbols == 2
        assert [(r.symbol, r.price) for r in summary.results] == [("AAPL", 180.0), ("NVDA", 500.0)]
        assert _prices(session_factory) == {"holdings": [180.0, 500.0], "grants": [180.0]}
        assert _cache_rows(session_factory) == 3
        assert updates == [1]

        status = status_service.get_price_status(now=NOW)
        assert status.stale_count == 0
        assert status.cache_age == 0
        assert status.force_refresh_needed is False

    def test_missing_cache_forces_refresh(
        self, service: PriceRefreshService, provider: CountingQuoteProvider, session_factory
    ) -> None:
        _seed(session_factory, cached_minutes_ago=None)

        summary = service.refresh(now=NOW)

        assert summary.refreshed is True
        assert provider.calls == ["AAPL", "NVDA"]

    def test_failed_lookup_keeps_stored_price(self, session_factory, status_service, market_hours) -> None:
        _seed(session_factory, cached_minutes_ago=45)
        updates: list[int] = []
        service = PriceRefreshService(
            session_factory=session_factory,
            quote_provider=CountingQuoteProvider({"AAPL": 181.0}),
            status_service=status_service,
            market_hours=market_hours,
            on_update=lambda: updates.append(1),
        )

        summary = service.refresh(now=NOW)

        assert summary.updated_symbols == 1
        assert summary.failed_symbols == 1
        failed = [result for result in summary.results if not result.updated]
        assert [result.symbol for result in failed] == ["NVDA"]
        assert "NVDA" in failed[0].error
        assert _prices(session_factory) == {"holdings": [181.0, 0.0], "grants": [181.0]}
        assert updates == [1]

    def test_all_lookups_failing_writes_nothing(self, session_factory, status_service, market_hours) -> None:
        _seed(session_factory, cached_minutes_ago=45)
        updates: list[int] = []
        service = PriceRefreshService(
            session_factory=session_factory,
            quote_provider=CountingQuoteProvider({"MSFT": 378.85}),
            status_service=status_service,
            market_hours=market_hours,
            on_update=lambda: updates.append(1),
        )

        summary = service.refresh(now=NOW)

        assert summary.refreshed is True
        assert summary.updated_symbols == 0
        assert summary.failed_symbols == 2
        assert _cache_rows(session_factory) == 1
        assert updates == []
