"""
Tests for the equity compensation plugin.

Coverage:
- vested vs total shares rule and the derived unvested share count
- vesting start date ordering against the grant date
- stock option strike price requirement
- date horizon check on grant dates
- persistence of a grant with a quote fallback of zero
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from app.connectors.mock_quote_connector import MockQuoteProvider
from app.domain.plugins import ErrorCode, PluginConfig
from app.plugins.equity_grants import EquityGrantsPlugin, GrantType
from app.plugins.errors import ManualEntryValidationError
from db.models.equity_grant import EquityGrant
from db.models.stock_price import StockPrice


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "grant_type": GrantType.RSU,
        "company_symbol": "msft",
        "total_shares": 1000,
        "vested_shares": 250,
        "grant_date": "2024-01-01",
        "vest_start_date": "2024-06-01",
    }
    payload.update(overrides)
    return payload


def _codes(result: object, field: str) -> list[str]:
    return [error.code for error in result.errors if error.field == field]


@pytest.fixture()
def plugin(session_factory) -> EquityGrantsPlugin:
    plugin = EquityGrantsPlugin(session_factory=session_factory, quote_provider=MockQuoteProvider())
    plugin.initialize(PluginConfig(enabled=True))
    return plugin


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestEquityGrantValidation:
    def test_vested_shares_cannot_exceed_total(self, plugin: EquityGrantsPlugin) -> None:
        result = plugin.validate_manual_entry(_payload(total_shares=1000, vested_shares=1100))

        assert result.valid is False
        assert _codes(result, "vested_shares") == [ErrorCode.INVALID_RANGE]

    def test_unvested_shares_are_derived(self, plugin: EquityGrantsPlugin) -> None:
        result = plugin.validate_manual_entry(_payload(total_shares="1000", vested_shares="250"))

        assert result.valid is True
        assert result.data["unvested_shares"] == 750.0
        assert result.data["company_symbol"] == "MSFT"
        assert result.data["vesting_schedule"] == "quarterly"

    def test_vest_start_before_grant_date(self, plugin: EquityGrantsPlugin) -> None:
        result = plugin.validate_manual_entry(
            _payload(grant_date="2024-06-01", vest_start_date="2024-01-01")
        )

        assert result.valid is False
        assert _codes(result, "vest_start_date") == [ErrorCode.INVALID_DATE_ORDER]

    def test_stock_option_requires_strike_price(self, plugin: EquityGrantsPlugin) -> None:
        result = plugin.validate_manual_entry(_payload(grant_type=GrantType.STOCK_OPTION))

        assert _codes(result, "strike_price") == [ErrorCode.REQUIRED]

    def test_stock_option_strike_price_must_be_positive(self, plugin: EquityGrantsPlugin) -> None:
        result = plugin.validate_manual_entry(
            _payload(grant_type=GrantType.STOCK_OPTION, strike_price=0)
        )

        assert _codes(result, "strike_price") == [ErrorCode.INVALID_RANGE]

    def test_rsu_does_not_need_strike_price(self, plugin: EquityGrantsPlugin) -> None:
        assert plugin.validate_manual_entry(_payload(strike_price="")).valid is True

    def test_grant_date_more_than_ten_years_ahead(self, plugin: EquityGrantsPlugin) -> None:
        far_future = (date.today() + timedelta(days=365 * 11)).isoformat()
        result = plugin.validate_manual_entry(
            _payload(grant_date=far_future, vest_start_date=far_future)
        )

        assert _codes(result, "grant_date") == [ErrorCode.INVALID_RANGE]


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestEquityGrantPersistence:
    def test_process_stores_grant_and_quote(self, plugin: EquityGrantsPlugin, session_factory) -> None:
        record_id = plugin.process_manual_entry(_payload())

        with session_factory() as session:
            grant = session.get(EquityGrant, record_id)
            assert grant is not None
            assert grant.account_id == plugin.account_id
            assert grant.unvested_shares == 750.0
            assert grant.current_price == pytest.approx(378.85)
            prices = session.execute(select(StockPrice)).scalars().all()
            assert [(p.symbol, p.source) for p in prices] == [("MSFT", "mock")]

    def test_unknown_symbol_falls_back_to_zero_price(
        self, plugin: EquityGrantsPlugin, session_factory
    ) -> None:
        record_id = plugin.process_manual_entry(_payload(company_symbol="ZZZZ"))

        with session_factory() as session:
            assert session.get(EquityGrant, record_id).current_price == 0.0
            assert session.execute(select(StockPrice)).scalars().all() == []

    def test_invalid_payload_is_rejected_before_writing(
        self, plugin: EquityGrantsPlugin, session_factory
    ) -> None:
        with pytest.raises(ManualEntryValidationError) as exc_info:
            plugin.process_manual_entry(_payload(vested_shares=2000))

        assert [error.field for error in exc_info.value.errors] == ["vested_shares"]
        with session_factory() as session:
            assert session.execute(select(EquityGrant)).scalars().all() == []

    def test_balance_uses_vested_shares(self, plugin: EquityGrantsPlugin) -> None:
        plugin.process_manual_entry(_payload())

        balances = plugin.get_balances()

        assert len(balances) == 1
        assert balances[0].amount == pytest.approx(250 * 378.85)
        assert balances[0].currency == "USD"
