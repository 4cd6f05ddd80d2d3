"""
app/plugins/equity_grants.py

Employer equity compensation grants (RSUs, stock options, ESPP) entered
from a Morgan Stanley StockPlan Connect statement.

Cross-field rules:
- vested shares never exceed total shares (``invalid_range``);
- a stock option needs a strike price above zero;
- vesting cannot start before the grant date (``invalid_date_order``).

``unvested_shares`` is derived during validation and stored as-is.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Session

from app.domain.plugins import (
    DataSourceType,
    FieldOption,
    FieldSpec,
    FieldType,
    FieldValidation,
    PluginDescriptor,
    PluginType,
)
from app.plugins.base import DefaultAccount, ManualEntryPlugin
from app.plugins.stock_holdings import MAX_YEARS_AHEAD, SYMBOL_PATTERN, record_quote
from app.validators.manual_entry_validator import CrossFieldRule, Derivation
from app.validators.rules import (
    date_not_before,
    difference,
    greater_than_when,
    not_greater_than,
    required_when,
)
from db.models.equity_grant import EquityGrant


class GrantType:
    RSU = "rsu"
    STOCK_OPTION = "stock_option"
    ESPP = "espp"


class EquityGrantsPlugin(ManualEntryPlugin):
    descriptor = PluginDescriptor(
        name="morgan_stanley",
        friendly_name="Equity Compensation",
        version="1.0.0",
        description="Manual entry for RSU, stock option and ESPP grants",
        plugin_type=PluginType.MANUAL,
        data_source=DataSourceType.MANUAL,
    )
    model = EquityGrant
    default_account = DefaultAccount(
        name="Morgan Stanley Equity Compensation",
        account_type="equity",
        institution="Morgan Stanley",
    )

    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        return (
            FieldSpec(
                name="grant_type",
                type=FieldType.SELECT,
                label="Grant Type",
                required=True,
                options=(
                    FieldOption(value=GrantType.RSU, label="Restricted Stock Units"),
                    FieldOption(value=GrantType.STOCK_OPTION, label="Stock Options"),
                    FieldOption(value=GrantType.ESPP, label="Employee Stock Purchase Plan"),
                ),
            ),
            FieldSpec(
                name="company_symbol",
                type=FieldType.TEXT,
                label="Company Symbol",
                required=True,
                placeholder="MSFT",
                validation=FieldValidation(pattern=SYMBOL_PATTERN),
                uppercase=True,
            ),
            FieldSpec(
                name="total_shares",
                type=FieldType.NUMBER,
                label="Total Shares Granted",
                required=True,
                placeholder="1000",
                validation=FieldValidation(min=1),
            ),
            FieldSpec(
                name="vested_shares",
                type=FieldType.NUMBER,
                label="Vested Shares",
                required=True,
                placeholder="250",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="strike_price",
                type=FieldType.NUMBER,
                label="Strike Price",
                description="Exercise price per share (stock options only)",
                placeholder="45.00",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="grant_date",
                type=FieldType.DATE,
                label="Grant Date",
                required=True,
                validation=FieldValidation(max_years_ahead=MAX_YEARS_AHEAD),
            ),
            FieldSpec(
                name="vest_start_date",
                type=FieldType.DATE,
                label="Vesting Start Date",
                required=True,
                validation=FieldValidation(max_years_ahead=MAX_YEARS_AHEAD),
            ),
            FieldSpec(
                name="vesting_schedule",
                type=FieldType.SELECT,
                label="Vesting Schedule",
                default_value="quarterly",
                options=(
                    FieldOption(value="quarterly", label="Quarterly"),
                    FieldOption(value="monthly", label="Monthly"),
                    FieldOption(value="cliff_1_year", label="1-Year Cliff"),
                    FieldOption(value="custom", label="Custom"),
                ),
            ),
            FieldSpec(
                name="vesting_period_years",
                type=FieldType.NUMBER,
                label="Vesting Period (years)",
                default_value=4,
                validation=FieldValidation(min=0.25, max=10),
            ),
        )

    def _rules(self) -> Sequence[CrossFieldRule]:
        return (
            not_greater_than(
                "vested_shares",
                "total_shares",
                message="Vested shares cannot exceed total shares",
            ),
            required_when(
                "strike_price",
                when_field="grant_type",
                when_value=GrantType.STOCK_OPTION,
                message="Strike price is required for stock options",
            ),
            greater_than_when(
                "strike_price",
                0.0,
                when_field="grant_type",
                when_value=GrantType.STOCK_OPTION,
                message="Strike price must be greater than 0 for stock options",
            ),
            date_not_before(
                "vest_start_date",
                "grant_date",
                message="Vesting start date cannot be before the grant date",
            ),
        )

    def _derivations(self) -> Sequence[Derivation]:
        return (difference("unvested_shares", "total_shares", "vested_shares"),)

    def _to_row(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "grant_type": data["grant_type"],
            "company_symbol": data["company_symbol"],
            "total_shares": data["total_shares"],
            "vested_shares": data["vested_shares"],
            "unvested_shares": data["unvested_shares"],
            "strike_price": data.get("strike_price"),
            "grant_date": data["grant_date"],
            "vest_start_date": data["vest_start_date"],
            "vesting_schedule": data.get("vesting_schedule") or "quarterly",
            "vesting_period_years": data.get("vesting_period_years"),
        }

    def _lookup_prices(self, data: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
        price = self._fetch_quote(data["company_symbol"])
        return {"current_price": price if price is not None else 0.0}

    def _after_write(self, session: Session, data: Mapping[str, Any], priced: Mapping[str, Any]) -> None:
        record_quote(
            session,
            symbol=data["company_symbol"],
            price=priced.get("current_price"),
            source=self._quote_provider.provider_name if self._quote_provider else None,
        )

    def _balance_amount(self, row: EquityGrant) -> float:
        return float(row.vested_shares or 0.0) * float(row.current_price or 0.0)
