"""
app/plugins/stock_holdings.py

Manual entry for brokerage stock positions, including shares held at a
transfer agent. The current price comes from the quote provider at write time.
"""

from __future__ import annotations

from collections.abc import Mapping
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
from app.plugins.base import AccountKey, BulkEditablePlugin, DefaultAccount
from app.repositories.price_repository import PriceRepository
from db.models.stock_holding import StockHolding

SYMBOL_PATTERN = r"^[A-Z]{1,5}$"
MAX_YEARS_AHEAD = 10


def record_quote(session: Session, *, symbol: str, price: float | None, source: str | None) -> None:
    """
    Append a successful quote to the price cache so price status sees its age.
    """

    if price:
        PriceRepository(session).record_price(symbol=symbol, price=price, source=source)


class StockHoldingsPlugin(BulkEditablePlugin):
    descriptor = PluginDescriptor(
        name="stock_holding",
        friendly_name="Stock Holdings",
        version="1.0.0",
        description="Manual entry for stock positions held at brokerages or transfer agents",
        plugin_type=PluginType.MANUAL,
        data_source=DataSourceType.MANUAL,
    )
    model = StockHolding
    default_account = DefaultAccount(
        name="Stock Holdings Portfolio",
        account_type="investment",
        institution="Manual Entry",
    )

    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        return (
            FieldSpec(
                name="institution_name",
                type=FieldType.TEXT,
                label="Institution",
                description="Brokerage or transfer agent holding the shares",
                required=True,
                placeholder="Fidelity, Computershare, ...",
                validation=FieldValidation(max_length=100),
            ),
            FieldSpec(
                name="symbol",
                type=FieldType.TEXT,
                label="Stock Symbol",
                required=True,
                placeholder="AAPL",
                validation=FieldValidation(pattern=SYMBOL_PATTERN),
                uppercase=True,
            ),
            FieldSpec(
                name="company_name",
                type=FieldType.TEXT,
                label="Company Name",
                placeholder="Apple Inc.",
                validation=FieldValidation(max_length=200),
            ),
            FieldSpec(
                name="shares_owned",
                type=FieldType.NUMBER,
                label="Shares Owned",
                required=True,
                placeholder="100",
                validation=FieldValidation(min=0.001),
            ),
            FieldSpec(
                name="cost_basis",
                type=FieldType.NUMBER,
                label="Cost Basis per Share",
                placeholder="150.00",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="purchase_date",
                type=FieldType.DATE,
                label="Purchase Date",
                validation=FieldValidation(max_years_ahead=MAX_YEARS_AHEAD),
            ),
            FieldSpec(
                name="estimated_quarterly_dividend",
                type=FieldType.NUMBER,
                label="Estimated Quarterly Dividend",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="drip_enabled",
                type=FieldType.SELECT,
                label="Dividend Reinvestment",
                default_value="unknown",
                options=(
                    FieldOption(value="true", label="Yes"),
                    FieldOption(value="false", label="No"),
                    FieldOption(value="unknown", label="Unknown"),
                ),
            ),
            FieldSpec(
                name="is_vested_equity",
                type=FieldType.SELECT,
                label="Vested Equity Compensation",
                description="Shares received from a vested employer grant",
                default_value="false",
                options=(
                    FieldOption(value="true", label="Yes"),
                    FieldOption(value="false", label="No"),
                ),
            ),
        )

    def _to_row(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "institution_name": data["institution_name"],
            "symbol": data["symbol"],
            "company_name": data.get("company_name"),
            "shares_owned": data["shares_owned"],
            "cost_basis": data.get("cost_basis"),
            "purchase_date": data.get("purchase_date"),
            "estimated_quarterly_dividend": data.get("estimated_quarterly_dividend"),
            "drip_enabled": data.get("drip_enabled") or "unknown",
            "is_vested_equity": data.get("is_vested_equity") == "true",
        }

    def _account_key(self, data: Mapping[str, Any]) -> AccountKey:
        return AccountKey(
            name=f"{data['symbol']} at {data['institution_name']}",
            account_type="investment",
            institution=data["institution_name"],
        )

    def _lookup_prices(self, data: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
        price = self._fetch_quote(data["symbol"])
        if price is None:
            # A later refresh corrects the price; an update keeps the stored one.
            return {"current_price": 0.0} if creating else {}
        return {"current_price": price}

    def _after_write(self, session: Session, data: Mapping[str, Any], priced: Mapping[str, Any]) -> None:
        record_quote(
            session,
            symbol=data["symbol"],
            price=priced.get("current_price"),
            source=self._quote_provider.provider_name if self._quote_provider else None,
        )

    def _balance_amount(self, row: StockHolding) -> float:
        return float(row.shares_owned or 0.0) * float(row.current_price or 0.0)
