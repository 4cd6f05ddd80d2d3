"""
app/plugins/cash_holdings.py

Manual entry for checking, savings, money market and similar cash balances.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

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
from db.models.cash_holding import CashHolding

CASH_ACCOUNT_TYPES = (
    FieldOption(value="checking", label="Checking Account"),
    FieldOption(value="savings", label="Savings Account"),
    FieldOption(value="money_market", label="Money Market Account"),
    FieldOption(value="cd", label="Certificate of Deposit"),
    FieldOption(value="high_yield_savings", label="High Yield Savings"),
    FieldOption(value="brokerage", label="Brokerage Cash"),
    FieldOption(value="other", label="Other"),
)

CURRENCIES = (
    FieldOption(value="USD", label="US Dollar"),
    FieldOption(value="EUR", label="Euro"),
    FieldOption(value="GBP", label="British Pound"),
    FieldOption(value="CAD", label="Canadian Dollar"),
)


class CashHoldingsPlugin(BulkEditablePlugin):
    """
    One row per bank account; each row gets its own "<institution> <account>" account.
    """

    descriptor = PluginDescriptor(
        name="cash_holdings",
        friendly_name="Cash Holdings",
        version="1.0.0",
        description="Manual entry for bank accounts, savings and other cash balances",
        plugin_type=PluginType.MANUAL,
        data_source=DataSourceType.MANUAL,
    )
    model = CashHolding
    default_account = DefaultAccount(
        name="Cash Holdings Portfolio",
        account_type="cash_holdings",
        institution="Manual Entry",
    )

    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        return (
            FieldSpec(
                name="institution_name",
                type=FieldType.TEXT,
                label="Institution Name",
                description="Bank or credit union holding the account",
                required=True,
                placeholder="Chase Bank",
                validation=FieldValidation(max_length=100),
            ),
            FieldSpec(
                name="account_name",
                type=FieldType.TEXT,
                label="Account Name",
                description="Name to identify this account",
                required=True,
                placeholder="Primary Checking",
                validation=FieldValidation(max_length=100),
            ),
            FieldSpec(
                name="account_type",
                type=FieldType.SELECT,
                label="Account Type",
                required=True,
                options=CASH_ACCOUNT_TYPES,
            ),
            FieldSpec(
                name="current_balance",
                type=FieldType.NUMBER,
                label="Current Balance",
                required=True,
                placeholder="5000.00",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="interest_rate",
                type=FieldType.NUMBER,
                label="Interest Rate (%)",
                description="Annual percentage yield",
                placeholder="4.5",
                validation=FieldValidation(min=-100, max=100),
            ),
            FieldSpec(
                name="monthly_contribution",
                type=FieldType.NUMBER,
                label="Monthly Contribution",
                placeholder="500",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="account_number_last4",
                type=FieldType.TEXT,
                label="Account Number (last 4)",
                placeholder="1234",
                validation=FieldValidation(pattern=r"^[0-9]{4}$"),
            ),
            FieldSpec(
                name="currency",
                type=FieldType.SELECT,
                label="Currency",
                default_value="USD",
                options=CURRENCIES,
            ),
            FieldSpec(
                name="notes",
                type=FieldType.TEXTAREA,
                label="Notes",
                validation=FieldValidation(max_length=500),
            ),
        )

    def _to_row(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "institution_name": data["institution_name"],
            "account_name": data["account_name"],
            "account_type": data["account_type"],
            "current_balance": data["current_balance"],
            "interest_rate": data.get("interest_rate"),
            "monthly_contribution": data.get("monthly_contribution"),
            "account_number_last4": data.get("account_number_last4"),
            "currency": data.get("currency") or self.currency,
            "notes": data.get("notes"),
        }

    def _account_key(self, data: Mapping[str, Any]) -> AccountKey:
        return AccountKey(
            name=f"{data['institution_name']} {data['account_name']}",
            account_type=data["account_type"],
            institution=data["institution_name"],
        )

    def _balance_amount(self, row: CashHolding) -> float:
        return float(row.current_balance or 0.0)
