"""
app/plugins/crypto_holdings.py

Manual entry for cryptocurrency balances held at exchanges or in wallets.
Prices come from the crypto quote provider, in USD.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.domain.plugins import (
    DataSourceType,
    FieldSpec,
    FieldType,
    FieldValidation,
    PluginDescriptor,
    PluginType,
)
from app.plugins.base import AccountKey, BulkEditablePlugin, DefaultAccount
from db.models.crypto_holding import CryptoHolding


class CryptoHoldingsPlugin(BulkEditablePlugin):
    descriptor = PluginDescriptor(
        name="crypto_holdings",
        friendly_name="Crypto Holdings",
        version="1.0.0",
        description="Manual entry for cryptocurrency balances",
        plugin_type=PluginType.MANUAL,
        data_source=DataSourceType.MANUAL,
    )
    model = CryptoHolding
    default_account = DefaultAccount(
        name="Crypto Holdings Portfolio",
        account_type="crypto",
        institution="Manual Entry",
    )

    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        return (
            FieldSpec(
                name="institution_name",
                type=FieldType.TEXT,
                label="Exchange / Wallet",
                required=True,
                placeholder="Coinbase, Ledger, ...",
                validation=FieldValidation(max_length=100),
            ),
            FieldSpec(
                name="crypto_symbol",
                type=FieldType.TEXT,
                label="Symbol",
                required=True,
                placeholder="BTC",
                validation=FieldValidation(max_length=20, pattern=r"^[A-Z0-9]{1,20}$"),
                uppercase=True,
            ),
            FieldSpec(
                name="balance_tokens",
                type=FieldType.NUMBER,
                label="Token Balance",
                required=True,
                placeholder="0.5",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="purchase_price_usd",
                type=FieldType.NUMBER,
                label="Purchase Price (USD)",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="purchase_date",
                type=FieldType.DATE,
                label="Purchase Date",
            ),
            FieldSpec(
                name="wallet_address",
                type=FieldType.TEXT,
                label="Wallet Address",
                validation=FieldValidation(max_length=255),
            ),
            FieldSpec(
                name="staking_annual_percentage",
                type=FieldType.NUMBER,
                label="Staking APY (%)",
                default_value=0,
                validation=FieldValidation(min=0, max=100),
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
            "crypto_symbol": data["crypto_symbol"],
            "balance_tokens": data["balance_tokens"],
            "purchase_price_usd": data.get("purchase_price_usd"),
            "purchase_date": data.get("purchase_date"),
            "wallet_address": data.get("wallet_address"),
            "staking_annual_percentage": data.get("staking_annual_percentage") or 0.0,
            "notes": data.get("notes"),
        }

    def _account_key(self, data: Mapping[str, Any]) -> AccountKey:
        return AccountKey(
            name=f"{data['institution_name']} {data['crypto_symbol']}",
            account_type="crypto",
            institution=data["institution_name"],
        )

    def _lookup_prices(self, data: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
        price = self._fetch_quote(data["crypto_symbol"])
        if price is None:
            return {"current_price_usd": 0.0} if creating else {}
        return {"current_price_usd": price}

    def _balance_amount(self, row: CryptoHolding) -> float:
        return float(row.balance_tokens or 0.0) * float(row.current_price_usd or 0.0)
