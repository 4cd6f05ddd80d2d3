"""create accounts, holding and price cache tables

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01 10:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def _amount() -> sa.Numeric:
    return sa.Numeric(precision=18, scale=6, asdecimal=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _account_fk() -> sa.Column:
    return sa.Column(
        "account_id",
        sa.Integer(),
        sa.ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_name", sa.String(length=255), nullable=False),
        sa.Column("account_type", sa.String(length=50), nullable=False),
        sa.Column("institution", sa.String(length=255), nullable=False),
        sa.Column("data_source_type", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "account_name",
            "institution",
            "data_source_type",
            name="uq_accounts_name_institution_source",
        ),
    )
    op.create_index("ix_accounts_institution", "accounts", ["institution"], unique=False)
    op.create_index("ix_accounts_data_source_type", "accounts", ["data_source_type"], unique=False)

    op.create_table(
        "cash_holdings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _account_fk(),
        sa.Column("institution_name", sa.String(length=100), nullable=False),
        sa.Column("account_name", sa.String(length=100), nullable=False),
        sa.Column("account_type", sa.String(length=50), nullable=False),
        sa.Column("current_balance", _amount(), nullable=False),
        sa.Column("interest_rate", _amount(), nullable=True),
        sa.Column("monthly_contribution", _amount(), nullable=True),
        sa.Column("account_number_last4", sa.String(length=4), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "account_id",
            "institution_name",
            "account_name",
            name="uq_cash_holdings_account_institution_name",
        ),
    )
    op.create_index("ix_cash_holdings_account_id", "cash_holdings", ["account_id"], unique=False)

    op.create_table(
        "stock_holdings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _account_fk(),
        sa.Column("institution_name", sa.String(length=100), nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=False),
        sa.Column("company_name", sa.String(length=200), nullable=True),
        sa.Column("shares_owned", _amount(), nullable=False),
        sa.Column("cost_basis", _amount(), nullable=True),
        sa.Column("current_price", _amount(), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("estimated_quarterly_dividend", _amount(), nullable=True),
        sa.Column("drip_enabled", sa.String(length=10), nullable=False),
        sa.Column("is_vested_equity", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stock_holdings_account_id", "stock_holdings", ["account_id"], unique=False)
    op.create_index("ix_stock_holdings_symbol", "stock_holdings", ["symbol"], unique=False)

    op.create_table(
        "equity_grants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _account_fk(),
        sa.Column("grant_type", sa.String(length=20), nullable=False),
        sa.Column("company_symbol", sa.String(length=10), nullable=False),
        sa.Column("total_shares", _amount(), nullable=False),
        sa.Column("vested_shares", _amount(), nullable=False),
        sa.Column("unvested_shares", _amount(), nullable=False),
        sa.Column("strike_price", _amount(), nullable=True),
        sa.Column("current_price", _amount(), nullable=True),
        sa.Column("grant_date", sa.Date(), nullable=False),
        sa.Column("vest_start_date", sa.Date(), nullable=False),
        sa.Column("vesting_schedule", sa.String(length=20), nullable=False),
        sa.Column("vesting_period_years", _amount(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_equity_grants_account_id", "equity_grants", ["account_id"], unique=False)
    op.create_index("ix_equity_grants_company_symbol", "equity_grants", ["company_symbol"], unique=False)

    op.create_table(
        "real_estate_properties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _account_fk(),
        sa.Column("property_type", sa.String(length=50), nullable=False),
        sa.Column("property_name", sa.String(length=200), nullable=False),
        sa.Column("street_address", sa.String(length=200), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=2), nullable=True),
        sa.Column("zip_code", sa.String(length=10), nullable=True),
        sa.Column("purchase_price", _amount(), nullable=False),
        sa.Column("current_value", _amount(), nullable=False),
        sa.Column("outstanding_mortgage", _amount(), nullable=False),
        sa.Column("equity", _amount(), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("property_size_sqft", _amount(), nullable=True),
        sa.Column("lot_size_acres", _amount(), nullable=True),
        sa.Column("rental_income_monthly", _amount(), nullable=True),
        sa.Column("property_tax_annual", _amount(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_real_estate_properties_account_id",
        "real_estate_properties",
        ["account_id"],
        unique=False,
    )

    op.create_table(
        "crypto_holdings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _account_fk(),
        sa.Column("institution_name", sa.String(length=100), nullable=False),
        sa.Column("crypto_symbol", sa.String(length=20), nullable=False),
        sa.Column("balance_tokens", _amount(), nullable=False),
        sa.Column("purchase_price_usd", _amount(), nullable=True),
        sa.Column("current_price_usd", _amount(), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("wallet_address", sa.String(length=255), nullable=True),
        sa.Column("staking_annual_percentage", _amount(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_crypto_holdings_account_id", "crypto_holdings", ["account_id"], unique=False)
    op.create_index("ix_crypto_holdings_crypto_symbol", "crypto_holdings", ["crypto_symbol"], unique=False)

    op.create_table(
        "asset_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.Column("custom_schema", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(
        "ix_asset_categories_active_sort",
        "asset_categories",
        ["is_active", "sort_order"],
        unique=False,
    )

    op.create_table(
        "miscellaneous_assets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _account_fk(),
        sa.Column(
            "asset_category_id",
            sa.Integer(),
            sa.ForeignKey("asset_categories.id"),
            nullable=False,
        ),
        sa.Column("asset_name", sa.String(length=200), nullable=False),
        sa.Column("current_value", _amount(), nullable=False),
        sa.Column("purchase_price", _amount(), nullable=True),
        sa.Column("amount_owed", _amount(), nullable=False),
        sa.Column("equity", _amount(), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("custom_fields", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_miscellaneous_assets_account_id",
        "miscellaneous_assets",
        ["account_id"],
        unique=False,
    )
    op.create_index(
        "ix_miscellaneous_assets_category_id",
        "miscellaneous_assets",
        ["asset_category_id"],
        unique=False,
    )

    op.create_table(
        "stock_prices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=False),
        sa.Column("price", _amount(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("source", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_stock_prices_symbol_timestamp",
        "stock_prices",
        ["symbol", "timestamp"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_stock_prices_symbol_timestamp", table_name="stock_prices")
    op.drop_table("stock_prices")
    op.drop_index("ix_miscellaneous_assets_category_id", table_name="miscellaneous_assets")
    op.drop_index("ix_miscellaneous_assets_account_id", table_name="miscellaneous_assets")
    op.drop_table("miscellaneous_assets")
    op.drop_index("ix_asset_categories_active_sort", table_name="asset_categories")
    op.drop_table("asset_categories")
    op.drop_index("ix_crypto_holdings_crypto_symbol", table_name="crypto_holdings")
    op.drop_index("ix_crypto_holdings_account_id", table_name="crypto_holdings")
    op.drop_table("crypto_holdings")
    op.drop_index("ix_real_estate_properties_account_id", table_name="real_estate_properties")
    op.drop_table("real_estate_properties")
    op.drop_index("ix_equity_grants_company_symbol", table_name="equity_grants")
    op.drop_index("ix_equity_grants_account_id", table_name="equity_grants")
    op.drop_table("equity_grants")
    op.drop_index("ix_stock_holdings_symbol", table_name="stock_holdings")
    op.drop_index("ix_stock_holdings_account_id", table_name="stock_holdings")
    op.drop_table("stock_holdings")
    op.drop_index("ix_cash_holdings_account_id", table_name="cash_holdings")
    op.drop_table("cash_holdings")
    op.drop_index("ix_accounts_data_source_type", table_name="accounts")
    op.drop_index("ix_accounts_institution", table_name="accounts")
    op.drop_table("accounts")
