"""
db/models/crypto_holding.py

Crypto balances held at exchanges or in wallets.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base, TimestampMixin


class CryptoHolding(Base, TimestampMixin):
    __tablename__ = "crypto_holdings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    institution_name: Mapped[str] = mapped_column(String(100), nullable=False)
    crypto_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    balance_tokens: Mapped[float] = mapped_column(Amount, nullable=False)
    purchase_price_usd: Mapped[float | None] = mapped_column(Amount, nullable=True)
    current_price_usd: Mapped[float | None] = mapped_column(
        Amount,
        nullable=True,
        comment="Last known quote; 0 or NULL until a refresh succeeds",
    )
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    staking_annual_percentage: Mapped[float] = mapped_column(Amount, nullable=False, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_crypto_holdings_account_id", "account_id"),
        Index("ix_crypto_holdings_crypto_symbol", "crypto_symbol"),
    )
