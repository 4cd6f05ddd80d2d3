"""
db/models/cash_holding.py

Manually tracked bank and brokerage cash balances.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base, TimestampMixin


class CashHolding(Base, TimestampMixin):
    __tablename__ = "cash_holdings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    institution_name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="checking, savings, money_market, cd, high_yield_savings, brokerage, other",
    )
    current_balance: Mapped[float] = mapped_column(Amount, nullable=False)
    interest_rate: Mapped[float | None] = mapped_column(Amount, nullable=True)
    monthly_contribution: Mapped[float | None] = mapped_column(Amount, nullable=True)
    account_number_last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "account_id",
            "institution_name",
            "account_name",
            name="uq_cash_holdings_account_institution_name",
        ),
        Index("ix_cash_holdings_account_id", "account_id"),
    )
