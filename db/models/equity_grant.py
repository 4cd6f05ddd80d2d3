"""
db/models/equity_grant.py

Employer equity compensation grants (RSU, options, ESPP).
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base, TimestampMixin


class EquityGrant(Base, TimestampMixin):
    __tablename__ = "equity_grants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    grant_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="rsu, stock_option, espp",
    )
    company_symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    total_shares: Mapped[float] = mapped_column(Amount, nullable=False)
    vested_shares: Mapped[float] = mapped_column(Amount, nullable=False)
    unvested_shares: Mapped[float] = mapped_column(
        Amount,
        nullable=False,
        comment="Derived at validation time: total_shares - vested_shares",
    )
    strike_price: Mapped[float | None] = mapped_column(Amount, nullable=True)
    current_price: Mapped[float | None] = mapped_column(Amount, nullable=True)
    grant_date: Mapped[date] = mapped_column(Date, nullable=False)
    vest_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    vesting_schedule: Mapped[str] = mapped_column(String(20), nullable=False, default="quarterly")
    vesting_period_years: Mapped[float | None] = mapped_column(Amount, nullable=True)

    __table_args__ = (
        Index("ix_equity_grants_account_id", "account_id"),
        Index("ix_equity_grants_company_symbol", "company_symbol"),
    )
