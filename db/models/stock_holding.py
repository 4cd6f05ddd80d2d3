"""
db/models/stock_holding.py

Directly held equity positions.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base, TimestampMixin


class StockHolding(Base, TimestampMixin):
    __tablename__ = "stock_holdings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    institution_name: Mapped[str] = mapped_column(String(100), nullable=False)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    shares_owned: Mapped[float] = mapped_column(Amount, nullable=False)
    cost_basis: Mapped[float | None] = mapped_column(Amount, nullable=True)
    current_price: Mapped[float | None] = mapped_column(
        Amount,
        nullable=True,
        comment="Last known quote; 0 or NULL until a refresh succeeds",
    )
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_quarterly_dividend: Mapped[float | None] = mapped_column(Amount, nullable=True)
    drip_enabled: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="unknown",
        comment="true, false, unknown",
    )
    is_vested_equity: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_stock_holdings_account_id", "account_id"),
        Index("ix_stock_holdings_symbol", "symbol"),
    )
