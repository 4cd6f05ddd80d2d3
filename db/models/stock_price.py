"""
db/models/stock_price.py

Cached market quotes, one row per successful lookup.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base


class StockPrice(Base):
    __tablename__ = "stock_prices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    price: Mapped[float] = mapped_column(Amount, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    source: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Quote provider name",
    )

    __table_args__ = (
        Index("ix_stock_prices_symbol_timestamp", "symbol", "timestamp"),
    )
