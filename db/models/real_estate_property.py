"""
db/models/real_estate_property.py

Owned properties with valuation and mortgage balance.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base, TimestampMixin


class RealEstateProperty(Base, TimestampMixin):
    __tablename__ = "real_estate_properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    property_type: Mapped[str] = mapped_column(String(50), nullable=False)
    property_name: Mapped[str] = mapped_column(String(200), nullable=False)
    street_address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    purchase_price: Mapped[float] = mapped_column(Amount, nullable=False)
    current_value: Mapped[float] = mapped_column(Amount, nullable=False)
    outstanding_mortgage: Mapped[float] = mapped_column(Amount, nullable=False, default=0.0)
    equity: Mapped[float] = mapped_column(
        Amount,
        nullable=False,
        comment="Derived at validation time: current_value - outstanding_mortgage",
    )
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    property_size_sqft: Mapped[float | None] = mapped_column(Amount, nullable=True)
    lot_size_acres: Mapped[float | None] = mapped_column(Amount, nullable=True)
    rental_income_monthly: Mapped[float | None] = mapped_column(Amount, nullable=True)
    property_tax_annual: Mapped[float | None] = mapped_column(Amount, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_real_estate_properties_account_id", "account_id"),
    )
