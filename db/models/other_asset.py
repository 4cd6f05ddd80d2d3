"""
db/models/other_asset.py

User-defined asset categories and the miscellaneous assets filed under them.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Amount, Base, JSONType, TimestampMixin


class AssetCategory(Base, TimestampMixin):
    __tablename__ = "asset_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    custom_schema: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment='{"fields": [{"name", "type", "label", "required", "options", "validation"}]}',
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_asset_categories_active_sort", "is_active", "sort_order"),
    )


class MiscellaneousAsset(Base, TimestampMixin):
    __tablename__ = "miscellaneous_assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    asset_category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("asset_categories.id"),
        nullable=False,
    )
    asset_name: Mapped[str] = mapped_column(String(200), nullable=False)
    current_value: Mapped[float] = mapped_column(Amount, nullable=False)
    purchase_price: Mapped[float | None] = mapped_column(Amount, nullable=True)
    amount_owed: Mapped[float] = mapped_column(Amount, nullable=False, default=0.0)
    equity: Mapped[float] = mapped_column(
        Amount,
        nullable=False,
        comment="Derived at validation time: current_value - amount_owed",
    )
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_fields: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        Index("ix_miscellaneous_assets_account_id", "account_id"),
        Index("ix_miscellaneous_assets_category_id", "asset_category_id"),
    )
