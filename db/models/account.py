"""
db/models/account.py

Logical account identities that holdings are attached to.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Logical grouping key, e.g. '<institution> <account name>'",
    )
    account_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="checking, savings, investment, equity, crypto, real_estate, ...",
    )
    institution: Mapped[str] = mapped_column(String(255), nullable=False)
    data_source_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="api, manual, scraping",
    )

    __table_args__ = (
        UniqueConstraint(
            "account_name",
            "institution",
            "data_source_type",
            name="uq_accounts_name_institution_source",
        ),
        Index("ix_accounts_institution", "institution"),
        Index("ix_accounts_data_source_type", "data_source_type"),
    )
