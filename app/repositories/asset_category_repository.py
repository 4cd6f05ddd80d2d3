"""
app/repositories/asset_category_repository.py

Read access to user-defined asset categories.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.other_asset import AssetCategory


class AssetCategoryRepository:
    """
    Repository for active asset categories and their custom field schemas.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_active(self) -> list[AssetCategory]:
        stmt = (
            select(AssetCategory)
            .where(AssetCategory.is_active.is_(True))
            .order_by(AssetCategory.sort_order, AssetCategory.name)
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_active(self, category_id: int) -> AssetCategory | None:
        stmt = select(AssetCategory).where(
            AssetCategory.id == category_id,
            AssetCategory.is_active.is_(True),
        )
        return self._session.execute(stmt).scalars().first()
