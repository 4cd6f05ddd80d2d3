"""
app/repositories package marker.
"""

from app.repositories.account_repository import AccountIdentity, AccountResolver
from app.repositories.asset_category_repository import AssetCategoryRepository
from app.repositories.holding_repository import HoldingRepository, row_to_payload
from app.repositories.price_repository import PriceRepository

__all__ = [
    "AccountIdentity",
    "AccountResolver",
    "AssetCategoryRepository",
    "HoldingRepository",
    "PriceRepository",
    "row_to_payload",
]
