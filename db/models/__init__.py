"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.account import Account
from db.models.cash_holding import CashHolding
from db.models.crypto_holding import CryptoHolding
from db.models.equity_grant import EquityGrant
from db.models.other_asset import AssetCategory, MiscellaneousAsset
from db.models.real_estate_property import RealEstateProperty
from db.models.stock_holding import StockHolding
from db.models.stock_price import StockPrice

__all__ = [
    "Account",
    "CashHolding",
    "StockHolding",
    "EquityGrant",
    "RealEstateProperty",
    "CryptoHolding",
    "AssetCategory",
    "MiscellaneousAsset",
    "StockPrice",
]
