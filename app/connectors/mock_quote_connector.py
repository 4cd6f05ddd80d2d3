"""
app/connectors/mock_quote_connector.py

Offline quote provider backed by a static price table.
"""

from __future__ import annotations

from collections.abc import Mapping

from app.connectors.base import QuoteProvider, QuoteUnavailableError

DEFAULT_MOCK_PRICES: dict[str, float] = {
    "AAPL": 175.50,
    "MSFT": 378.85,
    "GOOGL": 138.21,
    "AMZN": 155.30,
    "NVDA": 495.22,
    "META": 325.60,
    "TSLA": 248.50,
    "ADBE": 520.30,
    "CRM": 215.40,
    "COST": 720.80,
    "V": 255.30,
    "BTC": 43250.00,
    "ETH": 2280.00,
    "SOL": 98.40,
}


class MockQuoteProvider(QuoteProvider):
    """
    Deterministic provider for development and tests.
    """

    provider_name = "mock"

    def __init__(self, prices: Mapping[str, float] | None = None) -> None:
        self._prices = {symbol.upper(): price for symbol, price in (prices or DEFAULT_MOCK_PRICES).items()}

    def get_current_price(self, symbol: str) -> float:
        price = self._prices.get(symbol.strip().upper())
        if price is None:
            raise QuoteUnavailableError(f"no mock price for symbol {symbol}")
        return price
