"""
app/connectors package marker.
"""

from app.connectors.base import (
    BaseQuoteConnector,
    ConnectorRequestError,
    QuoteProvider,
    QuoteUnavailableError,
)
from app.connectors.coingecko_connector import CoinGeckoQuoteProvider
from app.connectors.mock_quote_connector import MockQuoteProvider
from app.connectors.twelve_data_connector import TwelveDataQuoteProvider

__all__ = [
    "BaseQuoteConnector",
    "CoinGeckoQuoteProvider",
    "ConnectorRequestError",
    "MockQuoteProvider",
    "QuoteProvider",
    "QuoteUnavailableError",
    "TwelveDataQuoteProvider",
]
