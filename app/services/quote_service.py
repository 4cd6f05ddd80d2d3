"""
app/services/quote_service.py

Construction of the configured quote providers.
"""

from __future__ import annotations

from functools import lru_cache

from app.config import get_external_http_settings, get_quote_provider_settings
from app.connectors import (
    CoinGeckoQuoteProvider,
    MockQuoteProvider,
    QuoteProvider,
    TwelveDataQuoteProvider,
)


@lru_cache(maxsize=1)
def get_quote_provider() -> QuoteProvider:
    """
    Build and cache the equity quote provider selected by PRICE_PROVIDER.
    """

    settings = get_quote_provider_settings()
    if settings.provider == "twelvedata":
        return TwelveDataQuoteProvider(
            settings=settings,
            http_settings=get_external_http_settings(),
        )
    return MockQuoteProvider()


@lru_cache(maxsize=1)
def get_crypto_quote_provider() -> QuoteProvider:
    """
    Build and cache the crypto quote provider.

    Falls back to the mock table when CoinGecko is disabled or the equity
    provider is itself the mock.
    """

    settings = get_quote_provider_settings()
    if settings.coingecko_enabled and settings.provider != "mock":
        return CoinGeckoQuoteProvider(
            settings=settings,
            http_settings=get_external_http_settings(),
        )
    return MockQuoteProvider()
