"""
app/connectors/coingecko_connector.py

CoinGecko connector for crypto quotes in USD.
"""

from __future__ import annotations

import requests

from app.config import ExternalHTTPSettings, QuoteProviderSettings
from app.connectors.base import BaseQuoteConnector, QuoteUnavailableError

SYMBOL_TO_COINGECKO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "ADA": "cardano",
    "DOT": "polkadot",
    "DOGE": "dogecoin",
    "XRP": "ripple",
    "LTC": "litecoin",
    "AVAX": "avalanche-2",
    "MATIC": "matic-network",
    "LINK": "chainlink",
    "USDC": "usd-coin",
    "USDT": "tether",
}


class CoinGeckoQuoteProvider(BaseQuoteConnector):
    """
    Spot USD price from the CoinGecko ``/simple/price`` endpoint.
    """

    def __init__(
        self,
        *,
        settings: QuoteProviderSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(provider_name="coingecko", http_settings=http_settings, session=session)
        self._settings = settings

    def get_current_price(self, symbol: str) -> float:
        normalized = symbol.strip().upper()
        coin_id = SYMBOL_TO_COINGECKO_ID.get(normalized, normalized.lower())
        payload = self._request_json(
            url=f"{self._settings.coingecko_base_url.rstrip('/')}/simple/price",
            params={"ids": coin_id, "vs_currencies": "usd"},
        )
        if not isinstance(payload, dict) or not isinstance(payload.get(coin_id), dict):
            raise QuoteUnavailableError(f"{self.provider_name}: no price for {normalized}.")
        return self.parse_price(payload[coin_id].get("usd"))
