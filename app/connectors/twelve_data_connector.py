"""
app/connectors/twelve_data_connector.py

Twelve Data connector for equity quotes.
"""

from __future__ import annotations

import logging

import requests

from app.config import ExternalHTTPSettings, QuoteProviderSettings
from app.connectors.base import BaseQuoteConnector, QuoteUnavailableError

logger = logging.getLogger(__name__)


class TwelveDataQuoteProvider(BaseQuoteConnector):
    """
    Latest trade price from the Twelve Data ``/price`` endpoint.
    """

    def __init__(
        self,
        *,
        settings: QuoteProviderSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(provider_name="twelvedata", http_settings=http_settings, session=session)
        self._settings = settings

    def get_current_price(self, symbol: str) -> float:
        if not self._settings.twelve_data_api_key:
            raise QuoteUnavailableError("Twelve Data API key is not configured.")

        payload = self._request_json(
            url=f"{self._settings.twelve_data_base_url.rstrip('/')}/price",
            params={"symbol": symbol.strip().upper(), "apikey": self._settings.twelve_data_api_key},
        )
        if not isinstance(payload, dict):
            raise QuoteUnavailableError(f"{self.provider_name}: unexpected payload shape.")

        # Errors come back as HTTP 200 with {"code": ..., "message": ...}.
        if "price" not in payload:
            logger.warning(
                "Twelve Data returned no price symbol=%s code=%s message=%s",
                symbol,
                payload.get("code"),
                payload.get("message"),
            )
            raise QuoteUnavailableError(f"{self.provider_name}: no price for {symbol}.")
        return self.parse_price(payload["price"])
