"""
app/connectors/base.py

Quote provider abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import requests

from app.config import ExternalHTTPSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class QuoteUnavailableError(RuntimeError):
    """
    Raised when no current price can be produced for a symbol.
    """


class ConnectorRequestError(QuoteUnavailableError):
    """
    Raised when a connector cannot fetch data after retries.
    """


class QuoteProvider(ABC):
    """
    "Current price for symbol X" boundary used by plugin write paths.
    """

    provider_name: str

    @abstractmethod
    def get_current_price(self, symbol: str) -> float:
        """
        Return the latest price in USD or raise ``QuoteUnavailableError``.
        """

    def get_multiple_prices(self, symbols: list[str]) -> dict[str, float]:
        """
        Fetch several symbols, omitting the ones that fail.
        """

        prices: dict[str, float] = {}
        for symbol in symbols:
            try:
                prices[symbol] = self.get_current_price(symbol)
            except QuoteUnavailableError as exc:
                logger.warning(
                    "Quote lookup failed provider=%s symbol=%s error=%s",
                    self.provider_name,
                    symbol,
                    exc,
                )
        return prices


class BaseQuoteConnector(QuoteProvider):
    """
    HTTP-backed quote provider with retry, backoff and rate limiting.
    """

    def __init__(
        self,
        *,
        provider_name: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.provider_name = provider_name
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0

    def _request_json(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute a GET request and return parsed JSON.
        """

        response = self._request(url=url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.provider_name}: response was not valid JSON.") from exc

    def _request(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            self._apply_rate_limit()
            try:
                response = self._session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self._timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Quote request failed provider=%s status=%s url=%s error=%s",
                        self.provider_name,
                        status_code,
                        url,
                        exc,
                    )
                    raise ConnectorRequestError(
                        f"{self.provider_name}: non-retryable request failure."
                    ) from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Quote request retry provider=%s attempt=%s/%s wait_seconds=%.2f",
                self.provider_name,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Quote request exhausted retries provider=%s url=%s error=%s",
            self.provider_name,
            url,
            last_error,
        )
        raise ConnectorRequestError(f"{self.provider_name}: request failed after retries.") from last_error

    def _apply_rate_limit(self) -> None:
        if self._min_request_interval_seconds <= 0:
            return

        now = time.monotonic()
        remaining = self._min_request_interval_seconds - (now - self._last_request_monotonic)
        if remaining > 0:
            time.sleep(remaining)
        self._last_request_monotonic = time.monotonic()

    @staticmethod
    def parse_price(raw: Any) -> float:
        """
        Parse a positive price from a provider field, raising on anything else.
        """

        try:
            price = float(raw)
        except (TypeError, ValueError) as exc:
            raise QuoteUnavailableError(f"unparseable price {raw!r}") from exc
        if price <= 0:
            raise QuoteUnavailableError(f"non-positive price {price}")
        return price
