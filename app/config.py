"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_PRICE_PROVIDERS = {"mock", "twelvedata"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_clock_env(name: str, default: time) -> time:
    """
    Read a local wall-clock time formatted as HH:MM, falling back on bad input.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    try:
        hours, minutes = raw_value.split(":", 1)
        return time(hour=int(hours), minute=int(minutes))
    except ValueError:
        return default


@dataclass(frozen=True)
class PriceCacheSettings:
    """
    Thresholds used by the price-staleness policy.

    ``refresh_interval_minutes`` is the configurable freshness window.
    The two ``force_refresh_*`` ceilings apply regardless of that window.
    """

    refresh_interval_minutes: int = 15
    force_refresh_open_minutes: int = 30
    force_refresh_closed_minutes: int = 720


@dataclass(frozen=True)
class MarketHoursSettings:
    """
    Regular trading session for the quoted exchange.
    """

    open_time: time = time(9, 30)
    close_time: time = time(16, 0)
    timezone: str = "America/New_York"
    weekend_trading: bool = False


@dataclass(frozen=True)
class PluginCacheSettings:
    """
    Time-to-live for per-plugin account/balance memoization.
    """

    ttl_seconds: int = 900


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for quote connectors.
    """

    timeout_seconds: float = 20.0
    max_retries: int = 3
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 2.0


@dataclass(frozen=True)
class QuoteProviderSettings:
    """
    Quote provider selection and credentials.
    """

    provider: str = "mock"
    twelve_data_api_key: str | None = None
    twelve_data_base_url: str = "https://api.twelvedata.com"
    coingecko_enabled: bool = True
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"


@lru_cache(maxsize=1)
def get_price_cache_settings() -> PriceCacheSettings:
    """
    Return cached price-staleness thresholds from environment variables.
    """

    return PriceCacheSettings(
        refresh_interval_minutes=max(1, _get_int_env("CACHE_REFRESH_MINUTES", 15)),
        force_refresh_open_minutes=max(1, _get_int_env("FORCE_REFRESH_OPEN_MINUTES", 30)),
        force_refresh_closed_minutes=max(1, _get_int_env("FORCE_REFRESH_CLOSED_MINUTES", 720)),
    )


@lru_cache(maxsize=1)
def get_market_hours_settings() -> MarketHoursSettings:
    """
    Return market session settings from environment variables.
    """

    return MarketHoursSettings(
        open_time=_get_clock_env("MARKET_OPEN_LOCAL", time(9, 30)),
        close_time=_get_clock_env("MARKET_CLOSE_LOCAL", time(16, 0)),
        timezone=_get_str_env("MARKET_TIMEZONE", "America/New_York"),
        weekend_trading=_get_bool_env("MARKET_WEEKEND_TRADING", False),
    )


@lru_cache(maxsize=1)
def get_plugin_cache_settings() -> PluginCacheSettings:
    """
    Return plugin data cache settings.
    """

    return PluginCacheSettings(
        ttl_seconds=max(1, _get_int_env("PLUGIN_CACHE_TTL_SECONDS", 900)),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 20.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 2.0)),
    )


@lru_cache(maxsize=1)
def get_quote_provider_settings() -> QuoteProviderSettings:
    """
    Return quote provider settings from environment variables.

    Raises RuntimeError when PRICE_PROVIDER names an unknown provider or
    selects Twelve Data without an API key.
    """

    provider = _get_str_env("PRICE_PROVIDER", "mock").lower()
    if provider not in _ALLOWED_PRICE_PROVIDERS:
        raise RuntimeError(
            f"PRICE_PROVIDER '{provider}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_PRICE_PROVIDERS)}."
        )

    api_key = _get_optional_str_env("TWELVE_DATA_API_KEY")
    if provider == "twelvedata" and api_key is None:
        raise RuntimeError("TWELVE_DATA_API_KEY is required when PRICE_PROVIDER=twelvedata.")

    return QuoteProviderSettings(
        provider=provider,
        twelve_data_api_key=api_key,
        twelve_data_base_url=_get_str_env("TWELVE_DATA_BASE_URL", "https://api.twelvedata.com"),
        coingecko_enabled=_get_bool_env("COINGECKO_ENABLED", True),
        coingecko_base_url=_get_str_env("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"),
    )
