"""
app/plugins/defaults.py

Construction of the registry with the built-in manual-entry plugins.
"""

from __future__ import annotations

import logging

from app.connectors.base import QuoteProvider
from app.domain.plugins import PluginConfig
from app.plugins.base import FinancialDataPlugin
from app.plugins.cash_holdings import CashHoldingsPlugin
from app.plugins.crypto_holdings import CryptoHoldingsPlugin
from app.plugins.equity_grants import EquityGrantsPlugin
from app.plugins.errors import PluginError
from app.plugins.other_assets import OtherAssetsPlugin
from app.plugins.real_estate import RealEstatePlugin
from app.plugins.registry import PluginRegistry
from app.plugins.stock_holdings import StockHoldingsPlugin
from db.session import SessionFactory

logger = logging.getLogger(__name__)


def build_default_plugins(
    *,
    session_factory: SessionFactory,
    quote_provider: QuoteProvider | None = None,
    crypto_quote_provider: QuoteProvider | None = None,
) -> list[FinancialDataPlugin]:
    return [
        CashHoldingsPlugin(session_factory=session_factory),
        StockHoldingsPlugin(session_factory=session_factory, quote_provider=quote_provider),
        EquityGrantsPlugin(session_factory=session_factory, quote_provider=quote_provider),
        RealEstatePlugin(session_factory=session_factory),
        CryptoHoldingsPlugin(session_factory=session_factory, quote_provider=crypto_quote_provider),
        OtherAssetsPlugin(session_factory=session_factory),
    ]


def build_default_registry(
    *,
    session_factory: SessionFactory,
    quote_provider: QuoteProvider | None = None,
    crypto_quote_provider: QuoteProvider | None = None,
) -> PluginRegistry:
    """
    Register every built-in plugin and enable it with empty settings.

    A plugin whose initialization fails stays registered but disabled, so one
    broken backing account does not prevent the application from starting.
    """

    registry = PluginRegistry()
    plugins = build_default_plugins(
        session_factory=session_factory,
        quote_provider=quote_provider,
        crypto_quote_provider=crypto_quote_provider,
    )
    for plugin in plugins:
        registry.register(plugin)
        try:
            registry.configure(plugin.name, PluginConfig(enabled=True))
        except PluginError as exc:
            logger.error("Plugin left disabled plugin=%s error=%s", plugin.name, exc)

    logger.info(
        "Default plugin registry built plugins=%s enabled=%s",
        len(plugins),
        len(registry.get_active_plugins()),
    )
    return registry
