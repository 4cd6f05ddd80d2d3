"""
app/plugins/manager.py

Facade over the plugin registry used by the HTTP layer.

The manager routes manual-entry calls to the named plugin, aggregates
schemas, health, accounts and balances across plugins, and drives refresh.
``CachedPluginManager`` additionally memoizes per-plugin accounts and
balances for a fixed time-to-live.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from app.config import PluginCacheSettings, get_plugin_cache_settings
from app.domain.plugins import (
    Account,
    Balance,
    BulkUpdateItem,
    BulkUpdateResult,
    DateRange,
    ManualEntrySchema,
    PluginConfig,
    PluginHealth,
    PluginInfo,
    Transaction,
    ValidationResult,
)
from app.plugins.base import FinancialDataPlugin, SupportsBulkUpdate, SupportsCategorySchema
from app.plugins.errors import (
    BulkUpdateNotSupportedError,
    CategorySchemaNotSupportedError,
    ManualEntryNotSupportedError,
    ManualEntryValidationError,
    PluginDisabledError,
)
from app.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PluginManager:
    """
    Stateless facade; all plugin state lives in the injected registry.
    """

    def __init__(self, *, registry: PluginRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> PluginRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def list_plugins(self) -> list[PluginInfo]:
        return self._registry.list()

    def get_plugin(self, name: str) -> FinancialDataPlugin:
        return self._registry.get(name)

    def get_plugin_config(self, name: str) -> PluginConfig:
        return self._registry.get_config(name)

    def enable_plugin(self, name: str) -> None:
        self._registry.enable(name)

    def disable_plugin(self, name: str) -> None:
        self._registry.disable(name)

    def configure_plugin(self, name: str, config: PluginConfig) -> None:
        self._registry.configure(name, config)

    # ------------------------------------------------------------------
    # Schemas and validation
    # ------------------------------------------------------------------

    def get_manual_entry_schema(self, name: str) -> ManualEntrySchema:
        plugin = self._manual_entry_plugin(name)
        return plugin.get_manual_entry_schema()

    def get_manual_entry_schema_for_category(self, name: str, category_id: int) -> ManualEntrySchema:
        plugin = self._manual_entry_plugin(name)
        if not isinstance(plugin, SupportsCategorySchema):
            raise CategorySchemaNotSupportedError(name)
        return plugin.get_manual_entry_schema_for_category(category_id)

    def get_manual_entry_schemas(self) -> dict[str, ManualEntrySchema]:
        """
        Schemas of every enabled manual-entry plugin, keyed by plugin name.
        """

        schemas: dict[str, ManualEntrySchema] = {}
        for plugin in self._registry.get_manual_entry_plugins():
            schemas[plugin.name] = plugin.get_manual_entry_schema()
        return schemas

    def validate_manual_entry(self, name: str, payload: Mapping[str, Any]) -> ValidationResult:
        plugin = self._manual_entry_plugin(name)
        return plugin.validate_manual_entry(payload)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def process_manual_entry(self, name: str, payload: Mapping[str, Any]) -> int:
        """
        Validate, then create one record on plugin ``name``.

        Raises
        ------
        ManualEntryValidationError
            Carrying the plugin's own field errors, unmodified.
        """

        plugin = self._writable_plugin(name)
        result = plugin.validate_manual_entry(payload)
        if not result.valid:
            raise ManualEntryValidationError(result.errors)
        return plugin.process_manual_entry(payload)

    def update_manual_entry(self, name: str, record_id: int, payload: Mapping[str, Any]) -> None:
        plugin = self._writable_plugin(name)
        result = plugin.validate_manual_entry(payload)
        if not result.valid:
            raise ManualEntryValidationError(result.errors)
        plugin.update_manual_entry(record_id, payload)

    def bulk_update(self, name: str, items: Sequence[BulkUpdateItem]) -> BulkUpdateResult:
        plugin = self._writable_plugin(name)
        if not isinstance(plugin, SupportsBulkUpdate):
            raise BulkUpdateNotSupportedError(name)
        return plugin.bulk_update_manual_entry(items)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def get_all_accounts(self) -> list[Account]:
        return self._collect(self._fetch_accounts, what="accounts")

    def get_all_balances(self) -> list[Balance]:
        return self._collect(self._fetch_balances, what="balances")

    def get_all_transactions(self, date_range: DateRange) -> list[Transaction]:
        return self._collect(lambda plugin: plugin.get_transactions(date_range), what="transactions")

    def get_plugin_health(self) -> dict[str, PluginHealth]:
        return self._registry.health_check()

    def refresh_all_data(self) -> dict[str, Exception]:
        """
        Refresh every enabled plugin; one failing source does not block the rest.
        """

        errors = self._registry.refresh_all()
        if errors:
            logger.warning("Plugin refresh completed with errors failed=%s", sorted(errors))
        else:
            logger.info("Plugin refresh completed")
        return errors

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_accounts(self, plugin: FinancialDataPlugin) -> list[Account]:
        return plugin.get_accounts()

    def _fetch_balances(self, plugin: FinancialDataPlugin) -> list[Balance]:
        return plugin.get_balances()

    def _collect(self, fetch: Callable[[FinancialDataPlugin], list[T]], *, what: str) -> list[T]:
        collected: list[T] = []
        for plugin in self._registry.get_active_plugins():
            try:
                collected.extend(fetch(plugin))
            except Exception as exc:
                logger.warning(
                    "Skipping plugin during aggregation plugin=%s what=%s error=%s",
                    plugin.name,
                    what,
                    exc,
                )
        return collected

    def _manual_entry_plugin(self, name: str) -> FinancialDataPlugin:
        plugin = self._registry.get(name)
        if not plugin.supports_manual_entry():
            raise ManualEntryNotSupportedError(name)
        return plugin

    def _writable_plugin(self, name: str) -> FinancialDataPlugin:
        plugin = self._manual_entry_plugin(name)
        if not self._registry.is_enabled(name):
            raise PluginDisabledError(name)
        return plugin


@dataclass(frozen=True)
class _CacheEntry:
    accounts: list[Account] | None
    balances: list[Balance] | None
    accounts_at: float | None
    balances_at: float | None


class CachedPluginManager(PluginManager):
    """
    Plugin manager that memoizes accounts and balances per plugin.

    The cache has its own lock, separate from the registry's. Fetches run
    outside it, so a slow plugin never blocks cache reads for other plugins.
    A write, enable, disable, configure or refresh drops the affected entries.
    """

    def __init__(
        self,
        *,
        registry: PluginRegistry,
        settings: PluginCacheSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(registry=registry)
        self._ttl_seconds = float((settings or get_plugin_cache_settings()).ttl_seconds)
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}
        self._cache_lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def invalidate(self, name: str | None = None) -> None:
        with self._cache_lock:
            if name is None:
                self._cache.clear()
            else:
                self._cache.pop(name, None)
        logger.debug("Plugin cache invalidated plugin=%s", name or "*")

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    def _fetch_accounts(self, plugin: FinancialDataPlugin) -> list[Account]:
        cached = self._lookup(plugin.name, "accounts")
        if cached is not None:
            return cached
        accounts = plugin.get_accounts()
        self._store(plugin.name, "accounts", accounts)
        return accounts

    def _fetch_balances(self, plugin: FinancialDataPlugin) -> list[Balance]:
        cached = self._lookup(plugin.name, "balances")
        if cached is not None:
            return cached
        balances = plugin.get_balances()
        self._store(plugin.name, "balances", balances)
        return balances

    def _lookup(self, name: str, kind: str) -> list[Any] | None:
        now = self._clock()
        with self._cache_lock:
            entry = self._cache.get(name)
            if entry is None:
                return None
            value = getattr(entry, kind)
            fetched_at = getattr(entry, f"{kind}_at")
        if value is None or fetched_at is None or now - fetched_at >= self._ttl_seconds:
            return None
        return list(value)

    def _store(self, name: str, kind: str, value: list[Any]) -> None:
        now = self._clock()
        with self._cache_lock:
            entry = self._cache.get(name) or _CacheEntry(None, None, None, None)
            if kind == "accounts":
                entry = _CacheEntry(list(value), entry.balances, now, entry.balances_at)
            else:
                entry = _CacheEntry(entry.accounts, list(value), entry.accounts_at, now)
            self._cache[name] = entry

    # ------------------------------------------------------------------
    # Invalidating mutations
    # ------------------------------------------------------------------

    def enable_plugin(self, name: str) -> None:
        super().enable_plugin(name)
        self.invalidate(name)

    def disable_plugin(self, name: str) -> None:
        super().disable_plugin(name)
        self.invalidate(name)

    def configure_plugin(self, name: str, config: PluginConfig) -> None:
        super().configure_plugin(name, config)
        self.invalidate(name)

    def process_manual_entry(self, name: str, payload: Mapping[str, Any]) -> int:
        record_id = super().process_manual_entry(name, payload)
        self.invalidate(name)
        return record_id

    def update_manual_entry(self, name: str, record_id: int, payload: Mapping[str, Any]) -> None:
        super().update_manual_entry(name, record_id, payload)
        self.invalidate(name)

    def bulk_update(self, name: str, items: Sequence[BulkUpdateItem]) -> BulkUpdateResult:
        result = super().bulk_update(name, items)
        self.invalidate(name)
        return result

    def refresh_all_data(self) -> dict[str, Exception]:
        errors = super().refresh_all_data()
        self.invalidate()
        return errors
