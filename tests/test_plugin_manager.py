"""
Tests for the plugin manager facade and its TTL-cached variant.

Coverage:
- manual entry routing, with validation errors passed through unmodified
- disabled, unknown and capability-less plugins are rejected
- aggregation skips a failing plugin
- the cached manager honors its time-to-live and invalidates on writes
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.config import PluginCacheSettings
from app.domain.plugins import (
    Account,
    Balance,
    BulkUpdateItem,
    DataSourceType,
    ErrorCode,
    PluginConfig,
    PluginDescriptor,
    PluginHealth,
    PluginStatus,
    PluginType,
)
from app.plugins.base import FinancialDataPlugin
from app.plugins.errors import (
    BulkUpdateNotSupportedError,
    CategorySchemaNotSupportedError,
    ManualEntryNotSupportedError,
    ManualEntryValidationError,
    PluginDisabledError,
    PluginNotRegisteredError,
)
from app.plugins.manager import CachedPluginManager, PluginManager
from app.plugins.registry import PluginRegistry


class ApiPlugin(FinancialDataPlugin):
    """
    Read-only plugin with counted fetches and no manual entry.
    """

    def __init__(self, name: str = "bank_api", *, fail: bool = False) -> None:
        self.descriptor = PluginDescriptor(
            name=name,
            friendly_name="Bank API",
            version="0.1.0",
            description="Read-only account feed",
            plugin_type=PluginType.API,
            data_source=DataSourceType.API,
        )
        self.fail = fail
        self.account_calls = 0
        self.balance_calls = 0

    def initialize(self, config: PluginConfig) -> None:
        return None

    def is_healthy(self) -> PluginHealth:
        return PluginHealth(status=PluginStatus.ACTIVE, last_checked=datetime.now(timezone.utc))

    def get_accounts(self) -> list[Account]:
        self.account_calls += 1
        if self.fail:
            raise RuntimeError("feed unavailable")
        return [
            Account(
                id=f"{self.name}-1",
                name="Checking",
                type="checking",
                institution="Bank",
                data_source=DataSourceType.API,
            )
        ]

    def get_balances(self) -> list[Balance]:
        self.balance_calls += 1
        if self.fail:
            raise RuntimeError("feed unavailable")
        return [
            Balance(
                account_id=f"{self.name}-1",
                amount=100.0,
                currency="USD",
                as_of_date=None,
                data_source=DataSourceType.API,
            )
        ]


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _cash(balance: object = 2500) -> dict[str, object]:
    return {
        "institution_name": "Chase Bank",
        "account_name": "Primary Checking",
        "account_type": "checking",
        "current_balance": balance,
    }


def _api_registry(*plugins: ApiPlugin) -> PluginRegistry:
    registry = PluginRegistry()
    for plugin in plugins:
        registry.register(plugin)
        registry.enable(plugin.name)
    return registry


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


class TestManualEntryRouting:
    def test_process_returns_new_id(self, manager: PluginManager) -> None:
        first = manager.process_manual_entry("cash_holdings", _cash())
        second = manager.process_manual_entry(
            "cash_holdings", {**_cash(), "account_name": "Bills Checking"}
        )

        assert isinstance(first, int)
        assert second != first

    def test_validation_errors_pass_through_unmodified(self, manager: PluginManager) -> None:
        expected = manager.validate_manual_entry("cash_holdings", _cash(balance="abc")).errors

        with pytest.raises(ManualEntryValidationError) as exc_info:
            manager.process_manual_entry("cash_holdings", _cash(balance="abc"))

        assert exc_info.value.errors == expected
        assert [(e.field, e.code) for e in expected] == [("current_balance", ErrorCode.INVALID_NUMBER)]

    def test_validate_does_not_write(self, manager: PluginManager) -> None:
        result = manager.validate_manual_entry("cash_holdings", _cash())

        assert result.valid is True
        assert manager.get_all_balances() == []

    def test_unknown_plugin(self, manager: PluginManager) -> None:
        with pytest.raises(PluginNotRegisteredError):
            manager.process_manual_entry("robinhood", _cash())
        with pytest.raises(PluginNotRegisteredError):
            manager.get_manual_entry_schema("robinhood")

    def test_disabled_plugin_rejects_writes(self, manager: PluginManager) -> None:
        manager.disable_plugin("cash_holdings")

        with pytest.raises(PluginDisabledError):
            manager.process_manual_entry("cash_holdings", _cash())
        with pytest.raises(PluginDisabledError):
            manager.bulk_update("cash_holdings", [BulkUpdateItem(id=1, changes={})])
        assert "cash_holdings" not in manager.get_manual_entry_schemas()

    def test_plugin_without_manual_entry(self) -> None:
        manager = PluginManager(registry=_api_registry(ApiPlugin()))

        with pytest.raises(ManualEntryNotSupportedError):
            manager.get_manual_entry_schema("bank_api")
        with pytest.raises(ManualEntryNotSupportedError):
            manager.process_manual_entry("bank_api", {})

    def test_bulk_update_requires_capability(self, manager: PluginManager) -> None:
        with pytest.raises(BulkUpdateNotSupportedError):
            manager.bulk_update("real_estate", [BulkUpdateItem(id=1, changes={})])

    def test_category_schema_requires_capability(self, manager: PluginManager) -> None:
        with pytest.raises(CategorySchemaNotSupportedError):
            manager.get_manual_entry_schema_for_category("cash_holdings", 1)

    def test_schemas_cover_every_manual_plugin(self, manager: PluginManager) -> None:
        schemas = manager.get_manual_entry_schemas()

        assert set(schemas) == {
            "cash_holdings",
            "stock_holding",
            "morgan_stanley",
            "real_estate",
            "crypto_holdings",
            "other_assets",
        }
        assert schemas["cash_holdings"].get_field("current_balance").required is True


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestAggregation:
    def test_failing_plugin_is_skipped(self) -> None:
        manager = PluginManager(
            registry=_api_registry(ApiPlugin("good_api"), ApiPlugin("bad_api", fail=True))
        )

        accounts = manager.get_all_accounts()
        balances = manager.get_all_balances()

        assert [account.id for account in accounts] == ["good_api-1"]
        assert [balance.account_id for balance in balances] == ["good_api-1"]

    def test_manual_entries_show_up_in_balances(self, manager: PluginManager) -> None:
        manager.process_manual_entry("cash_holdings", _cash(balance="2500.75"))

        balances = manager.get_all_balances()

        assert [balance.amount for balance in balances] == [2500.75]
        assert balances[0].data_source == DataSourceType.MANUAL

    def test_refresh_reports_no_errors(self, manager: PluginManager) -> None:
        assert manager.refresh_all_data() == {}
        assert set(manager.get_plugin_health()) == set(manager.registry.names())


# ---------------------------------------------------------------------------
# Cached manager
# ---------------------------------------------------------------------------


class TestCachedPluginManager:
    def _manager(self, registry: PluginRegistry, clock: FakeClock) -> CachedPluginManager:
        return CachedPluginManager(
            registry=registry,
            settings=PluginCacheSettings(ttl_seconds=900),
            clock=clock,
        )

    def test_reads_are_cached_until_ttl_expires(self) -> None:
        plugin = ApiPlugin()
        clock = FakeClock()
        manager = self._manager(_api_registry(plugin), clock)

        manager.get_all_accounts()
        clock.now += 899
        manager.get_all_accounts()
        assert plugin.account_calls == 1

        clock.now += 1
        manager.get_all_accounts()
        assert plugin.account_calls == 2

    def test_accounts_and_balances_are_cached_independently(self) -> None:
        plugin = ApiPlugin()
        manager = self._manager(_api_registry(plugin), FakeClock())

        manager.get_all_accounts()
        manager.get_all_balances()
        manager.get_all_balances()

        assert plugin.account_calls == 1
        assert plugin.balance_calls == 1

    def test_failures_are_not_cached(self) -> None:
        plugin = ApiPlugin(fail=True)
        manager = self._manager(_api_registry(plugin), FakeClock())

        assert manager.get_all_accounts() == []
        assert manager.get_all_accounts() == []
        assert plugin.account_calls == 2

    def test_write_invalidates_plugin_entry(self, registry: PluginRegistry) -> None:
        manager = self._manager(registry, FakeClock())
        assert manager.get_all_balances() == []

        manager.process_manual_entry("cash_holdings", _cash())

        assert [balance.amount for balance in manager.get_all_balances()] == [2500.0]

    def test_refresh_and_disable_invalidate(self) -> None:
        plugin = ApiPlugin()
        manager = self._manager(_api_registry(plugin), FakeClock())

        manager.get_all_accounts()
        manager.refresh_all_data()
        manager.get_all_accounts()
        assert plugin.account_calls == 2

        manager.disable_plugin("bank_api")
        manager.enable_plugin("bank_api")
        manager.get_all_accounts()
        assert plugin.account_calls == 3
