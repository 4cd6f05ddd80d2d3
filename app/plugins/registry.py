"""
app/plugins/registry.py

Concurrency-safe catalog of plugin instances and their configuration.

State per plugin: unregistered -> registered (disabled) -> enabled <-> disabled.
Registry state is guarded by one reader/writer lock. Plugin code
(initialize, disconnect, health, refresh) always runs outside the lock, and
state is committed only after that code succeeds, so a slow plugin stalls
its own mutation but never concurrent reads.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from app.domain.plugins import PluginConfig, PluginHealth, PluginInfo, PluginStatus
from app.plugins.base import FinancialDataPlugin
from app.plugins.errors import PluginAlreadyRegisteredError, PluginNotRegisteredError
from app.plugins.locks import ReadWriteLock

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Explicitly constructed registry; create one per application (or per test).
    """

    def __init__(self) -> None:
        self._plugins: dict[str, FinancialDataPlugin] = {}
        self._configs: dict[str, PluginConfig] = {}
        self._lock = ReadWriteLock()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def register(self, plugin: FinancialDataPlugin) -> None:
        """
        Add ``plugin`` in the disabled state. Never overwrites an existing name.
        """

        with self._lock.write_locked():
            if plugin.name in self._plugins:
                raise PluginAlreadyRegisteredError(plugin.name)
            self._plugins[plugin.name] = plugin
            self._configs[plugin.name] = PluginConfig(enabled=False)
        logger.info("Plugin registered plugin=%s version=%s", plugin.name, plugin.version)

    def unregister(self, name: str) -> None:
        """
        Disconnect and remove a plugin. A failed disconnect keeps it registered.
        """

        plugin = self.get(name)
        plugin.disconnect()
        with self._lock.write_locked():
            if name not in self._plugins:
                raise PluginNotRegisteredError(name)
            del self._plugins[name]
            del self._configs[name]
        logger.info("Plugin unregistered plugin=%s", name)

    def configure(self, name: str, config: PluginConfig) -> None:
        """
        Initialize the plugin with ``config`` and only then make it current.

        If ``initialize`` raises, the previous configuration stays in effect.
        """

        plugin = self.get(name)
        plugin.initialize(config)
        with self._lock.write_locked():
            if name not in self._plugins:
                raise PluginNotRegisteredError(name)
            self._configs[name] = config
        logger.info("Plugin configured plugin=%s enabled=%s", name, config.enabled)

    def enable(self, name: str) -> None:
        plugin = self.get(name)
        enabled_config = replace(self.get_config(name), enabled=True)
        plugin.initialize(enabled_config)
        with self._lock.write_locked():
            if name not in self._plugins:
                raise PluginNotRegisteredError(name)
            self._configs[name] = replace(self._configs[name], enabled=True)
        logger.info("Plugin enabled plugin=%s", name)

    def disable(self, name: str) -> None:
        """
        Disconnect, then clear the enabled flag. A failed disconnect leaves it enabled.
        """

        plugin = self.get(name)
        plugin.disconnect()
        with self._lock.write_locked():
            if name not in self._plugins:
                raise PluginNotRegisteredError(name)
            self._configs[name] = replace(self._configs[name], enabled=False)
        logger.info("Plugin disabled plugin=%s", name)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, name: str) -> FinancialDataPlugin:
        with self._lock.read_locked():
            plugin = self._plugins.get(name)
        if plugin is None:
            raise PluginNotRegisteredError(name)
        return plugin

    def get_config(self, name: str) -> PluginConfig:
        with self._lock.read_locked():
            config = self._configs.get(name)
        if config is None:
            raise PluginNotRegisteredError(name)
        return config

    def is_enabled(self, name: str) -> bool:
        return self.get_config(name).enabled

    def names(self) -> list[str]:
        with self._lock.read_locked():
            return sorted(self._plugins)

    def list(self) -> list[PluginInfo]:
        """
        One row per plugin with a single synthesized ``status``.
        """

        infos: list[PluginInfo] = []
        for plugin, config in self._snapshot():
            health = _safe_health(plugin)
            infos.append(
                PluginInfo(
                    name=plugin.name,
                    friendly_name=plugin.friendly_name,
                    plugin_type=plugin.plugin_type,
                    data_source=plugin.data_source,
                    version=plugin.version,
                    description=plugin.description,
                    enabled=config.enabled,
                    status=health.status if config.enabled else PluginStatus.DISABLED,
                    health=health,
                )
            )
        return infos

    def get_active_plugins(self) -> list[FinancialDataPlugin]:
        return [plugin for plugin, config in self._snapshot() if config.enabled]

    def get_manual_entry_plugins(self) -> list[FinancialDataPlugin]:
        return [plugin for plugin in self.get_active_plugins() if plugin.supports_manual_entry()]

    def health_check(self) -> dict[str, PluginHealth]:
        return {plugin.name: _safe_health(plugin) for plugin in self.get_active_plugins()}

    def refresh_all(self) -> dict[str, Exception]:
        """
        Refresh every enabled plugin; returns only the failures, keyed by name.
        """

        errors: dict[str, Exception] = {}
        for plugin in self.get_active_plugins():
            try:
                plugin.refresh_data()
            except Exception as exc:
                logger.warning("Plugin refresh failed plugin=%s error=%s", plugin.name, exc)
                errors[plugin.name] = exc
        return errors

    def _snapshot(self) -> list[tuple[FinancialDataPlugin, PluginConfig]]:
        with self._lock.read_locked():
            return [(self._plugins[name], self._configs[name]) for name in sorted(self._plugins)]


def _safe_health(plugin: FinancialDataPlugin) -> PluginHealth:
    try:
        return plugin.is_healthy()
    except Exception as exc:
        logger.warning("Plugin health check raised plugin=%s error=%s", plugin.name, exc)
        return PluginHealth(
            status=PluginStatus.ERROR,
            last_checked=datetime.now(timezone.utc),
            message=str(exc),
        )
