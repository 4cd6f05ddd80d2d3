"""
Plugin-layer exceptions.

Validation and not-found errors are user-facing and carry enough structure
for field-level rendering. ``StorageError`` always means infrastructure
failure and is never raised for bad input.
"""

from __future__ import annotations

from collections.abc import Sequence

from app.domain.plugins import BulkUpdateFailure, FieldError


class PluginError(Exception):
    """Base exception for plugin registry and manual-entry failures."""


class PluginNotRegisteredError(PluginError, LookupError):
    """Raised when a plugin name is not in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name} is not registered")
        self.name = name


class PluginAlreadyRegisteredError(PluginError):
    """Raised when registering a name that is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name} is already registered")
        self.name = name


class PluginDisabledError(PluginError):
    """Raised when a write is routed to a registered but disabled plugin."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name} is disabled")
        self.name = name


class ManualEntryNotSupportedError(PluginError):
    """Raised by every manual-entry method of a plugin without manual entry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name} does not support manual entry")
        self.name = name


class BulkUpdateNotSupportedError(PluginError):
    """Raised when a plugin does not offer the bulk-update capability."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name} does not support bulk updates")
        self.name = name


class CategorySchemaNotSupportedError(PluginError):
    """Raised when a plugin has no category-specific schemas."""

    def __init__(self, name: str) -> None:
        super().__init__(f"plugin {name} does not support category schemas")
        self.name = name


class PluginInitializationError(PluginError):
    """Raised when a plugin cannot prepare its backing account."""


class RecordNotFoundError(PluginError, LookupError):
    """Raised when a canonical record id does not exist."""

    def __init__(self, message: str, *, record_id: int | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class CategoryNotFoundError(RecordNotFoundError):
    """Raised when an asset category is missing or inactive."""


class RecordConflictError(PluginError):
    """Raised when a write collides with an existing record's unique key."""


class ManualEntryValidationError(PluginError):
    """Raised when a write is attempted with a payload that failed validation."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors = tuple(errors)
        summary = "; ".join(f"{error.field}: {error.message}" for error in self.errors)
        super().__init__(f"validation failed: {summary}")


class StorageError(PluginError):
    """Raised when the backing store fails (connection or transaction)."""


class BulkUpdateFailedError(PluginError):
    """Raised when no item of a bulk update succeeded; nothing was committed."""

    def __init__(self, failures: Sequence[BulkUpdateFailure]) -> None:
        self.failures = tuple(failures)
        super().__init__(f"bulk update failed: all {len(self.failures)} items failed")
