"""
app/domain/plugins.py

Value objects exchanged between plugins, the registry and the manager.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


class PluginType:
    API = "api"
    MANUAL = "manual"
    SCRAPING = "scraping"
    PLAID = "plaid"


class DataSourceType:
    API = "api"
    MANUAL = "manual"
    SCRAPING = "scraping"


class PluginStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"
    UNHEALTHY = "unhealthy"
    # Synthesized by the registry listing only; never returned by a plugin.
    DISABLED = "disabled"


class FieldType:
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"


class ErrorCode:
    """
    Machine-readable field error codes. Callers branch on these, never on messages.
    """

    REQUIRED = "required"
    INVALID_NUMBER = "invalid_number"
    INVALID_TYPE = "invalid_type"
    INVALID_FORMAT = "invalid_format"
    INVALID_RANGE = "invalid_range"
    INVALID_OPTION = "invalid_option"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "pattern"
    INVALID_DATE_ORDER = "invalid_date_order"


@dataclass(frozen=True)
class PluginDescriptor:
    """
    Immutable plugin identity, fixed for the lifetime of the registration.
    """

    name: str
    friendly_name: str
    version: str
    description: str
    plugin_type: str
    data_source: str


@dataclass(frozen=True)
class PluginConfig:
    enabled: bool = True
    settings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PluginMetrics:
    request_count: int = 0
    error_count: int = 0
    success_rate: float = 1.0
    last_update: datetime | None = None


@dataclass(frozen=True)
class PluginHealth:
    status: str
    last_checked: datetime
    message: str | None = None
    metrics: PluginMetrics = field(default_factory=PluginMetrics)


@dataclass(frozen=True)
class PluginInfo:
    """
    One registry listing row.

    ``status`` is "disabled" whenever the plugin is disabled, otherwise the
    plugin's own health status.
    """

    name: str
    friendly_name: str
    plugin_type: str
    data_source: str
    version: str
    description: str
    enabled: bool
    status: str
    health: PluginHealth


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    type: str
    institution: str
    data_source: str
    last_updated: datetime | None = None


@dataclass(frozen=True)
class Balance:
    account_id: str
    amount: float
    currency: str
    as_of_date: datetime | None
    data_source: str


@dataclass(frozen=True)
class Transaction:
    id: str
    account_id: str
    amount: float
    description: str
    category: str | None
    transaction_date: date
    data_source: str


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass(frozen=True)
class FieldOption:
    value: str
    label: str


@dataclass(frozen=True)
class FieldValidation:
    """
    Declarative constraints checked after type coercion succeeds.

    ``max_years_ahead`` bounds date fields relative to today.
    """

    pattern: str | None = None
    min: float | None = None
    max: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    max_years_ahead: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("pattern", self.pattern),
                ("min", self.min),
                ("max", self.max),
                ("min_length", self.min_length),
                ("max_length", self.max_length),
            )
            if value is not None
        }


@dataclass(frozen=True)
class FieldSpec:
    """
    One form field of a manual-entry schema.

    ``uppercase`` normalizes text input (ticker symbols) before the pattern
    check; it is engine behavior and is not part of the published schema.
    """

    name: str
    type: str
    label: str
    description: str = ""
    required: bool = False
    placeholder: str | None = None
    default_value: Any = None
    options: tuple[FieldOption, ...] = ()
    validation: FieldValidation = field(default_factory=FieldValidation)
    uppercase: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "label": self.label,
            "description": self.description,
            "required": self.required,
        }
        if self.placeholder is not None:
            payload["placeholder"] = self.placeholder
        if self.default_value is not None:
            payload["default_value"] = self.default_value
        if self.options:
            payload["options"] = [{"value": o.value, "label": o.label} for o in self.options]
        constraints = self.validation.to_dict()
        if constraints:
            payload["validation"] = constraints
        return payload


@dataclass(frozen=True)
class ManualEntrySchema:
    name: str
    description: str
    version: str
    fields: tuple[FieldSpec, ...]

    def get_field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    def with_fields(self, extra: tuple[FieldSpec, ...]) -> ManualEntrySchema:
        return ManualEntrySchema(
            name=self.name,
            description=self.description,
            version=self.version,
            fields=self.fields + extra,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "fields": [spec.to_dict() for spec in self.fields],
        }


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one manual-entry payload.

    ``data`` is the canonical record: schema field names mapped to str, float,
    bool, date, None, or a nested dict for ``custom_fields``. It is only
    meaningful when ``valid`` is true.
    """

    valid: bool
    errors: tuple[FieldError, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict)

    def error_fields(self) -> list[str]:
        seen: list[str] = []
        for error in self.errors:
            if error.field not in seen:
                seen.append(error.field)
        return seen


@dataclass(frozen=True)
class BulkUpdateItem:
    id: int
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class BulkUpdateFailure:
    id: int
    error: str
    fields: tuple[str, ...] = ()
    errors: tuple[FieldError, ...] = ()


@dataclass(frozen=True)
class BulkUpdateResult:
    success_count: int
    failure_count: int
    failures: tuple[BulkUpdateFailure, ...] = ()
    updated_ids: tuple[int, ...] = ()
