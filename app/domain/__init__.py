"""
app/domain package marker.
"""

from app.domain.field_value import (
    NULL,
    BoolValue,
    FieldValue,
    NullValue,
    NumberValue,
    StringValue,
    UnsupportedValue,
    decode_payload,
    decode_value,
    is_blank,
)
from app.domain.plugins import (
    Account,
    Balance,
    BulkUpdateFailure,
    BulkUpdateItem,
    BulkUpdateResult,
    DataSourceType,
    DateRange,
    ErrorCode,
    FieldError,
    FieldOption,
    FieldSpec,
    FieldType,
    FieldValidation,
    ManualEntrySchema,
    PluginConfig,
    PluginDescriptor,
    PluginHealth,
    PluginInfo,
    PluginMetrics,
    PluginStatus,
    PluginType,
    Transaction,
    ValidationResult,
)

__all__ = [
    "NULL",
    "Account",
    "Balance",
    "BoolValue",
    "BulkUpdateFailure",
    "BulkUpdateItem",
    "BulkUpdateResult",
    "DataSourceType",
    "DateRange",
    "ErrorCode",
    "FieldError",
    "FieldOption",
    "FieldSpec",
    "FieldType",
    "FieldValidation",
    "FieldValue",
    "ManualEntrySchema",
    "NullValue",
    "NumberValue",
    "PluginConfig",
    "PluginDescriptor",
    "PluginHealth",
    "PluginInfo",
    "PluginMetrics",
    "PluginStatus",
    "PluginType",
    "StringValue",
    "Transaction",
    "UnsupportedValue",
    "ValidationResult",
    "decode_payload",
    "decode_value",
    "is_blank",
]
