"""
app/schemas/plugins.py

Request and response schemas for plugin management and manual entry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.plugins import (
    BulkUpdateResult,
    FieldError,
    ManualEntrySchema,
    PluginHealth,
    PluginInfo,
    ValidationResult,
)


class PluginMetricsResponse(BaseModel):
    request_count: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    success_rate: float
    last_update: datetime | None = None


class PluginHealthResponse(BaseModel):
    status: str
    last_checked: datetime
    message: str | None = None
    metrics: PluginMetricsResponse

    @classmethod
    def from_domain(cls, health: PluginHealth) -> PluginHealthResponse:
        return cls(
            status=health.status,
            last_checked=health.last_checked,
            message=health.message,
            metrics=PluginMetricsResponse(
                request_count=health.metrics.request_count,
                error_count=health.metrics.error_count,
                success_rate=health.metrics.success_rate,
                last_update=health.metrics.last_update,
            ),
        )


class PluginInfoResponse(BaseModel):
    """
    One plugin listing row with a single synthesized ``status``.
    """

    name: str
    friendly_name: str
    type: str
    data_source: str
    version: str
    description: str
    enabled: bool
    status: str
    health: PluginHealthResponse

    @classmethod
    def from_domain(cls, info: PluginInfo) -> PluginInfoResponse:
        return cls(
            name=info.name,
            friendly_name=info.friendly_name,
            type=info.plugin_type,
            data_source=info.data_source,
            version=info.version,
            description=info.description,
            enabled=info.enabled,
            status=info.status,
            health=PluginHealthResponse.from_domain(info.health),
        )


class FieldOptionResponse(BaseModel):
    value: str
    label: str


class FieldSpecResponse(BaseModel):
    name: str
    type: str
    label: str
    description: str = ""
    required: bool = False
    placeholder: str | None = None
    default_value: Any = None
    options: list[FieldOptionResponse] = Field(default_factory=list)
    validation: dict[str, Any] = Field(default_factory=dict)


class ManualEntrySchemaResponse(BaseModel):
    name: str
    description: str
    version: str
    fields: list[FieldSpecResponse]

    @classmethod
    def from_domain(cls, schema: ManualEntrySchema) -> ManualEntrySchemaResponse:
        return cls.model_validate(schema.to_dict())


class FieldErrorResponse(BaseModel):
    field: str
    message: str
    code: str

    @classmethod
    def from_domain(cls, error: FieldError) -> FieldErrorResponse:
        return cls(field=error.field, message=error.message, code=error.code)


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[FieldErrorResponse] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, result: ValidationResult) -> ValidationResponse:
        return cls(
            valid=result.valid,
            errors=[FieldErrorResponse.from_domain(error) for error in result.errors],
            data=dict(result.data) if result.valid else {},
        )


class EntryCreatedResponse(BaseModel):
    id: int
    message: str = "Manual entry processed successfully"


class EntryUpdatedResponse(BaseModel):
    id: int
    message: str = "Manual entry updated successfully"


class BulkUpdateItemRequest(BaseModel):
    id: int
    changes: dict[str, Any] = Field(default_factory=dict)


class BulkUpdateRequest(BaseModel):
    items: list[BulkUpdateItemRequest] = Field(..., min_length=1)


class BulkUpdateFailureResponse(BaseModel):
    id: int
    error: str
    fields: list[str] = Field(default_factory=list)
    errors: list[FieldErrorResponse] = Field(default_factory=list)


class BulkUpdateResponse(BaseModel):
    success_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    failures: list[BulkUpdateFailureResponse] = Field(default_factory=list)
    updated_ids: list[int] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: BulkUpdateResult) -> BulkUpdateResponse:
        return cls(
            success_count=result.success_count,
            failure_count=result.failure_count,
            failures=[
                BulkUpdateFailureResponse(
                    id=failure.id,
                    error=failure.error,
                    fields=list(failure.fields),
                    errors=[FieldErrorResponse.from_domain(error) for error in failure.errors],
                )
                for failure in result.failures
            ],
            updated_ids=list(result.updated_ids),
        )


class PluginActionResponse(BaseModel):
    name: str
    enabled: bool


class RefreshResponse(BaseModel):
    refreshed: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
