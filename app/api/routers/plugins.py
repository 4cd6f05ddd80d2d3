"""
app/api/routers/plugins.py

Plugin management and manual-entry HTTP endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from app.api.dependencies import get_plugin_manager, to_http_exception
from app.domain.plugins import BulkUpdateItem
from app.plugins.errors import PluginError
from app.plugins.manager import PluginManager
from app.schemas.plugins import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    EntryCreatedResponse,
    EntryUpdatedResponse,
    ManualEntrySchemaResponse,
    PluginActionResponse,
    PluginHealthResponse,
    PluginInfoResponse,
    RefreshResponse,
    ValidationResponse,
)

router = APIRouter(prefix="/plugins", tags=["plugins"])


@router.get("", response_model=list[PluginInfoResponse])
def list_plugins(manager: PluginManager = Depends(get_plugin_manager)) -> list[PluginInfoResponse]:
    return [PluginInfoResponse.from_domain(info) for info in manager.list_plugins()]


@router.get("/health", response_model=dict[str, PluginHealthResponse])
def plugin_health(manager: PluginManager = Depends(get_plugin_manager)) -> dict[str, PluginHealthResponse]:
    return {
        name: PluginHealthResponse.from_domain(health)
        for name, health in manager.get_plugin_health().items()
    }


@router.post("/refresh", response_model=RefreshResponse)
def refresh_plugins(manager: PluginManager = Depends(get_plugin_manager)) -> RefreshResponse:
    """
    Refresh every enabled plugin and report per-plugin failures.
    """

    errors = manager.refresh_all_data()
    refreshed = [plugin.name for plugin in manager.registry.get_active_plugins() if plugin.name not in errors]
    return RefreshResponse(
        refreshed=refreshed,
        errors={name: str(exc) for name, exc in errors.items()},
    )


@router.get("/{name}/schema", response_model=ManualEntrySchemaResponse)
def get_schema(name: str, manager: PluginManager = Depends(get_plugin_manager)) -> ManualEntrySchemaResponse:
    try:
        schema = manager.get_manual_entry_schema(name)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return ManualEntrySchemaResponse.from_domain(schema)


@router.get("/{name}/schema/categories/{category_id}", response_model=ManualEntrySchemaResponse)
def get_category_schema(
    name: str,
    category_id: int,
    manager: PluginManager = Depends(get_plugin_manager),
) -> ManualEntrySchemaResponse:
    try:
        schema = manager.get_manual_entry_schema_for_category(name, category_id)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return ManualEntrySchemaResponse.from_domain(schema)


@router.post("/{name}/validate", response_model=ValidationResponse)
def validate_entry(
    name: str,
    payload: dict[str, Any] = Body(...),
    manager: PluginManager = Depends(get_plugin_manager),
) -> ValidationResponse:
    """
    Dry-run validation; always 200 with ``valid`` and the field errors.
    """

    try:
        result = manager.validate_manual_entry(name, payload)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return ValidationResponse.from_domain(result)


@router.post("/{name}/entries", response_model=EntryCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    name: str,
    payload: dict[str, Any] = Body(...),
    manager: PluginManager = Depends(get_plugin_manager),
) -> EntryCreatedResponse:
    try:
        record_id = manager.process_manual_entry(name, payload)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return EntryCreatedResponse(id=record_id)


@router.put("/{name}/entries/{record_id}", response_model=EntryUpdatedResponse)
def update_entry(
    name: str,
    record_id: int,
    payload: dict[str, Any] = Body(...),
    manager: PluginManager = Depends(get_plugin_manager),
) -> EntryUpdatedResponse:
    try:
        manager.update_manual_entry(name, record_id, payload)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return EntryUpdatedResponse(id=record_id)


@router.post("/{name}/entries/bulk", response_model=BulkUpdateResponse)
def bulk_update_entries(
    name: str,
    request: BulkUpdateRequest,
    manager: PluginManager = Depends(get_plugin_manager),
) -> BulkUpdateResponse:
    """
    Apply partial updates; 200 when at least one item succeeded.
    """

    items = [BulkUpdateItem(id=item.id, changes=item.changes) for item in request.items]
    try:
        result = manager.bulk_update(name, items)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return BulkUpdateResponse.from_domain(result)


@router.post("/{name}/enable", response_model=PluginActionResponse)
def enable_plugin(name: str, manager: PluginManager = Depends(get_plugin_manager)) -> PluginActionResponse:
    try:
        manager.enable_plugin(name)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return PluginActionResponse(name=name, enabled=True)


@router.post("/{name}/disable", response_model=PluginActionResponse)
def disable_plugin(name: str, manager: PluginManager = Depends(get_plugin_manager)) -> PluginActionResponse:
    try:
        manager.disable_plugin(name)
    except PluginError as exc:
        raise to_http_exception(exc) from exc
    return PluginActionResponse(name=name, enabled=False)
