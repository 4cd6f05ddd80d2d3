"""
app/plugins/other_assets.py

Manual entry for miscellaneous assets (vehicles, collectibles, ...) grouped
into user-defined categories.

Each active ``asset_categories`` row may carry a ``custom_schema`` of the form
``{"fields": [{"name", "type", "label", "required", "options", "validation",
"placeholder"}]}``. Those fields are exposed as ``custom_fields.<name>`` and
validated by the shared engine alongside the static ones; the canonical record
folds them back into one ``custom_fields`` mapping.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.domain.field_value import CUSTOM_FIELDS_KEY, NumberValue, StringValue, decode_value
from app.domain.plugins import (
    DataSourceType,
    FieldOption,
    FieldSpec,
    FieldType,
    FieldValidation,
    ManualEntrySchema,
    PluginDescriptor,
    PluginType,
    ValidationResult,
)
from app.plugins.base import DefaultAccount, ManualEntryPlugin, SupportsCategorySchema
from app.plugins.errors import CategoryNotFoundError, StorageError
from app.repositories.asset_category_repository import AssetCategoryRepository
from app.validators.manual_entry_validator import CrossFieldRule, Derivation
from app.validators.rules import difference, not_greater_than
from db.models.other_asset import AssetCategory, MiscellaneousAsset

logger = logging.getLogger(__name__)

_CUSTOM_FIELD_TYPES = {
    FieldType.TEXT,
    FieldType.TEXTAREA,
    FieldType.NUMBER,
    FieldType.DATE,
    FieldType.SELECT,
}


def custom_field_specs(custom_schema: Mapping[str, Any] | None) -> tuple[FieldSpec, ...]:
    """
    Convert a category ``custom_schema`` document into prefixed field specs.

    Entries without a name are skipped; unknown field types fall back to text.
    """

    if not custom_schema:
        return ()

    specs: list[FieldSpec] = []
    for raw in custom_schema.get("fields") or ():
        if not isinstance(raw, Mapping) or not raw.get("name"):
            logger.warning("Skipping malformed custom field definition field=%s", raw)
            continue

        field_type = str(raw.get("type") or FieldType.TEXT)
        if field_type not in _CUSTOM_FIELD_TYPES:
            field_type = FieldType.TEXT

        options = tuple(
            FieldOption(value=str(option["value"]), label=str(option.get("label", option["value"])))
            for option in raw.get("options") or ()
            if isinstance(option, Mapping) and "value" in option
        )
        rules = raw.get("validation") or {}
        specs.append(
            FieldSpec(
                name=f"{CUSTOM_FIELDS_KEY}.{raw['name']}",
                type=field_type,
                label=str(raw.get("label") or raw["name"]),
                required=bool(raw.get("required", False)),
                placeholder=raw.get("placeholder"),
                options=options,
                validation=FieldValidation(
                    pattern=rules.get("pattern"),
                    min=_optional_float(rules.get("min")),
                    max=_optional_float(rules.get("max")),
                    min_length=_optional_int(rules.get("min_length")),
                    max_length=_optional_int(rules.get("max_length")),
                ),
            )
        )
    return tuple(specs)


def _optional_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _category_id(raw: Any) -> int | None:
    value = decode_value(raw)
    if isinstance(value, NumberValue) and value.value.is_integer():
        return int(value.value)
    if isinstance(value, StringValue):
        try:
            return int(value.value.strip())
        except ValueError:
            return None
    return None


class OtherAssetsPlugin(ManualEntryPlugin, SupportsCategorySchema):
    descriptor = PluginDescriptor(
        name="other_assets",
        friendly_name="Other Assets",
        version="1.0.0",
        description="Manual entry for vehicles, collectibles and other assets by category",
        plugin_type=PluginType.MANUAL,
        data_source=DataSourceType.MANUAL,
    )
    model = MiscellaneousAsset
    default_account = DefaultAccount(
        name="Other Assets Portfolio",
        account_type="other_assets",
        institution="Manual Entry",
    )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def get_manual_entry_schema_for_category(self, category_id: int) -> ManualEntrySchema:
        category = self._load_category(category_id)
        if category is None:
            raise CategoryNotFoundError(
                f"asset category {category_id} not found",
                record_id=category_id,
            )
        return self.get_manual_entry_schema().with_fields(custom_field_specs(category.custom_schema))

    def validate_manual_entry(self, payload: Mapping[str, Any]) -> ValidationResult:
        """
        Validate against the base schema plus the selected category's custom fields.
        """

        schema = self.get_manual_entry_schema()
        category_id = _category_id(payload.get("asset_category_id"))
        if category_id is not None:
            category = self._load_category(category_id)
            if category is not None:
                schema = schema.with_fields(custom_field_specs(category.custom_schema))
        return self._validator.validate(
            schema=schema,
            payload=payload,
            rules=self._rules(),
            derivations=self._derivations(),
        )

    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        return (
            FieldSpec(
                name="asset_category_id",
                type=FieldType.SELECT,
                label="Category",
                required=True,
                options=self._category_options(),
            ),
            FieldSpec(
                name="asset_name",
                type=FieldType.TEXT,
                label="Asset Name",
                required=True,
                placeholder="2020 Toyota Camry, Rolex Submariner, ...",
                validation=FieldValidation(max_length=200),
            ),
            FieldSpec(
                name="current_value",
                type=FieldType.NUMBER,
                label="Current Value",
                required=True,
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="purchase_price",
                type=FieldType.NUMBER,
                label="Purchase Price",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="amount_owed",
                type=FieldType.NUMBER,
                label="Amount Owed",
                description="Outstanding loan balance against this asset",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="purchase_date",
                type=FieldType.DATE,
                label="Purchase Date",
            ),
            FieldSpec(
                name="description",
                type=FieldType.TEXTAREA,
                label="Description",
                placeholder="Additional details, condition, notes, etc.",
                validation=FieldValidation(max_length=1000),
            ),
        )

    def _rules(self) -> Sequence[CrossFieldRule]:
        return (
            not_greater_than(
                "amount_owed",
                "current_value",
                message="Amount owed cannot exceed current value",
            ),
        )

    def _derivations(self) -> Sequence[Derivation]:
        return (difference("equity", "current_value", "amount_owed"),)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _to_row(self, data: Mapping[str, Any]) -> dict[str, Any]:
        custom = data.get(CUSTOM_FIELDS_KEY) or {}
        return {
            "asset_category_id": int(data["asset_category_id"]),
            "asset_name": data["asset_name"],
            "current_value": data["current_value"],
            "purchase_price": data.get("purchase_price"),
            "amount_owed": data.get("amount_owed") or 0.0,
            "equity": data["equity"],
            "purchase_date": data.get("purchase_date"),
            "description": data.get("description"),
            CUSTOM_FIELDS_KEY: {
                name: value.isoformat() if isinstance(value, date) else value
                for name, value in custom.items()
            }
            or None,
        }

    def _balance_amount(self, row: MiscellaneousAsset) -> float:
        return float(row.equity or 0.0)

    def _category_options(self) -> tuple[FieldOption, ...]:
        try:
            with self._session_factory() as session:
                categories = AssetCategoryRepository(session).list_active()
                return tuple(FieldOption(value=str(c.id), label=c.name) for c in categories)
        except SQLAlchemyError as exc:
            raise StorageError("failed to load asset categories") from exc

    def _load_category(self, category_id: int) -> AssetCategory | None:
        try:
            with self._session_factory() as session:
                return AssetCategoryRepository(session).get_active(category_id)
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to load asset category {category_id}") from exc
