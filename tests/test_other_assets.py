"""
Tests for category-driven miscellaneous assets.

Coverage:
- custom_schema documents become prefixed field specs
- category schemas extend the base schema; unknown categories raise
- custom fields are validated with the shared engine and stored as JSON
- inactive categories are not selectable
"""

from __future__ import annotations

import pytest

from app.domain.plugins import ErrorCode, FieldType, PluginConfig
from app.plugins.errors import CategoryNotFoundError, ManualEntryValidationError
from app.plugins.manager import PluginManager
from app.plugins.other_assets import OtherAssetsPlugin, custom_field_specs
from db.models.other_asset import AssetCategory, MiscellaneousAsset

VEHICLE_SCHEMA = {
    "fields": [
        {
            "name": "vin",
            "type": "text",
            "label": "VIN",
            "required": True,
            "validation": {"pattern": "^[A-HJ-NPR-Z0-9]{17}$"},
        },
        {"name": "mileage", "type": "number", "label": "Mileage", "validation": {"min": 0}},
        {"name": "inspected_on", "type": "date", "label": "Last Inspection"},
    ]
}


@pytest.fixture()
def categories(session_factory) -> dict[str, int]:
    with session_factory() as session:
        vehicles = AssetCategory(name="Vehicles", custom_schema=VEHICLE_SCHEMA, sort_order=1)
        art = AssetCategory(name="Art", custom_schema=None, sort_order=2)
        retired = AssetCategory(name="Retired", is_active=False, sort_order=3)
        session.add_all([vehicles, art, retired])
        session.commit()
        return {"vehicles": vehicles.id, "art": art.id, "retired": retired.id}


@pytest.fixture()
def plugin(session_factory) -> OtherAssetsPlugin:
    plugin = OtherAssetsPlugin(session_factory=session_factory)
    plugin.initialize(PluginConfig(enabled=True))
    return plugin


def _vehicle(category_id: int, **custom: object) -> dict[str, object]:
    fields: dict[str, object] = {"vin": "1HGCM82633A004352", "mileage": "42000"}
    fields.update(custom)
    return {
        "asset_category_id": category_id,
        "asset_name": "2020 Toyota Camry",
        "current_value": 18000,
        "amount_owed": 5000,
        "custom_fields": fields,
    }


# ---------------------------------------------------------------------------
# custom_field_specs
# ---------------------------------------------------------------------------


class TestCustomFieldSpecs:
    def test_fields_are_prefixed(self) -> None:
        specs = custom_field_specs(VEHICLE_SCHEMA)

        assert [spec.name for spec in specs] == [
            "custom_fields.vin",
            "custom_fields.mileage",
            "custom_fields.inspected_on",
        ]
        assert specs[0].required is True
        assert specs[1].validation.min == 0.0

    def test_malformed_entries_are_skipped(self) -> None:
        specs = custom_field_specs(
            {"fields": [{"label": "no name"}, "garbage", {"name": "color", "type": "colorpicker"}]}
        )

        assert [(spec.name, spec.type) for spec in specs] == [("custom_fields.color", FieldType.TEXT)]

    def test_empty_schema(self) -> None:
        assert custom_field_specs(None) == ()
        assert custom_field_specs({}) == ()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class TestCategorySchemas:
    def test_base_schema_lists_active_categories(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int]
    ) -> None:
        category_field = plugin.get_manual_entry_schema().get_field("asset_category_id")

        assert [(o.value, o.label) for o in category_field.options] == [
            (str(categories["vehicles"]), "Vehicles"),
            (str(categories["art"]), "Art"),
        ]

    def test_category_schema_adds_custom_fields(
        self, manager: PluginManager, categories: dict[str, int]
    ) -> None:
        schema = manager.get_manual_entry_schema_for_category("other_assets", categories["vehicles"])

        assert "custom_fields.vin" in schema.field_names()
        assert schema.field_names()[0] == "asset_category_id"

    def test_unknown_or_inactive_category(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int]
    ) -> None:
        with pytest.raises(CategoryNotFoundError):
            plugin.get_manual_entry_schema_for_category(9999)
        with pytest.raises(CategoryNotFoundError):
            plugin.get_manual_entry_schema_for_category(categories["retired"])


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


class TestOtherAssetEntries:
    def test_custom_fields_are_validated(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int]
    ) -> None:
        result = plugin.validate_manual_entry(
            _vehicle(categories["vehicles"], vin="short", mileage="lots", inspected_on="03/01/2024")
        )

        assert {(e.field, e.code) for e in result.errors} == {
            ("custom_fields.vin", ErrorCode.PATTERN),
            ("custom_fields.mileage", ErrorCode.INVALID_NUMBER),
            ("custom_fields.inspected_on", ErrorCode.INVALID_FORMAT),
        }

    def test_required_custom_field(self, plugin: OtherAssetsPlugin, categories: dict[str, int]) -> None:
        payload = _vehicle(categories["vehicles"])
        payload["custom_fields"] = {"mileage": 10}

        result = plugin.validate_manual_entry(payload)

        assert [(e.field, e.code) for e in result.errors] == [("custom_fields.vin", ErrorCode.REQUIRED)]

    def test_entry_is_stored_with_custom_fields(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int], session_factory
    ) -> None:
        record_id = plugin.process_manual_entry(
            _vehicle(categories["vehicles"], inspected_on="2024-02-01")
        )

        with session_factory() as session:
            row = session.get(MiscellaneousAsset, record_id)
        assert row.asset_category_id == categories["vehicles"]
        assert row.equity == 13000.0
        assert row.custom_fields == {
            "vin": "1HGCM82633A004352",
            "mileage": 42000.0,
            "inspected_on": "2024-02-01",
        }
        assert row.account_id == plugin.account_id

    def test_category_without_custom_fields(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int], session_factory
    ) -> None:
        record_id = plugin.process_manual_entry(
            {"asset_category_id": str(categories["art"]), "asset_name": "Print", "current_value": 900}
        )

        with session_factory() as session:
            row = session.get(MiscellaneousAsset, record_id)
        assert row.custom_fields is None
        assert row.amount_owed == 0.0
        assert row.equity == 900.0

    def test_inactive_category_is_rejected(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int]
    ) -> None:
        with pytest.raises(ManualEntryValidationError) as exc_info:
            plugin.process_manual_entry(_vehicle(categories["retired"]))

        assert [(e.field, e.code) for e in exc_info.value.errors] == [
            ("asset_category_id", ErrorCode.INVALID_OPTION)
        ]

    def test_amount_owed_cannot_exceed_value(
        self, plugin: OtherAssetsPlugin, categories: dict[str, int]
    ) -> None:
        payload = _vehicle(categories["vehicles"])
        payload["amount_owed"] = 20000

        result = plugin.validate_manual_entry(payload)

        assert [(e.field, e.code) for e in result.errors] == [("amount_owed", ErrorCode.INVALID_RANGE)]
