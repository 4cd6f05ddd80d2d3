"""
app/plugins/real_estate.py

Manual entry for owned properties. Equity is derived from current value
minus the outstanding mortgage; each property gets its own account.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from app.domain.plugins import (
    DataSourceType,
    FieldOption,
    FieldSpec,
    FieldType,
    FieldValidation,
    PluginDescriptor,
    PluginType,
)
from app.plugins.base import AccountKey, DefaultAccount, ManualEntryPlugin
from app.plugins.stock_holdings import MAX_YEARS_AHEAD
from app.validators.manual_entry_validator import CrossFieldRule, Derivation
from app.validators.rules import difference, not_greater_than
from db.models.real_estate_property import RealEstateProperty

PROPERTY_TYPES = (
    FieldOption(value="primary_residence", label="Primary Residence"),
    FieldOption(value="investment_property", label="Investment Property"),
    FieldOption(value="vacation_home", label="Vacation Home"),
    FieldOption(value="commercial", label="Commercial Property"),
    FieldOption(value="land", label="Land/Lot"),
    FieldOption(value="other", label="Other"),
)

US_STATES = (
    ("AL", "Alabama"), ("AK", "Alaska"), ("AZ", "Arizona"), ("AR", "Arkansas"),
    ("CA", "California"), ("CO", "Colorado"), ("CT", "Connecticut"), ("DE", "Delaware"),
    ("FL", "Florida"), ("GA", "Georgia"), ("HI", "Hawaii"), ("ID", "Idaho"),
    ("IL", "Illinois"), ("IN", "Indiana"), ("IA", "Iowa"), ("KS", "Kansas"),
    ("KY", "Kentucky"), ("LA", "Louisiana"), ("ME", "Maine"), ("MD", "Maryland"),
    ("MA", "Massachusetts"), ("MI", "Michigan"), ("MN", "Minnesota"), ("MS", "Mississippi"),
    ("MO", "Missouri"), ("MT", "Montana"), ("NE", "Nebraska"), ("NV", "Nevada"),
    ("NH", "New Hampshire"), ("NJ", "New Jersey"), ("NM", "New Mexico"), ("NY", "New York"),
    ("NC", "North Carolina"), ("ND", "North Dakota"), ("OH", "Ohio"), ("OK", "Oklahoma"),
    ("OR", "Oregon"), ("PA", "Pennsylvania"), ("RI", "Rhode Island"), ("SC", "South Carolina"),
    ("SD", "South Dakota"), ("TN", "Tennessee"), ("TX", "Texas"), ("UT", "Utah"),
    ("VT", "Vermont"), ("VA", "Virginia"), ("WA", "Washington"), ("WV", "West Virginia"),
    ("WI", "Wisconsin"), ("WY", "Wyoming"), ("DC", "District of Columbia"),
)


class RealEstatePlugin(ManualEntryPlugin):
    descriptor = PluginDescriptor(
        name="real_estate",
        friendly_name="Real Estate",
        version="1.0.0",
        description="Manual entry for residential, investment and commercial properties",
        plugin_type=PluginType.MANUAL,
        data_source=DataSourceType.MANUAL,
    )
    model = RealEstateProperty
    default_account = DefaultAccount(
        name="Real Estate Portfolio",
        account_type="real_estate",
        institution="Manual Entry",
    )

    def _schema_fields(self) -> tuple[FieldSpec, ...]:
        return (
            FieldSpec(
                name="property_type",
                type=FieldType.SELECT,
                label="Property Type",
                required=True,
                options=PROPERTY_TYPES,
            ),
            FieldSpec(
                name="property_name",
                type=FieldType.TEXT,
                label="Property Name",
                required=True,
                placeholder="My Primary Home, Beach House, etc.",
                validation=FieldValidation(max_length=200),
            ),
            FieldSpec(
                name="street_address",
                type=FieldType.TEXT,
                label="Street Address",
                placeholder="123 Main Street",
                validation=FieldValidation(max_length=200),
            ),
            FieldSpec(
                name="city",
                type=FieldType.TEXT,
                label="City",
                validation=FieldValidation(max_length=100),
            ),
            FieldSpec(
                name="state",
                type=FieldType.SELECT,
                label="State",
                options=tuple(FieldOption(value=code, label=label) for code, label in US_STATES),
                uppercase=True,
            ),
            FieldSpec(
                name="zip_code",
                type=FieldType.TEXT,
                label="ZIP Code",
                placeholder="90210",
                validation=FieldValidation(max_length=10, pattern=r"^[0-9]{5}(-[0-9]{4})?$"),
            ),
            FieldSpec(
                name="purchase_price",
                type=FieldType.NUMBER,
                label="Purchase Price",
                required=True,
                placeholder="350000",
                validation=FieldValidation(min=1),
            ),
            FieldSpec(
                name="current_value",
                type=FieldType.NUMBER,
                label="Current Market Value",
                required=True,
                placeholder="450000",
                validation=FieldValidation(min=1),
            ),
            FieldSpec(
                name="outstanding_mortgage",
                type=FieldType.NUMBER,
                label="Outstanding Mortgage Balance",
                description="Leave empty if paid off",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="purchase_date",
                type=FieldType.DATE,
                label="Purchase Date",
                required=True,
                validation=FieldValidation(max_years_ahead=MAX_YEARS_AHEAD),
            ),
            FieldSpec(
                name="property_size_sqft",
                type=FieldType.NUMBER,
                label="Property Size (sq ft)",
                validation=FieldValidation(min=1),
            ),
            FieldSpec(
                name="lot_size_acres",
                type=FieldType.NUMBER,
                label="Lot Size (acres)",
                validation=FieldValidation(min=0.01),
            ),
            FieldSpec(
                name="rental_income_monthly",
                type=FieldType.NUMBER,
                label="Monthly Rental Income",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="property_tax_annual",
                type=FieldType.NUMBER,
                label="Annual Property Tax",
                validation=FieldValidation(min=0),
            ),
            FieldSpec(
                name="notes",
                type=FieldType.TEXTAREA,
                label="Notes",
                validation=FieldValidation(max_length=1000),
            ),
        )

    def _rules(self) -> Sequence[CrossFieldRule]:
        return (
            not_greater_than(
                "outstanding_mortgage",
                "current_value",
                message="Outstanding mortgage cannot exceed current value",
            ),
        )

    def _derivations(self) -> Sequence[Derivation]:
        return (difference("equity", "current_value", "outstanding_mortgage"),)

    def _to_row(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "property_type": data["property_type"],
            "property_name": data["property_name"],
            "street_address": data.get("street_address"),
            "city": data.get("city"),
            "state": data.get("state"),
            "zip_code": data.get("zip_code"),
            "purchase_price": data["purchase_price"],
            "current_value": data["current_value"],
            "outstanding_mortgage": data.get("outstanding_mortgage") or 0.0,
            "equity": data["equity"],
            "purchase_date": data["purchase_date"],
            "property_size_sqft": data.get("property_size_sqft"),
            "lot_size_acres": data.get("lot_size_acres"),
            "rental_income_monthly": data.get("rental_income_monthly"),
            "property_tax_annual": data.get("property_tax_annual"),
            "notes": data.get("notes"),
        }

    def _account_key(self, data: Mapping[str, Any]) -> AccountKey:
        return AccountKey(
            name=data["property_name"],
            account_type="real_estate",
            institution="Manual Entry",
        )

    def _balance_amount(self, row: RealEstateProperty) -> float:
        return float(row.equity or 0.0)
