"""
app/domain/field_value.py

Closed sum type for loosely-typed manual-entry payload values.

Form submissions deliver everything as strings while JSON clients send native
numbers and booleans. ``decode_payload`` is the single place a raw payload is
turned into ``FieldValue`` variants; the validation engine only ever matches
on these variants.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

CUSTOM_FIELDS_KEY = "custom_fields"


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class NumberValue:
    value: float


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class NullValue:
    pass


@dataclass(frozen=True)
class UnsupportedValue:
    """
    Raw input of a shape no field type accepts (lists, objects, ...).

    Kept as a variant so the engine can report ``invalid_type`` for it
    instead of failing during decoding.
    """

    type_name: str


FieldValue = Union[StringValue, NumberValue, BoolValue, NullValue, UnsupportedValue]

NULL = NullValue()

_FIELD_VALUE_TYPES = (StringValue, NumberValue, BoolValue, NullValue, UnsupportedValue)


def decode_value(raw: Any) -> FieldValue:
    """
    Convert one raw payload value into its ``FieldValue`` variant.
    """

    if raw is None:
        return NULL
    if isinstance(raw, _FIELD_VALUE_TYPES):
        return raw
    # bool is a subclass of int and must be checked first.
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float, Decimal)):
        try:
            return NumberValue(float(raw))
        except (OverflowError, ValueError):
            # Beyond float range, or a signalling NaN: reported as invalid_number.
            return NumberValue(math.nan)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, datetime):
        return StringValue(raw.date().isoformat())
    if isinstance(raw, date):
        return StringValue(raw.isoformat())
    return UnsupportedValue(type(raw).__name__)


def decode_payload(raw: Mapping[str, Any]) -> dict[str, FieldValue]:
    """
    Decode a raw payload mapping.

    A nested ``custom_fields`` mapping is flattened into ``custom_fields.<name>``
    keys so category-specific fields validate exactly like static ones.
    """

    decoded: dict[str, FieldValue] = {}
    for key, value in raw.items():
        if key == CUSTOM_FIELDS_KEY and isinstance(value, Mapping):
            for custom_name, custom_value in value.items():
                decoded[f"{CUSTOM_FIELDS_KEY}.{custom_name}"] = decode_value(custom_value)
            continue
        decoded[str(key)] = decode_value(value)
    return decoded


def is_blank(value: FieldValue) -> bool:
    """
    True for every shape of "not provided": null or an empty/whitespace string.
    """

    if isinstance(value, NullValue):
        return True
    return isinstance(value, StringValue) and not value.value.strip()


def to_python(value: FieldValue) -> Any:
    """
    Return the plain Python value carried by a variant.
    """

    if isinstance(value, (StringValue, NumberValue, BoolValue)):
        return value.value
    return None
