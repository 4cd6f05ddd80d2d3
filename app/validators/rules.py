"""
app/validators/rules.py

Reusable cross-field rules and derivations for the manual-entry validator.

A rule inspects the partially canonical record after per-field validation.
It never fires for a field that already failed, so one bad input produces
one error rather than a cascade.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from app.domain.plugins import ErrorCode, FieldError
from app.validators.manual_entry_validator import CrossFieldRule, Derivation, has_error


def not_greater_than(field_name: str, limit_field: str, *, message: str) -> CrossFieldRule:
    """
    ``field_name`` must not exceed ``limit_field`` when both are present.
    """

    def rule(record: Mapping[str, Any], errors: list[FieldError]) -> None:
        value = record.get(field_name)
        limit = record.get(limit_field)
        if not isinstance(value, float) or not isinstance(limit, float):
            return
        if has_error(errors, field_name) or has_error(errors, limit_field):
            return
        if value > limit:
            errors.append(FieldError(field=field_name, message=message, code=ErrorCode.INVALID_RANGE))

    return rule


def date_not_before(field_name: str, earlier_field: str, *, message: str) -> CrossFieldRule:
    """
    ``field_name`` must fall on or after ``earlier_field``.
    """

    def rule(record: Mapping[str, Any], errors: list[FieldError]) -> None:
        value = record.get(field_name)
        earlier = record.get(earlier_field)
        if not isinstance(value, date) or not isinstance(earlier, date):
            return
        if value < earlier:
            errors.append(
                FieldError(field=field_name, message=message, code=ErrorCode.INVALID_DATE_ORDER)
            )

    return rule


def required_when(
    field_name: str,
    *,
    when_field: str,
    when_value: str,
    message: str,
) -> CrossFieldRule:
    """
    ``field_name`` becomes required when ``when_field`` equals ``when_value``.
    """

    def rule(record: Mapping[str, Any], errors: list[FieldError]) -> None:
        if record.get(when_field) != when_value or has_error(errors, field_name):
            return
        if record.get(field_name) is None:
            errors.append(FieldError(field=field_name, message=message, code=ErrorCode.REQUIRED))

    return rule


def greater_than_when(
    field_name: str,
    bound: float,
    *,
    when_field: str,
    when_value: str,
    message: str,
) -> CrossFieldRule:
    """
    ``field_name`` must be strictly above ``bound`` while the condition holds.
    """

    def rule(record: Mapping[str, Any], errors: list[FieldError]) -> None:
        if record.get(when_field) != when_value:
            return
        value = record.get(field_name)
        if isinstance(value, float) and value <= bound:
            errors.append(FieldError(field=field_name, message=message, code=ErrorCode.INVALID_RANGE))

    return rule


def difference(target: str, minuend: str, subtrahend: str) -> Derivation:
    """
    Write ``record[target] = record[minuend] - record[subtrahend]``.

    A missing subtrahend counts as zero.
    """

    def derive(record: dict[str, Any]) -> None:
        base = record.get(minuend)
        if base is None:
            return
        record[target] = base - (record.get(subtrahend) or 0.0)

    return derive
