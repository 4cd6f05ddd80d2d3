"""
app/validators/manual_entry_validator.py

Schema-driven validation and type coercion for manual-entry payloads.

Every plugin shares this engine. A plugin contributes its declarative
``ManualEntrySchema`` plus a list of cross-field rules and derivations; the
mechanical parts (presence, coercion, range/shape checks) live here.

Per-field algorithm
-------------------
1. Presence: null, a missing key and an empty string all mean "not provided".
   A required field that is not provided yields ``required`` and nothing else.
2. Coercion on the ``FieldValue`` variant (number, date, text, select).
3. Declarative constraints (min/max, min/max length, pattern, date horizon).

Cross-field rules run afterwards and only look at fields that coerced cleanly.
All errors are accumulated; nothing short-circuits across fields.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from typing import Any

from app.domain.field_value import (
    CUSTOM_FIELDS_KEY,
    BoolValue,
    FieldValue,
    NULL,
    NumberValue,
    StringValue,
    decode_payload,
    decode_value,
    is_blank,
)
from app.domain.plugins import (
    ErrorCode,
    FieldError,
    FieldSpec,
    FieldType,
    ManualEntrySchema,
    ValidationResult,
)

DATE_FORMAT = "%Y-%m-%d"
_DATE_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CrossFieldRule = Callable[[Mapping[str, Any], list[FieldError]], None]
Derivation = Callable[[dict[str, Any]], None]


class ManualEntryValidator:
    """
    Validates one payload against one schema.

    Stateless apart from the injectable clock, so validating the same payload
    twice always produces the same result.
    """

    def __init__(self, *, today: Callable[[], date] | None = None) -> None:
        self._today = today or date.today

    def validate(
        self,
        *,
        schema: ManualEntrySchema,
        payload: Mapping[str, Any],
        rules: Sequence[CrossFieldRule] = (),
        derivations: Sequence[Derivation] = (),
    ) -> ValidationResult:
        """
        Coerce ``payload`` into a canonical record or collect every field error.

        Parameters
        ----------
        schema:
            Field specs to enforce. Payload keys outside the schema are dropped.
        payload:
            Raw or already-decoded payload values.
        rules:
            Cross-field checks appended after per-field validation.
        derivations:
            Applied to the canonical record only when it is valid.

        Returns
        -------
        ValidationResult
        """

        decoded = decode_payload(payload)
        errors: list[FieldError] = []
        record: dict[str, Any] = {}

        for spec in schema.fields:
            record[spec.name] = self._validate_field(
                spec=spec,
                value=decoded.get(spec.name, NULL),
                errors=errors,
            )

        for rule in rules:
            rule(record, errors)

        if errors:
            return ValidationResult(valid=False, errors=tuple(errors), data=fold_custom_fields(record))

        for derive in derivations:
            derive(record)

        return ValidationResult(valid=True, errors=(), data=fold_custom_fields(record))

    # ------------------------------------------------------------------
    # Per-field
    # ------------------------------------------------------------------

    def _validate_field(
        self,
        *,
        spec: FieldSpec,
        value: FieldValue,
        errors: list[FieldError],
    ) -> Any:
        if is_blank(value):
            if spec.required:
                errors.append(
                    FieldError(
                        field=spec.name,
                        message=f"{spec.label} is required",
                        code=ErrorCode.REQUIRED,
                    )
                )
                return None
            if spec.default_value is None:
                return None
            value = decode_value(spec.default_value)

        if spec.type == FieldType.NUMBER:
            coerced, error = _coerce_number(spec, value)
        elif spec.type == FieldType.DATE:
            coerced, error = _coerce_date(spec, value)
        elif spec.type == FieldType.SELECT:
            coerced, error = _coerce_select(spec, value)
        else:
            coerced, error = _coerce_text(spec, value)

        if error is not None:
            errors.append(error)
            return None

        constraint_errors = self._check_constraints(spec, coerced)
        if constraint_errors:
            errors.extend(constraint_errors)
            return None
        return coerced

    def _check_constraints(self, spec: FieldSpec, value: Any) -> list[FieldError]:
        rules = spec.validation
        found: list[FieldError] = []

        if isinstance(value, float):
            if rules.min is not None and value < rules.min:
                found.append(
                    FieldError(
                        field=spec.name,
                        message=f"{spec.label} must be at least {_format_bound(rules.min)}",
                        code=ErrorCode.INVALID_RANGE,
                    )
                )
            if rules.max is not None and value > rules.max:
                found.append(
                    FieldError(
                        field=spec.name,
                        message=f"{spec.label} must be at most {_format_bound(rules.max)}",
                        code=ErrorCode.INVALID_RANGE,
                    )
                )
        elif isinstance(value, str):
            if rules.min_length is not None and len(value) < rules.min_length:
                found.append(
                    FieldError(
                        field=spec.name,
                        message=f"{spec.label} must be at least {rules.min_length} characters",
                        code=ErrorCode.MIN_LENGTH,
                    )
                )
            if rules.max_length is not None and len(value) > rules.max_length:
                found.append(
                    FieldError(
                        field=spec.name,
                        message=f"{spec.label} must be {rules.max_length} characters or less",
                        code=ErrorCode.MAX_LENGTH,
                    )
                )
            if rules.pattern is not None and re.search(rules.pattern, value) is None:
                found.append(
                    FieldError(
                        field=spec.name,
                        message=f"{spec.label} has an invalid format",
                        code=ErrorCode.PATTERN,
                    )
                )
        elif isinstance(value, date) and rules.max_years_ahead is not None:
            horizon = add_years(self._today(), rules.max_years_ahead)
            if value > horizon:
                found.append(
                    FieldError(
                        field=spec.name,
                        message=(
                            f"{spec.label} cannot be more than "
                            f"{rules.max_years_ahead} years in the future"
                        ),
                        code=ErrorCode.INVALID_RANGE,
                    )
                )
        return found


# ----------------------------------------------------------------------
# Coercion
# ----------------------------------------------------------------------


def _invalid_type(spec: FieldSpec, expected: str) -> FieldError:
    return FieldError(
        field=spec.name,
        message=f"{spec.label} must be {expected}",
        code=ErrorCode.INVALID_TYPE,
    )


def _coerce_number(spec: FieldSpec, value: FieldValue) -> tuple[float | None, FieldError | None]:
    if isinstance(value, NumberValue):
        number = value.value
    elif isinstance(value, StringValue):
        try:
            number = float(value.value.strip())
        except ValueError:
            return None, FieldError(
                field=spec.name,
                message=f"{spec.label} must be a valid number",
                code=ErrorCode.INVALID_NUMBER,
            )
    else:
        return None, _invalid_type(spec, "a number")

    if not math.isfinite(number):
        return None, FieldError(
            field=spec.name,
            message=f"{spec.label} must be a valid number",
            code=ErrorCode.INVALID_NUMBER,
        )
    return number, None


def _coerce_date(spec: FieldSpec, value: FieldValue) -> tuple[date | None, FieldError | None]:
    if not isinstance(value, StringValue):
        return None, _invalid_type(spec, "a date string")

    parsed = parse_date(value.value)
    if parsed is None:
        return None, FieldError(
            field=spec.name,
            message=f"{spec.label} must be in YYYY-MM-DD format",
            code=ErrorCode.INVALID_FORMAT,
        )
    return parsed, None


def _coerce_text(spec: FieldSpec, value: FieldValue) -> tuple[str | None, FieldError | None]:
    if not isinstance(value, StringValue):
        return None, _invalid_type(spec, "text")

    text = value.value.strip()
    if spec.uppercase:
        text = text.upper()
    return text, None


def _coerce_select(spec: FieldSpec, value: FieldValue) -> tuple[str | None, FieldError | None]:
    if isinstance(value, StringValue):
        choice = value.value.strip()
    elif isinstance(value, BoolValue):
        choice = "true" if value.value else "false"
    elif isinstance(value, NumberValue):
        choice = str(int(value.value)) if value.value.is_integer() else str(value.value)
    else:
        return None, _invalid_type(spec, "one of the listed options")

    if spec.uppercase:
        choice = choice.upper()

    allowed = [option.value for option in spec.options]
    if allowed and choice not in allowed:
        return None, FieldError(
            field=spec.name,
            message=f"{spec.label} must be one of: {', '.join(allowed)}",
            code=ErrorCode.INVALID_OPTION,
        )
    return choice, None


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def parse_date(raw: str) -> date | None:
    """
    Parse a strict ``YYYY-MM-DD`` string, returning None on any other shape.
    """

    text = raw.strip()
    if not _DATE_SHAPE.match(text):
        return None
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year.
        return start.replace(year=start.year + years, day=28)


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def fold_custom_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """
    Fold flattened ``custom_fields.<name>`` keys into one nested mapping.
    """

    folded: dict[str, Any] = {}
    custom: dict[str, Any] = {}
    prefix = f"{CUSTOM_FIELDS_KEY}."
    for key, value in record.items():
        if key.startswith(prefix):
            if value is not None:
                custom[key[len(prefix):]] = value
            continue
        folded[key] = value
    if custom:
        folded[CUSTOM_FIELDS_KEY] = custom
    return folded


def has_error(errors: Sequence[FieldError], field_name: str) -> bool:
    return any(error.field == field_name for error in errors)
