"""
app/validators package marker.
"""

from app.validators.manual_entry_validator import (
    CrossFieldRule,
    Derivation,
    ManualEntryValidator,
    fold_custom_fields,
    parse_date,
)
from app.validators.rules import (
    date_not_before,
    difference,
    greater_than_when,
    not_greater_than,
    required_when,
)

__all__ = [
    "CrossFieldRule",
    "Derivation",
    "ManualEntryValidator",
    "date_not_before",
    "difference",
    "fold_custom_fields",
    "greater_than_when",
    "not_greater_than",
    "parse_date",
    "required_when",
]
