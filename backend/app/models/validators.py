"""Model-level validation utilities for data integrity.

Reusable ``@validates`` helpers that reject invalid values at the ORM level,
whichever route or service writes them.
"""

import re
from decimal import Decimal

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def non_negative(key: str, value):
    """Validate that a numeric value is >= 0."""
    if value is not None and _as_decimal(value) < 0:
        raise ValueError(f"{key} cannot be negative, got {value}")
    return value


def positive(key: str, value):
    """Validate that a numeric value is > 0."""
    if value is not None and _as_decimal(value) <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def rating_score(key: str, value):
    """Validate that a rating value is between 0 and 5."""
    if value is not None:
        v = float(value)
        if v < 0 or v > 5:
            raise ValueError(f"{key} must be between 0 and 5, got {value}")
    return value


def validate_list(key: str, value):
    """Validate that a JSON column value is a list (or None)."""
    if value is not None and not isinstance(value, list):
        raise ValueError(f"{key} must be a list, got {type(value).__name__}")
    return value


def validate_dict(key: str, value):
    """Validate that a JSON column value is a dict (or None)."""
    if value is not None and not isinstance(value, dict):
        raise ValueError(f"{key} must be a dict, got {type(value).__name__}")
    return value


def month_string(key: str, value):
    """Validate a ``YYYY-MM`` payroll month."""
    if value is not None and not MONTH_PATTERN.match(value):
        raise ValueError(f"{key} must look like YYYY-MM, got {value!r}")
    return value
