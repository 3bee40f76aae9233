"""Input validation utilities for hwaware."""

import math
import re
from typing import Any

from hwaware.error_handling import ErrorCategory, HwAwareError


class ValidationError(HwAwareError):
    """Raised when validation fails."""

    category = ErrorCategory.VALIDATION


_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]{0,127}")


def validate_sql_identifier(name: str, context: str = "identifier") -> None:
    """Check that ``name`` is a bare SQL identifier of at most 128 characters.

    Raises:
        ValidationError: If the identifier is empty or malformed
    """
    if not name:
        raise ValidationError(f"Invalid {context}: cannot be empty")
    if not _IDENTIFIER.fullmatch(name):
        raise ValidationError(
            f"Invalid {context} '{name}': use at most 128 letters, digits "
            "or underscores, not starting with a digit"
        )


def split_qualified_name(name: str) -> tuple[str | None, str]:
    """Split ``schema.table`` into its parts, validating each one.

    Returns:
        (schema, table) where schema is None for unqualified names
    """
    parts = name.split(".")
    if len(parts) > 2:
        raise ValidationError(f"Invalid table name '{name}': too many qualifiers")

    for part in parts:
        validate_sql_identifier(part, context="table name")

    if len(parts) == 2:
        return parts[0], parts[1]
    return None, parts[0]


def quote_sql_identifier(name: str) -> str:
    """Quote a SQL identifier for safe use in DuckDB queries."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def validate_positive_int(value: Any, key: str, minimum: int = 1) -> int:
    """Validate an integer setting that must be at least ``minimum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ValidationError(f"{key} must be at least {minimum}, got {value}")
    return value


def validate_percentage(value: Any, key: str) -> float:
    """Validate a percentage setting in the range [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or not (0.0 <= value <= 100.0):
        raise ValidationError(f"{key} must be between 0 and 100, got {value}")
    return value


def validate_observation(size: Any, time_ms: Any) -> tuple[float, float]:
    """Validate one observed execution: a non-negative size and a positive time.

    Raises:
        ValidationError: If either value is non-numeric, non-finite or out of range
    """
    try:
        size, time_ms = float(size), float(time_ms)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Observation must be numeric, got size={size!r} time={time_ms!r}",
            original_error=e,
        ) from e
    if not (math.isfinite(size) and size >= 0):
        raise ValidationError(f"Invalid observation size {size}")
    if not (math.isfinite(time_ms) and time_ms > 0):
        raise ValidationError(f"Invalid observation time {time_ms}")
    return size, time_ms
