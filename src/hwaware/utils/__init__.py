"""Utility modules for hwaware."""

from hwaware.utils.validation import (
    ValidationError,
    quote_sql_identifier,
    split_qualified_name,
    validate_sql_identifier,
)

__all__ = [
    "ValidationError",
    "quote_sql_identifier",
    "split_qualified_name",
    "validate_sql_identifier",
]
