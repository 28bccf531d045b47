"""
Validation utilities for data integrity checks across the application.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pandas as pd


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


class DataValidator:
    """Utility class for data validation operations."""

    @staticmethod
    def is_number(value: Any) -> bool:
        """True for ints and finite floats; booleans are not numbers here."""
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        return isinstance(value, float) and math.isfinite(value)

    @staticmethod
    def parse_timestamp(value: Any) -> Optional[datetime]:
        """
        Parse a loosely typed timestamp into a datetime.

        Accepts datetime objects, ISO-8601 strings (including a trailing ``Z``),
        other date strings pandas understands, and epoch milliseconds.

        Returns:
            The parsed datetime, or None if the value is not a valid timestamp
        """
        if isinstance(value, datetime):
            return value

        if DataValidator.is_number(value):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None

        if not isinstance(value, str) or not value.strip():
            return None

        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            pass

        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
        if pd.isna(parsed):
            return None
        return parsed.to_pydatetime()

    @staticmethod
    def validate_datetime(value: Any, field_name: str) -> datetime:
        """Validate datetime field."""
        if value is None:
            raise ValidationError(f"{field_name} cannot be None")

        parsed = DataValidator.parse_timestamp(value)
        if parsed is None:
            raise ValidationError(f"{field_name} is not a valid timestamp: {value!r}")

        return parsed

    @staticmethod
    def validate_enum(value: Any, enum_class: type, field_name: str):
        """Validate enum field."""
        if isinstance(value, enum_class):
            return value

        try:
            return enum_class(value)
        except ValueError:
            valid_values = [e.value for e in enum_class]
            raise ValidationError(f"{field_name} must be one of {valid_values}, got {value!r}")

    @staticmethod
    def validate_dict(value: Any, field_name: str) -> Dict:
        """Validate dictionary field."""
        if not isinstance(value, dict):
            raise ValidationError(f"{field_name} must be a dictionary, got {type(value)}")

        return value
