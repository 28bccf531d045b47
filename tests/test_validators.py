"""
Unit tests for validation utilities.
"""

import math
import pytest
from datetime import datetime, timezone

from echocards.models.card import CardState
from echocards.utils.validators import DataValidator, ValidationError


class TestIsNumber:
    """Test numeric checks used for scheduler fields."""

    @pytest.mark.parametrize("value", [0, 3, -1, 2.5, 10 ** 30])
    def test_numbers(self, value):
        assert DataValidator.is_number(value)

    @pytest.mark.parametrize("value", [True, False, None, "5", math.nan, math.inf, [], {}])
    def test_non_numbers(self, value):
        assert not DataValidator.is_number(value)


class TestParseTimestamp:
    """Test loose timestamp parsing."""

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 1, 12, 0, 0)
        assert DataValidator.parse_timestamp(value) is value

    def test_iso_string_with_z(self):
        parsed = DataValidator.parse_timestamp("2024-01-01T00:00:00.000Z")
        assert parsed == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_iso_string_with_offset(self):
        parsed = DataValidator.parse_timestamp("2024-03-05T10:30:00+00:00")
        assert parsed == datetime(2024, 3, 5, 10, 30, tzinfo=timezone.utc)

    def test_date_only_string(self):
        parsed = DataValidator.parse_timestamp("2024-01-15")
        assert parsed.year == 2024 and parsed.month == 1 and parsed.day == 15

    def test_epoch_milliseconds(self):
        parsed = DataValidator.parse_timestamp(1704067200000)
        assert parsed == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["not-a-date", "", "   ", None, True, [], {}])
    def test_invalid_values(self, value):
        assert DataValidator.parse_timestamp(value) is None


class TestDataValidator:
    """Test raising validators."""

    def test_validate_datetime_valid(self):
        result = DataValidator.validate_datetime("2024-01-01T00:00:00Z", "dueDate")
        assert result == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_validate_datetime_none(self):
        with pytest.raises(ValidationError, match="dueDate cannot be None"):
            DataValidator.validate_datetime(None, "dueDate")

    def test_validate_datetime_invalid(self):
        with pytest.raises(ValidationError, match="dueDate is not a valid timestamp"):
            DataValidator.validate_datetime("garbage", "dueDate")

    def test_validate_enum_accepts_value_and_member(self):
        assert DataValidator.validate_enum("REVIEW", CardState, "state") == CardState.REVIEW
        assert DataValidator.validate_enum(CardState.NEW, CardState, "state") == CardState.NEW

    def test_validate_enum_invalid(self):
        with pytest.raises(ValidationError, match="state must be one of"):
            DataValidator.validate_enum("INVALID", CardState, "state")

    def test_validate_dict(self):
        assert DataValidator.validate_dict({"a": 1}, "deck") == {"a": 1}
        with pytest.raises(ValidationError, match="deck must be a dictionary"):
            DataValidator.validate_dict(["a"], "deck")
