"""Unit tests for formula values and date helpers."""

from datetime import date, datetime, timedelta, timezone

from rowlogic.formula import dates
from rowlogic.formula.values import (
    DIV_ZERO_ERROR,
    NAME_ERROR,
    VALUE_ERROR,
    first_error,
    is_error,
    is_truthy,
    make_number,
    serialize_value,
    to_display_value,
    to_number,
    to_text,
)


class TestValues:
    """Tests for value coercion helpers."""

    def test_truthiness(self):
        """Test formula truthiness rules."""
        assert not is_truthy(None)
        assert not is_truthy("")
        assert not is_truthy(0)
        assert not is_truthy(False)
        assert not is_truthy(VALUE_ERROR)
        assert is_truthy("0")
        assert is_truthy(-1)

    def test_to_number_lenient_and_strict(self):
        """Test prefix coercion versus strict coercion."""
        assert to_number("3.5kg") == 3.5
        assert to_number("3.5kg", strict=True) is None
        assert to_number(" 42 ", strict=True) == 42
        assert to_number(True) == 1
        assert to_number(None) is None

    def test_make_number(self):
        """Test integral floats become ints and non-finite become #VALUE!."""
        assert make_number(4.0) == 4 and isinstance(make_number(4.0), int)
        assert make_number(float("inf")) == VALUE_ERROR

    def test_to_text(self):
        """Test stringification of formula values."""
        assert to_text(None) == ""
        assert to_text(True) == "TRUE"
        assert to_text(2.0) == "2"
        assert to_text(datetime(2024, 1, 2)) == "2024-01-02"
        assert to_text(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
        assert to_text(["a", None, "b"]) == "a, b"

    def test_first_error(self):
        """Test the leftmost error is returned."""
        assert first_error(1, NAME_ERROR, DIV_ZERO_ERROR) == NAME_ERROR
        assert first_error(1, "x") is None

    def test_error_sentinels(self):
        """Test conversion of errors to string sentinels."""
        assert to_display_value(DIV_ZERO_ERROR) == "#DIV/0!"
        assert to_display_value(5) == 5
        assert is_error("#VALUE!")
        assert is_error(NAME_ERROR)
        assert not is_error("value")

    def test_serialize_value(self):
        """Test JSON-friendly serialization."""
        assert serialize_value(datetime(2024, 1, 2, 3, 4)) == "2024-01-02T03:04:00"
        assert serialize_value(VALUE_ERROR) == "#VALUE!"
        assert serialize_value([date(2024, 1, 1), None]) == ["2024-01-01", None]


class TestDates:
    """Tests for the shared date helpers."""

    def test_to_datetime_formats(self):
        """Test parsing of supported date representations."""
        assert dates.to_datetime("2024-01-02") == datetime(2024, 1, 2)
        assert dates.to_datetime("2024-01-02 10:30") == datetime(2024, 1, 2, 10, 30)
        assert dates.to_datetime(date(2024, 1, 2)) == datetime(2024, 1, 2)
        assert dates.to_datetime("not a date") is None
        assert dates.to_datetime(20240102) is None

    def test_aware_values_become_local(self):
        """Test timezone-aware values are converted to naive local time."""
        aware = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)
        expected = aware.astimezone().replace(tzinfo=None)
        assert dates.to_datetime(aware) == expected
        assert dates.to_datetime("2024-01-02T12:00:00Z") == expected

    def test_resolve_dynamic_value(self, fixed_now):
        """Test placeholders resolve to date-only strings."""
        assert dates.resolve_dynamic_value(dates.TODAY) == "2024-01-17"
        assert dates.resolve_dynamic_value(dates.YESTERDAY) == "2024-01-16"
        assert dates.resolve_dynamic_value(dates.TOMORROW) == "2024-01-18"
        assert dates.resolve_dynamic_value("2020-05-05") == "2020-05-05"

    def test_compare_day_uses_whole_days(self):
        """Test late-evening timestamps still belong to their day."""
        day = date(2024, 1, 1)
        assert dates.compare_day("2024-01-01T23:59:59", day) == 0
        assert dates.compare_day("2023-12-31T23:59:59", day) == -1
        assert dates.compare_day(datetime(2024, 1, 1) + timedelta(days=1), day) == 1
        assert dates.compare_day(None, day) is None
