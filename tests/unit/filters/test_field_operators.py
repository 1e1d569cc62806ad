"""Unit tests for field-aware filter operators."""

import pytest

from rowlogic.filters.field_operators import (
    get_default_operator_for_field_type,
    get_operators_for_field_type,
    is_operator_valid_for_field,
)
from rowlogic.schemas.field import FieldType
from rowlogic.schemas.filter import FilterOperator


class TestFieldOperators:
    """Tests for per-field-type operator lists."""

    def test_text_operators(self):
        """Test text fields offer text matching operators."""
        values = [option.value for option in get_operators_for_field_type("text")]
        assert FilterOperator.CONTAINS in values
        assert FilterOperator.STARTS_WITH in values
        assert FilterOperator.GREATER_THAN not in values

    @pytest.mark.parametrize("field_type", ["number", "currency", "percent", "rating"])
    def test_numeric_operators(self, field_type):
        """Test numeric field types offer comparisons."""
        assert is_operator_valid_for_field(field_type, FilterOperator.GREATER_THAN)
        assert is_operator_valid_for_field(field_type, "in_range")

    def test_date_operators(self):
        """Test date fields offer day operators."""
        assert is_operator_valid_for_field(FieldType.DATE, FilterOperator.BEFORE)
        assert not is_operator_valid_for_field("date", FilterOperator.CONTAINS)

    def test_select_membership(self):
        """Test select fields offer membership operators with multi-value input."""
        options = {o.value: o for o in get_operators_for_field_type("single_select")}
        assert options[FilterOperator.IN].supports_multi_value
        assert not options[FilterOperator.EQUALS].supports_multi_value

    def test_valueless_operators(self):
        """Test is_empty does not require a value."""
        options = {o.value: o for o in get_operators_for_field_type("number")}
        assert options[FilterOperator.IS_EMPTY].requires_value is False
        assert options[FilterOperator.EQUALS].requires_value is True

    def test_checkbox(self):
        """Test checkbox fields only offer equality."""
        values = [o.value for o in get_operators_for_field_type("checkbox")]
        assert values == [FilterOperator.EQUALS, FilterOperator.NOT_EQUALS]

    def test_unknown_type_gets_basic_set(self):
        """Test unknown field types get equality and emptiness operators."""
        values = [o.value for o in get_operators_for_field_type("hologram")]
        assert FilterOperator.EQUALS in values
        assert FilterOperator.IS_EMPTY in values

    def test_default_operator(self):
        """Test the default operator per field type."""
        assert get_default_operator_for_field_type("text") is FilterOperator.CONTAINS
        assert get_default_operator_for_field_type("number") is FilterOperator.EQUALS
        assert get_default_operator_for_field_type("date") is FilterOperator.ON
        assert get_default_operator_for_field_type("multi_select") is FilterOperator.CONTAINS
