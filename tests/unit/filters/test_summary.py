"""Unit tests for filter summaries."""

from rowlogic.filters.summary import EMPTY_SUMMARY, generate_condition_summary
from rowlogic.formula import dates


class TestConditionSummary:
    """Tests for generate_condition_summary()."""

    def test_empty_tree(self):
        """Test an empty tree runs every time."""
        assert generate_condition_summary(None) == EMPTY_SUMMARY
        assert generate_condition_summary([], table_name="Task") == "Run every time"

    def test_conditions_with_table_name(self, task_fields):
        """Test the created-record prefix and field name resolution."""
        summary = generate_condition_summary(
            [
                {"field_id": "fld_status", "operator": "equals", "value": "Approved"},
                {"field_id": "fld_owner", "operator": "is_not_empty"},
            ],
            task_fields,
            table_name="Briefing",
        )
        assert summary == (
            "When a Briefing is created AND Status is Approved AND Owner is not empty"
        )

    def test_nested_groups(self):
        """Test nested groups are parenthesized."""
        summary = generate_condition_summary(
            {
                "combinator": "AND",
                "children": [
                    {"field": "Priority", "operator": "gt", "value": 2},
                    {
                        "combinator": "OR",
                        "children": [
                            {"field": "Done", "operator": "equals", "value": True},
                            {"field": "Due", "operator": "on", "value": dates.TODAY},
                        ],
                    },
                ],
            }
        )
        assert summary == "Priority is greater than 2 AND (Done is checked OR Due is today)"

    def test_range_value(self):
        """Test range values read as 'a and b'."""
        summary = generate_condition_summary(
            {"field": "Due", "operator": "in_range", "value": {"start": "2024-01-01", "end": "2024-01-31"}}
        )
        assert summary == "Due is within 2024-01-01 and 2024-01-31"
