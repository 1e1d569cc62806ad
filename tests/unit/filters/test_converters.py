"""Unit tests for stored filter converters."""

import pytest

from rowlogic.core.exceptions import InvalidFilterError
from rowlogic.filters.converters import db_filters_to_filter_tree, filter_configs_to_filter_tree
from rowlogic.schemas.filter import Combinator, FilterCondition, FilterGroup, FilterOperator


class TestDbFiltersToFilterTree:
    """Tests for db_filters_to_filter_tree()."""

    def test_no_filters(self):
        """Test that no stored filters give an empty tree."""
        assert db_filters_to_filter_tree([]) == FilterGroup()

    def test_ungrouped_filters(self):
        """Test ungrouped filters form a single AND group ordered by order_index."""
        tree = db_filters_to_filter_tree(
            [
                {"field_name": "Priority", "operator": "gt", "value": 2, "order_index": 1},
                {"field_name": "Status", "operator": "equals", "value": "done", "order_index": 0},
            ]
        )
        assert tree.combinator is Combinator.AND
        assert [c.field for c in tree.conditions()] == ["Status", "Priority"]

    def test_single_group_is_root(self):
        """Test that one filter group becomes the root with its condition type."""
        tree = db_filters_to_filter_tree(
            [
                {"field_name": "A", "operator": "equals", "value": "x", "filter_group_id": "g1"},
                {"field_name": "B", "operator": "equals", "value": "y", "filter_group_id": "g1"},
            ],
            [{"id": "g1", "condition_type": "OR"}],
        )
        assert tree.combinator is Combinator.OR
        assert len(tree.children) == 2

    def test_groups_and_ungrouped_are_anded(self):
        """Test several groups are combined with AND in group order."""
        tree = db_filters_to_filter_tree(
            [
                {"field_name": "A", "operator": "equals", "value": 1, "filter_group_id": "g2"},
                {"field_name": "B", "operator": "equals", "value": 2, "filter_group_id": "g1"},
                {"field_name": "C", "operator": "is_empty", "value": ""},
            ],
            [
                {"id": "g2", "condition_type": "OR", "order_index": 1},
                {"id": "g1", "condition_type": "AND", "order_index": 0},
            ],
        )
        assert tree.combinator is Combinator.AND
        assert [c.field for c in tree.conditions()] == ["B", "A", "C"]
        assert all(isinstance(child, FilterGroup) for child in tree.children)
        assert tree.children[1].combinator is Combinator.OR

    def test_empty_value_becomes_none(self):
        """Test that stored empty-string values read as no value."""
        tree = db_filters_to_filter_tree([{"field_id": "C", "operator": "is_empty", "value": ""}])
        assert tree.children[0] == FilterCondition(field="C", operator=FilterOperator.IS_EMPTY)

    def test_unknown_operator(self):
        """Test that unknown stored operators raise InvalidFilterError."""
        with pytest.raises(InvalidFilterError):
            db_filters_to_filter_tree([{"field_name": "A", "operator": "bogus"}])


class TestFilterConfigsToFilterTree:
    """Tests for filter_configs_to_filter_tree()."""

    def test_configs(self):
        """Test flat configs become one group."""
        tree = filter_configs_to_filter_tree(
            [
                {"field": "Status", "operator": "equal", "value": "done"},
                {"field": "Due", "operator": "date_before", "value": "2024-01-01"},
            ],
            combinator="OR",
        )
        assert tree.combinator is Combinator.OR
        assert [c.operator for c in tree.conditions()] == [
            FilterOperator.EQUALS,
            FilterOperator.BEFORE,
        ]

    def test_no_configs(self):
        """Test an empty config list gives an empty tree."""
        assert filter_configs_to_filter_tree([]).is_empty
