"""Human-readable summaries of filter trees.

Example: ``"When a Briefing is created AND Status is Approved AND Owner is
not empty"``.
"""

from collections.abc import Iterable
from typing import Any

from rowlogic.filters.normalize import normalize_filter_tree
from rowlogic.formula import dates
from rowlogic.formula.values import to_text
from rowlogic.schemas.field import find_field, to_field_descriptors
from rowlogic.schemas.filter import (
    VALUELESS_OPERATORS,
    FilterCondition,
    FilterGroup,
    FilterOperator,
)

EMPTY_SUMMARY = "Run every time"

OPERATOR_LABELS: dict[FilterOperator, str] = {
    FilterOperator.EQUALS: "is",
    FilterOperator.NOT_EQUALS: "is not",
    FilterOperator.CONTAINS: "contains",
    FilterOperator.NOT_CONTAINS: "does not contain",
    FilterOperator.IS_EMPTY: "is empty",
    FilterOperator.IS_NOT_EMPTY: "is not empty",
    FilterOperator.GREATER_THAN: "is greater than",
    FilterOperator.LESS_THAN: "is less than",
    FilterOperator.GREATER_THAN_OR_EQUAL: "is greater than or equal to",
    FilterOperator.LESS_THAN_OR_EQUAL: "is less than or equal to",
    FilterOperator.ON: "is",
    FilterOperator.BEFORE: "is before",
    FilterOperator.AFTER: "is after",
    FilterOperator.ON_OR_BEFORE: "is on or before",
    FilterOperator.ON_OR_AFTER: "is on or after",
    FilterOperator.IN_RANGE: "is within",
    FilterOperator.IN: "is any of",
    FilterOperator.NOT_IN: "is none of",
    FilterOperator.STARTS_WITH: "starts with",
    FilterOperator.ENDS_WITH: "ends with",
}

_DYNAMIC_LABELS = {
    dates.TODAY: "today",
    dates.YESTERDAY: "yesterday",
    dates.TOMORROW: "tomorrow",
}


def _value_label(value: Any) -> str:
    if value is None:
        return "empty"
    if isinstance(value, bool):
        return "checked" if value else "unchecked"
    if dates.is_dynamic_value(value):
        return _DYNAMIC_LABELS[value]
    if isinstance(value, dict) and ("start" in value or "end" in value):
        return f"{_value_label(value.get('start'))} and {_value_label(value.get('end'))}"
    return to_text(value)


def _condition_summary(condition: FilterCondition, fields: list) -> str:
    field = find_field(fields, condition.field)
    name = field.name if field else condition.field
    label = OPERATOR_LABELS[condition.operator]
    if condition.operator in VALUELESS_OPERATORS:
        return f"{name} {label}"
    return f"{name} {label} {_value_label(condition.value)}"


def _group_summary(group: FilterGroup, fields: list) -> str:
    parts = []
    for child in group.children:
        if isinstance(child, FilterGroup):
            inner = _group_summary(child, fields)
            if inner:
                parts.append(f"({inner})")
        else:
            parts.append(_condition_summary(child, fields))
    return f" {group.combinator.value} ".join(parts)


def generate_condition_summary(
    tree: Any,
    fields: Iterable[Any] | None = None,
    table_name: str | None = None,
) -> str:
    """
    Summarize a filter tree for display.

    Args:
        tree: Filter tree in any shape accepted by normalization
        fields: Declared fields, used to show names for field ids
        table_name: When given, prefixes ``"When a <table> is created"``

    Returns:
        Summary text; ``"Run every time"`` for an empty tree
    """
    group = normalize_filter_tree(tree)
    if group.is_empty:
        return EMPTY_SUMMARY

    parts = []
    if table_name:
        parts.append(f"When a {table_name} is created")
    conditions = _group_summary(group, to_field_descriptors(fields))
    if conditions:
        parts.append(conditions)

    return " AND ".join(parts) if parts else EMPTY_SUMMARY
