"""Conditional formatting (highlight rule) evaluation.

Highlight rules are evaluated directly against a row rather than compiled
to formulas. Rules are checked in declaration order and the first match
wins. Date operators compare local calendar days, and dynamic values such
as ``__TODAY__`` resolve exactly as they do for compiled filters.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from rowlogic.formula import dates
from rowlogic.formula.values import to_number, to_text
from rowlogic.schemas.field import FieldDescriptor, find_field, to_field_descriptors
from rowlogic.schemas.highlight import HighlightOperator, HighlightRule

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and not value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "checked")
    return bool(value)


def _coerce_rule(rule: HighlightRule | Mapping[str, Any]) -> HighlightRule | None:
    if isinstance(rule, HighlightRule):
        return rule
    try:
        return HighlightRule.model_validate(rule)
    except ValidationError as e:
        logger.debug(f"Ignoring invalid highlight rule: {e.errors()[0]['msg']}")
        return None


def _row_value(row: Mapping[str, Any], rule: HighlightRule, field: FieldDescriptor) -> Any:
    value = row.get(rule.field)
    if value is None:
        value = row.get(field.name)
    return value


def _matches_day(value: Any, target: Any, expected: int) -> bool:
    day = dates.to_local_date(target)
    if day is None:
        return False
    return dates.compare_day(value, day) == expected


def evaluate_highlight_rule(
    rule: HighlightRule | Mapping[str, Any],
    row: Mapping[str, Any],
    fields: Iterable[Any],
) -> bool:
    """
    Check whether a single highlight rule matches a row.

    Args:
        rule: Rule model or dict
        row: Field name (or id) -> raw value
        fields: Declared fields; a rule on an unknown field never matches

    Returns:
        True if the rule matches
    """
    rule = _coerce_rule(rule)
    if rule is None:
        return False

    field = find_field(to_field_descriptors(fields), rule.field)
    if field is None:
        return False

    value = _row_value(row, rule, field)
    target = dates.resolve_dynamic_value(rule.value)
    op = rule.operator

    if op in (HighlightOperator.EQ, HighlightOperator.NEQ):
        if field.is_checkbox:
            equal = _to_bool(value) == _to_bool(target)
        else:
            equal = to_text(value) == to_text(target)
        return equal if op is HighlightOperator.EQ else not equal

    if op in (HighlightOperator.GT, HighlightOperator.LT):
        left = to_number(value, strict=True)
        right = to_number(target, strict=True)
        if left is None or right is None:
            return False
        return left > right if op is HighlightOperator.GT else left < right

    if op is HighlightOperator.CONTAINS:
        return to_text(target).lower() in to_text(value).lower()

    if op is HighlightOperator.IS_EMPTY:
        return _is_empty(value)

    if op is HighlightOperator.IS_NOT_EMPTY:
        return not _is_empty(value)

    if op is HighlightOperator.DATE_BEFORE:
        return _matches_day(value, target, -1)

    if op is HighlightOperator.DATE_AFTER:
        return _matches_day(value, target, 1)

    if op is HighlightOperator.DATE_TODAY:
        return dates.compare_day(value, dates.today()) == 0

    if op is HighlightOperator.DATE_OVERDUE:
        return dates.compare_day(value, dates.today()) == -1

    return False


def evaluate_highlight_rules(
    rules: Iterable[HighlightRule | Mapping[str, Any]] | None,
    row: Mapping[str, Any],
    fields: Iterable[Any],
) -> HighlightRule | None:
    """
    Return the first rule that matches the row, or None.

    Rules are evaluated in order, so priority is determined by list order.
    """
    descriptors = to_field_descriptors(fields)
    for rule in rules or ():
        coerced = _coerce_rule(rule)
        if coerced is not None and evaluate_highlight_rule(coerced, row, descriptors):
            return coerced
    return None


def get_formatting_style(rule: HighlightRule | None) -> dict[str, str]:
    """CSS style for a matched rule; empty when nothing matched."""
    return rule.style() if rule is not None else {}
