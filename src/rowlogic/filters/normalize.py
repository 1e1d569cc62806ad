"""Filter tree normalization.

Lifts every filter shape the platform has stored over time into the
canonical :class:`FilterGroup` tree:

- ``None``, ``""``, ``[]`` and ``{}``: empty AND group (matches everything)
- a JSON string holding any of the shapes below
- a single condition (model or dict)
- a flat list of conditions, each with an optional ``conjunction``
  (``and`` items are all required, ``or`` items need any one to match)
- a group dict keyed ``children``, ``conditions`` or ``filters`` with a
  ``combinator`` / ``operator`` / ``conjunction`` / ``condition_type``

Conditions may name their field with ``field``, ``field_id`` or
``field_name``; legacy operator names are mapped to canonical ones.
"""

import logging
from typing import Any

import orjson
from pydantic import ValidationError

from rowlogic.core.exceptions import InvalidFilterError
from rowlogic.formula import dates
from rowlogic.schemas.filter import Combinator, FilterCondition, FilterGroup, FilterOperator

logger = logging.getLogger(__name__)

# Legacy / alternate operator names -> canonical operator
OPERATOR_ALIASES: dict[str, FilterOperator] = {
    "equal": FilterOperator.EQUALS,
    "eq": FilterOperator.EQUALS,
    "=": FilterOperator.EQUALS,
    "is": FilterOperator.EQUALS,
    "not_equal": FilterOperator.NOT_EQUALS,
    "neq": FilterOperator.NOT_EQUALS,
    "!=": FilterOperator.NOT_EQUALS,
    "<>": FilterOperator.NOT_EQUALS,
    "is_not": FilterOperator.NOT_EQUALS,
    "gt": FilterOperator.GREATER_THAN,
    ">": FilterOperator.GREATER_THAN,
    "lt": FilterOperator.LESS_THAN,
    "<": FilterOperator.LESS_THAN,
    "gte": FilterOperator.GREATER_THAN_OR_EQUAL,
    ">=": FilterOperator.GREATER_THAN_OR_EQUAL,
    "lte": FilterOperator.LESS_THAN_OR_EQUAL,
    "<=": FilterOperator.LESS_THAN_OR_EQUAL,
    "date_equal": FilterOperator.ON,
    "date_is": FilterOperator.ON,
    "date_before": FilterOperator.BEFORE,
    "is_before": FilterOperator.BEFORE,
    "date_after": FilterOperator.AFTER,
    "is_after": FilterOperator.AFTER,
    "date_on_or_before": FilterOperator.ON_OR_BEFORE,
    "is_on_or_before": FilterOperator.ON_OR_BEFORE,
    "date_on_or_after": FilterOperator.ON_OR_AFTER,
    "is_on_or_after": FilterOperator.ON_OR_AFTER,
    "date_range": FilterOperator.IN_RANGE,
    "between": FilterOperator.IN_RANGE,
    "is_within": FilterOperator.IN_RANGE,
    "is_any_of": FilterOperator.IN,
    "is_none_of": FilterOperator.NOT_IN,
    "empty": FilterOperator.IS_EMPTY,
    "not_empty": FilterOperator.IS_NOT_EMPTY,
    "does_not_contain": FilterOperator.NOT_CONTAINS,
}

# Operators that imply a fixed value
_IMPLIED_VALUES: dict[str, tuple[FilterOperator, str]] = {
    "is_today": (FilterOperator.ON, dates.TODAY),
    "date_today": (FilterOperator.ON, dates.TODAY),
    "date_overdue": (FilterOperator.BEFORE, dates.TODAY),
}

_FIELD_KEYS = ("field", "field_id", "field_name")
_CHILDREN_KEYS = ("children", "conditions", "filters")
_COMBINATOR_KEYS = ("combinator", "operator", "conjunction", "condition_type", "type")


def normalize_operator(operator: Any) -> tuple[FilterOperator, Any]:
    """
    Map an operator name to its canonical operator.

    Returns:
        Tuple of (operator, implied_value). ``implied_value`` is None unless
        the operator fixes its own value (e.g. ``is_today``).

    Raises:
        InvalidFilterError: If the operator is not recognized
    """
    if isinstance(operator, FilterOperator):
        return operator, None
    name = str(getattr(operator, "value", operator) or "").strip()
    key = name.lower()

    try:
        return FilterOperator(key), None
    except ValueError:
        pass
    if key in OPERATOR_ALIASES:
        return OPERATOR_ALIASES[key], None
    if key in _IMPLIED_VALUES:
        return _IMPLIED_VALUES[key]
    raise InvalidFilterError(f"Unknown filter operator: {name!r}", operator)


def _parse_combinator(value: Any) -> Combinator | None:
    text = str(getattr(value, "value", value) or "").strip().upper()
    if text in ("AND", "OR"):
        return Combinator(text)
    return None


def _is_group_dict(raw: dict[str, Any]) -> bool:
    return any(key in raw for key in _CHILDREN_KEYS)


def _group_combinator(raw: dict[str, Any]) -> Combinator | None:
    for key in _COMBINATOR_KEYS:
        if key in raw:
            combinator = _parse_combinator(raw[key])
            if combinator is not None:
                return combinator
    return None


def _normalize_condition(raw: Any) -> FilterCondition:
    if isinstance(raw, FilterCondition):
        return raw
    if not isinstance(raw, dict):
        raise InvalidFilterError("Filter condition must be an object", raw)

    field = next((raw[key] for key in _FIELD_KEYS if raw.get(key) not in (None, "")), None)
    if field is None:
        raise InvalidFilterError("Filter condition is missing a field", raw)

    operator, implied = normalize_operator(raw.get("operator", raw.get("op")))
    value = raw.get("value")
    if implied is not None and value in (None, ""):
        value = implied

    try:
        return FilterCondition(field=str(field), operator=operator, value=value)
    except ValidationError as e:
        raise InvalidFilterError(f"Invalid filter condition: {e.errors()[0]['msg']}", raw)


def _normalize_node(raw: Any) -> FilterCondition | FilterGroup:
    if isinstance(raw, (FilterCondition, FilterGroup)):
        return raw
    if isinstance(raw, list):
        return _normalize_flat_list(raw)
    if isinstance(raw, dict) and _is_group_dict(raw):
        return _normalize_group_dict(raw)
    return _normalize_condition(raw)


def _normalize_group_dict(raw: dict[str, Any]) -> FilterGroup:
    children = next((raw[key] for key in _CHILDREN_KEYS if key in raw), None) or []
    if not isinstance(children, list):
        raise InvalidFilterError("Filter group children must be a list", raw)

    combinator = _group_combinator(raw)
    if combinator is None:
        # No explicit combinator: children may carry per-item conjunctions
        return _normalize_flat_list(children)

    return FilterGroup(combinator=combinator, children=[_normalize_node(c) for c in children])


def _normalize_flat_list(items: list[Any]) -> FilterGroup:
    """Legacy flat list: AND items all required, OR items need any match."""
    and_nodes: list[FilterCondition | FilterGroup] = []
    or_nodes: list[FilterCondition | FilterGroup] = []

    for item in items:
        node = _normalize_node(item)
        conjunction = None
        if isinstance(item, dict) and not _is_group_dict(item):
            conjunction = _parse_combinator(item.get("conjunction"))
        if conjunction is Combinator.OR:
            or_nodes.append(node)
        else:
            and_nodes.append(node)

    if not or_nodes:
        return FilterGroup(combinator=Combinator.AND, children=and_nodes)
    if not and_nodes:
        return FilterGroup(combinator=Combinator.OR, children=or_nodes)
    return FilterGroup(
        combinator=Combinator.AND,
        children=[*and_nodes, FilterGroup(combinator=Combinator.OR, children=or_nodes)],
    )


def normalize_filter_tree(raw: Any) -> FilterGroup:
    """
    Normalize any supported filter shape into a canonical filter tree.

    Idempotent: normalizing a normalized tree returns an equal tree.

    Raises:
        InvalidFilterError: If the input has an unrecognized shape or operator
    """
    if raw is None or raw == "" or raw == [] or raw == {}:
        return FilterGroup()

    if isinstance(raw, (str, bytes)):
        try:
            raw = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise InvalidFilterError(f"Filter is not valid JSON: {e}", raw)
        return normalize_filter_tree(raw)

    node = _normalize_node(raw)
    if isinstance(node, FilterCondition):
        return FilterGroup(combinator=Combinator.AND, children=[node])
    return node
