"""Converters from stored filter rows to the canonical filter tree.

Views store filters as rows (``field_name``, ``operator``, ``value``,
optional ``filter_group_id`` and ``order_index``) plus filter group rows
(``id``, ``condition_type``, ``order_index``). Filter blocks store a flat
list of ``{field, operator, value}`` configs.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from rowlogic.filters.normalize import normalize_filter_tree
from rowlogic.schemas.filter import Combinator, FilterGroup


def _order(item: Mapping[str, Any]) -> int:
    return item.get("order_index") or 0


def _condition(row: Mapping[str, Any]) -> dict[str, Any]:
    # Field names double as identifiers in stored filters
    field = row.get("field_name") or row.get("field_id") or row.get("field")
    value = row.get("value")
    return {"field": field, "operator": row.get("operator"), "value": None if value == "" else value}


def db_filters_to_filter_tree(
    filters: Iterable[Mapping[str, Any]],
    groups: Iterable[Mapping[str, Any]] = (),
) -> FilterGroup:
    """
    Build a filter tree from stored view filters and filter groups.

    Each group becomes a child group using its ``condition_type``; filters
    without a group form one AND group. Multiple groups are combined with
    AND; a single group is returned as the root.

    Raises:
        InvalidFilterError: If a stored filter has an unknown operator
    """
    filters = list(filters)
    if not filters:
        return FilterGroup()

    by_group: dict[Any, list[Mapping[str, Any]]] = {}
    ungrouped: list[Mapping[str, Any]] = []
    for row in filters:
        group_id = row.get("filter_group_id")
        if group_id:
            by_group.setdefault(group_id, []).append(row)
        else:
            ungrouped.append(row)

    nodes: list[dict[str, Any]] = []
    for group in sorted(groups, key=_order):
        rows = by_group.get(group.get("id"), [])
        if not rows:
            continue
        nodes.append(
            {
                "combinator": group.get("condition_type") or Combinator.AND.value,
                "children": [_condition(r) for r in sorted(rows, key=_order)],
            }
        )

    if ungrouped:
        nodes.append(
            {
                "combinator": Combinator.AND.value,
                "children": [_condition(r) for r in sorted(ungrouped, key=_order)],
            }
        )

    if not nodes:
        return FilterGroup()
    if len(nodes) == 1:
        return normalize_filter_tree(nodes[0])
    return normalize_filter_tree({"combinator": Combinator.AND.value, "children": nodes})


def filter_configs_to_filter_tree(
    configs: Iterable[Mapping[str, Any]],
    combinator: Combinator | str = Combinator.AND,
) -> FilterGroup:
    """
    Build a filter tree from a flat list of ``{field, operator, value}`` configs.

    Raises:
        InvalidFilterError: If a config has an unknown operator
    """
    children = [_condition(c) for c in configs]
    if not children:
        return FilterGroup()
    return normalize_filter_tree(
        {"combinator": getattr(combinator, "value", combinator), "children": children}
    )
