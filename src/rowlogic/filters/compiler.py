"""Filter tree to formula compiler.

Renders a canonical filter tree as formula text so that grid filters,
automation conditions and KPI expressions are all decided by the one
formula evaluator.

Rendering rules:

- Groups: children joined by ``AND``/``OR``, each child parenthesized. A
  single-child group renders as just the child; an empty nested group is
  ``TRUE``; an empty root compiles to ``""``.
- Fields are always referenced with braces: ``{Field Name}``.
- Date conditions compare against local day boundaries, so ``on`` a day
  means ``>=`` its midnight and ``<`` the next midnight. Dynamic
  placeholders become ``TODAY()`` arithmetic evaluated at evaluation time.
- Text matching (``contains``, ``starts_with``, ...) is case-insensitive.
- Multi-value fields match whole items of their ``", "``-joined text.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

from rowlogic.core.exceptions import InvalidFilterError
from rowlogic.filters.normalize import normalize_filter_tree
from rowlogic.formula import dates
from rowlogic.formula.values import format_number, to_number, to_text
from rowlogic.schemas.field import FieldDescriptor, find_field, to_field_descriptors
from rowlogic.schemas.filter import FilterCondition, FilterGroup, FilterOperator

_DATE_COMPARISONS = {
    FilterOperator.EQUALS: FilterOperator.ON,
    FilterOperator.GREATER_THAN: FilterOperator.AFTER,
    FilterOperator.LESS_THAN: FilterOperator.BEFORE,
    FilterOperator.GREATER_THAN_OR_EQUAL: FilterOperator.ON_OR_AFTER,
    FilterOperator.LESS_THAN_OR_EQUAL: FilterOperator.ON_OR_BEFORE,
}

_COMPARISON_SYMBOLS = {
    FilterOperator.EQUALS: "=",
    FilterOperator.NOT_EQUALS: "<>",
    FilterOperator.GREATER_THAN: ">",
    FilterOperator.LESS_THAN: "<",
    FilterOperator.GREATER_THAN_OR_EQUAL: ">=",
    FilterOperator.LESS_THAN_OR_EQUAL: "<=",
}

_DAY_OPERATORS = frozenset(
    {
        FilterOperator.ON,
        FilterOperator.BEFORE,
        FilterOperator.AFTER,
        FilterOperator.ON_OR_BEFORE,
        FilterOperator.ON_OR_AFTER,
    }
)


# =============================================================================
# Literals
# =============================================================================


def escape_string(text: str) -> str:
    """Escape text for a double-quoted formula string literal."""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def quote(text: str) -> str:
    return f'"{escape_string(text)}"'


def format_literal(value: Any) -> str:
    """Render a Python value as a formula literal."""
    if value is None:
        return '""'
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return quote(str(value))
        return format_number(value)
    if isinstance(value, datetime):
        return quote(value.isoformat())
    if dates.is_dynamic_value(value):
        return f'DATETIME_FORMAT({_day_expression(value, 0)}, "YYYY-MM-DD")'
    return quote(to_text(value))


def field_reference(name: str) -> str:
    if "{" in name or "}" in name:
        raise InvalidFilterError(f"Field name cannot contain braces: {name!r}")
    return "{" + name + "}"


# =============================================================================
# Date bounds
# =============================================================================


def _day_expression(value: Any, extra_days: int) -> str | None:
    """
    Expression for midnight of the value's day plus ``extra_days``.

    Dynamic placeholders stay dynamic (``TODAY()``); concrete dates become
    ``YYYY-MM-DD`` literals. Returns None when the value is not a date or
    the shifted day falls outside the supported calendar.
    """
    if dates.is_dynamic_value(value):
        offset = dates.DYNAMIC_DAY_OFFSETS[value] + extra_days
        if offset == 0:
            return "TODAY()"
        return f'DATEADD(TODAY(), {offset}, "days")'

    day = dates.to_local_date(value)
    if day is None:
        return None
    try:
        shifted = day + timedelta(days=extra_days)
    except OverflowError:
        return None
    return quote(dates.to_date_only(shifted))


def _is_date_value(value: Any) -> bool:
    if isinstance(value, (date, datetime)) or dates.is_dynamic_value(value):
        return True
    return dates.is_date_only(value)


def _day_condition(ref: str, operator: FilterOperator, value: Any) -> str:
    start = _day_expression(value, 0)
    if start is None:
        # No usable date to compare with
        return "FALSE"
    if operator is FilterOperator.BEFORE:
        return f"{ref} < {start}"
    if operator is FilterOperator.ON_OR_AFTER:
        return f"{ref} >= {start}"

    next_start = _day_expression(value, 1)
    if next_start is None:
        return "FALSE"
    if operator is FilterOperator.ON:
        return f"({ref} >= {start}) AND ({ref} < {next_start})"
    if operator is FilterOperator.AFTER:
        return f"{ref} >= {next_start}"
    return f"{ref} < {next_start}"


def _range_bounds(value: Any) -> tuple[Any, Any]:
    if isinstance(value, dict):
        return value.get("start", value.get("from")), value.get("end", value.get("to"))
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise InvalidFilterError("Range value needs exactly two bounds", value)
        return value[0], value[1]
    # A single value is a one-day (or one-value) range
    return value, value


# =============================================================================
# Compiler
# =============================================================================


class FilterCompiler:
    """
    Compiles filter trees to formula text against a set of declared fields.

    Field ids in conditions are resolved to field names; conditions on
    undeclared fields compile as text comparisons.
    """

    def __init__(self, fields: Iterable[Any] | None = None):
        self.fields: list[FieldDescriptor] = to_field_descriptors(fields)

    def compile(self, tree: Any) -> str:
        """
        Compile a filter tree (any shape accepted by normalization).

        Returns:
            Formula text, or ``""`` for an empty tree

        Raises:
            InvalidFilterError: If the tree cannot be normalized or compiled
        """
        group = normalize_filter_tree(tree)
        if group.is_empty:
            return ""
        return self._compile_group(group)

    def _compile_node(self, node: FilterCondition | FilterGroup) -> str:
        if isinstance(node, FilterGroup):
            return self._compile_group(node)
        return self._compile_condition(node)

    def _compile_group(self, group: FilterGroup) -> str:
        if group.is_empty:
            return "TRUE"
        if len(group.children) == 1:
            return self._compile_node(group.children[0])
        parts = [f"({self._compile_node(child)})" for child in group.children]
        return f" {group.combinator.value} ".join(parts)

    def _compile_condition(self, condition: FilterCondition) -> str:
        field = find_field(self.fields, condition.field)
        name = field.name if field else condition.field
        return self.compile_condition(
            field_reference(name), condition.operator, condition.value, field
        )

    def compile_condition(
        self,
        ref: str,
        operator: FilterOperator,
        value: Any,
        field: FieldDescriptor | None = None,
    ) -> str:
        """Render one condition on the field reference ``ref``."""
        is_date = field is not None and field.is_date
        is_multi = field is not None and field.is_multi_value
        is_checkbox = field is not None and field.is_checkbox

        if operator is FilterOperator.IS_EMPTY:
            return f"LEN({ref}) = 0" if is_multi else f"ISBLANK({ref})"

        if operator is FilterOperator.IS_NOT_EMPTY:
            return f"NOT(LEN({ref}) = 0)" if is_multi else f"NOT(ISBLANK({ref}))"

        if operator is FilterOperator.IN or operator is FilterOperator.NOT_IN:
            return self._compile_membership(ref, operator, value, field)

        if operator is FilterOperator.IN_RANGE:
            return self._compile_range(ref, value, field)

        if operator in _DAY_OPERATORS:
            return _day_condition(ref, operator, value)

        # Comparisons on date fields with a date value use day boundaries
        if is_date and _is_date_value(value):
            if operator is FilterOperator.NOT_EQUALS:
                return f"NOT({_day_condition(ref, FilterOperator.ON, value)})"
            if operator in _DATE_COMPARISONS:
                return _day_condition(ref, _DATE_COMPARISONS[operator], value)

        if is_multi and operator in (
            FilterOperator.EQUALS,
            FilterOperator.CONTAINS,
            FilterOperator.NOT_EQUALS,
            FilterOperator.NOT_CONTAINS,
        ):
            item = ", " + to_text(value) + ", "
            items = f'", " & {ref} & ", "'
            if operator in (FilterOperator.CONTAINS, FilterOperator.NOT_CONTAINS):
                # contains ignores case, as on scalar fields
                found = f"FIND({quote(item.lower())}, LOWER({items}))"
            else:
                found = f"FIND({quote(item)}, {items})"
            if operator in (FilterOperator.EQUALS, FilterOperator.CONTAINS):
                return f"{found} > 0"
            return f"{found} = 0"

        if is_checkbox and operator in (FilterOperator.EQUALS, FilterOperator.NOT_EQUALS):
            symbol = _COMPARISON_SYMBOLS[operator]
            return f"{ref} {symbol} {format_literal(_checkbox_value(value))}"

        if operator is FilterOperator.CONTAINS:
            return f"{self._find_lower(ref, value)} > 0"
        if operator is FilterOperator.NOT_CONTAINS:
            return f"{self._find_lower(ref, value)} = 0"
        if operator is FilterOperator.STARTS_WITH:
            return f"{self._find_lower(ref, value)} = 1"
        if operator is FilterOperator.ENDS_WITH:
            needle = to_text(value).lower()
            if not needle:
                return "TRUE"
            return f'RIGHT(LOWER({ref} & ""), {len(needle)}) = {quote(needle)}'

        if operator in _COMPARISON_SYMBOLS:
            literal = self._comparison_literal(value, field)
            return f"{ref} {_COMPARISON_SYMBOLS[operator]} {literal}"

        raise InvalidFilterError(f"Unsupported filter operator: {operator!r}")

    def _find_lower(self, ref: str, value: Any) -> str:
        # `& ""` turns a blank field into "" so FIND never sees blank
        if dates.is_dynamic_value(value):
            needle = format_literal(value)
        else:
            needle = quote(to_text(value).lower())
        return f'FIND({needle}, LOWER({ref} & ""))'

    def _comparison_literal(self, value: Any, field: FieldDescriptor | None) -> str:
        if field is not None and field.is_numeric and isinstance(value, str):
            number = to_number(value, strict=True)
            if number is not None:
                return format_number(number)
        return format_literal(value)

    def _compile_membership(
        self, ref: str, operator: FilterOperator, value: Any, field: FieldDescriptor | None
    ) -> str:
        if value is None or value == "":
            items: list[Any] = []
        elif isinstance(value, (list, tuple, set)):
            items = list(value)
        elif isinstance(value, str):
            items = [part.strip() for part in value.split(",") if part.strip()]
        else:
            items = [value]

        parts = [self.compile_condition(ref, FilterOperator.EQUALS, item, field) for item in items]
        if operator is FilterOperator.IN:
            return f"OR({', '.join(parts)})" if parts else "FALSE"
        return f"NOT(OR({', '.join(parts)}))" if parts else "TRUE"

    def _compile_range(self, ref: str, value: Any, field: FieldDescriptor | None) -> str:
        start, end = _range_bounds(value)
        is_date = (field is not None and field.is_date) or any(
            _is_date_value(bound) for bound in (start, end) if bound not in (None, "")
        )

        parts: list[str] = []
        if start not in (None, ""):
            if is_date:
                parts.append(_day_condition(ref, FilterOperator.ON_OR_AFTER, start))
            else:
                parts.append(f"{ref} >= {self._comparison_literal(start, field)}")
        if end not in (None, ""):
            if is_date:
                parts.append(_day_condition(ref, FilterOperator.ON_OR_BEFORE, end))
            else:
                parts.append(f"{ref} <= {self._comparison_literal(end, field)}")

        if not parts:
            return "TRUE"
        if len(parts) == 1:
            return parts[0]
        return " AND ".join(f"({part})" for part in parts)


def _checkbox_value(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "checked")
    return bool(value)


def compile_filter_tree(tree: Any, fields: Iterable[Any] | None = None) -> str:
    """
    Compile a filter tree into formula text.

    Args:
        tree: Filter tree in any shape accepted by :func:`normalize_filter_tree`
        fields: Declared fields (descriptors, dicts or names)

    Returns:
        Formula text; ``""`` when the tree is empty

    Raises:
        InvalidFilterError: If the tree has an unrecognized shape or operator
    """
    return FilterCompiler(fields).compile(tree)
