"""Filter tree schemas.

The canonical filter model shared by grid filtering, automation conditions
and KPI expressions: a tree of AND/OR groups whose leaves are
``field / operator / value`` conditions. Use
:func:`rowlogic.filters.normalize.normalize_filter_tree` to build one from
legacy or loosely shaped input.
"""

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class FilterOperator(str, Enum):
    """Filter operators."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    ON = "on"
    BEFORE = "before"
    AFTER = "after"
    IN_RANGE = "in_range"
    IN = "in"
    NOT_IN = "not_in"

    # Reachable through legacy aliases
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    ON_OR_BEFORE = "on_or_before"
    ON_OR_AFTER = "on_or_after"


# Operators that ignore the condition value
VALUELESS_OPERATORS = frozenset({FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY})


class Combinator(str, Enum):
    """Group combinator."""

    AND = "AND"
    OR = "OR"


# =============================================================================
# Filter Tree Schemas
# =============================================================================


class FilterCondition(BaseModel):
    """A single filter condition."""

    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., min_length=1, description="Field name or id to filter on")
    operator: FilterOperator = Field(..., description="Filter operator")
    value: Any = Field(default=None, description="Literal value or dynamic placeholder")


class FilterGroup(BaseModel):
    """AND/OR group of conditions and nested groups. An empty group matches everything."""

    model_config = ConfigDict(extra="forbid")

    combinator: Combinator = Field(default=Combinator.AND)
    children: list[Union[FilterCondition, "FilterGroup"]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.children

    def conditions(self) -> list[FilterCondition]:
        """All leaf conditions, depth first."""
        leaves: list[FilterCondition] = []
        for child in self.children:
            if isinstance(child, FilterGroup):
                leaves.extend(child.conditions())
            else:
                leaves.append(child)
        return leaves


FilterGroup.model_rebuild()

FilterNode = Union[FilterCondition, FilterGroup]
