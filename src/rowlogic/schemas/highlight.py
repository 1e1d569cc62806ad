"""Highlight (conditional formatting) rule schemas."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class HighlightOperator(str, Enum):
    """Highlight rule operators."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    LT = "lt"
    CONTAINS = "contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    DATE_BEFORE = "date_before"
    DATE_AFTER = "date_after"
    DATE_TODAY = "date_today"
    DATE_OVERDUE = "date_overdue"


class HighlightScope(str, Enum):
    """Where a matching rule's colors apply."""

    CELL = "cell"
    ROW = "row"
    GROUP = "group"


class HighlightRule(BaseModel):
    """A conditional formatting rule evaluated directly against a row."""

    field: str = Field(..., min_length=1, description="Field name or id")
    operator: HighlightOperator = Field(..., description="Comparison operator")
    value: Any = Field(default=None, description="Comparison value or dynamic placeholder")
    background_color: Optional[str] = Field(default=None, max_length=50)
    text_color: Optional[str] = Field(default=None, max_length=50)
    scope: HighlightScope = Field(default=HighlightScope.ROW)
    target_field: Optional[str] = Field(
        default=None, description="Field to color when scope is 'cell'"
    )

    def style(self) -> dict[str, str]:
        """CSS style for a match: ``backgroundColor`` and/or ``color``."""
        style: dict[str, str] = {}
        if self.background_color:
            style["backgroundColor"] = self.background_color
        if self.text_color:
            style["color"] = self.text_color
        return style
