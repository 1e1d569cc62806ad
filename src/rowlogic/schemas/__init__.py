"""Pydantic schemas for field metadata, filter trees and highlight rules."""

from rowlogic.schemas.automation import (
    TriggerConfig,
    TriggerContext,
    TriggerEvaluationResult,
    TriggerType,
)
from rowlogic.schemas.field import FieldDescriptor, FieldType, find_field, to_field_descriptors
from rowlogic.schemas.filter import (
    Combinator,
    FilterCondition,
    FilterGroup,
    FilterNode,
    FilterOperator,
)
from rowlogic.schemas.highlight import HighlightOperator, HighlightRule, HighlightScope

__all__ = [
    "Combinator",
    "FieldDescriptor",
    "FieldType",
    "FilterCondition",
    "FilterGroup",
    "FilterNode",
    "FilterOperator",
    "HighlightOperator",
    "HighlightRule",
    "HighlightScope",
    "TriggerConfig",
    "TriggerContext",
    "TriggerEvaluationResult",
    "TriggerType",
    "find_field",
    "to_field_descriptors",
]
