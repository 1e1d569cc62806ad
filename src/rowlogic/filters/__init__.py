"""Filter trees: normalization, compilation to formulas, converters and summaries."""

from rowlogic.filters.compiler import FilterCompiler, compile_filter_tree
from rowlogic.filters.converters import db_filters_to_filter_tree, filter_configs_to_filter_tree
from rowlogic.filters.field_operators import (
    OperatorOption,
    get_default_operator_for_field_type,
    get_operators_for_field_type,
    is_operator_valid_for_field,
)
from rowlogic.filters.normalize import normalize_filter_tree, normalize_operator
from rowlogic.filters.summary import generate_condition_summary

__all__ = [
    "FilterCompiler",
    "OperatorOption",
    "compile_filter_tree",
    "db_filters_to_filter_tree",
    "filter_configs_to_filter_tree",
    "generate_condition_summary",
    "get_default_operator_for_field_type",
    "get_operators_for_field_type",
    "is_operator_valid_for_field",
    "normalize_filter_tree",
    "normalize_operator",
]
