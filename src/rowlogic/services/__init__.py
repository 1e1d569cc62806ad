"""Rule evaluation services: highlight rules, compiled conditions and automation triggers."""

from rowlogic.services.automation import TriggerEvaluator, evaluate_trigger
from rowlogic.services.conditional_formatting import (
    evaluate_highlight_rule,
    evaluate_highlight_rules,
    get_formatting_style,
)
from rowlogic.services.conditions import evaluate_filter_tree, filter_records, formula_matches

__all__ = [
    "TriggerEvaluator",
    "evaluate_filter_tree",
    "evaluate_highlight_rule",
    "evaluate_highlight_rules",
    "evaluate_trigger",
    "filter_records",
    "formula_matches",
    "get_formatting_style",
]
