"""rowlogic: formula and filter evaluation engine for tabular data.

One engine decides grid filters, conditional formatting, automation
trigger conditions and KPI expressions, so all of them agree on what a
condition means.
"""

from rowlogic.filters import compile_filter_tree, normalize_filter_tree
from rowlogic.formula import EvaluationContext, evaluate_formula
from rowlogic.services import (
    evaluate_filter_tree,
    evaluate_highlight_rules,
    evaluate_trigger,
    filter_records,
)

__version__ = "0.1.0"

__all__ = [
    "EvaluationContext",
    "__version__",
    "compile_filter_tree",
    "evaluate_filter_tree",
    "evaluate_formula",
    "evaluate_highlight_rules",
    "evaluate_trigger",
    "filter_records",
    "normalize_filter_tree",
]
