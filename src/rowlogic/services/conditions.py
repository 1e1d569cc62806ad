"""Compiled condition evaluation.

Grid filters and automation conditions go through the same path: the filter
tree is normalized and compiled to formula text, and the formula is
evaluated against each record. Evaluation fails closed: anything that goes
wrong (bad tree, bad formula, error result) means "no match".
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from rowlogic.core.exceptions import FilterException
from rowlogic.filters.compiler import compile_filter_tree
from rowlogic.formula.evaluator import EvaluationContext, evaluate_formula
from rowlogic.formula.values import is_error, is_truthy, to_display_value
from rowlogic.schemas.field import FieldDescriptor, to_field_descriptors

logger = logging.getLogger(__name__)


def formula_matches(
    formula: str | None,
    row: Mapping[str, Any],
    fields: Iterable[Any] | None = None,
) -> bool:
    """
    Evaluate a condition formula against a row.

    A blank formula is always true. Error results and error sentinels are
    false.
    """
    if formula is None or not formula.strip():
        return True

    context = EvaluationContext.build(row, fields)
    result = to_display_value(evaluate_formula(formula, context))
    if is_error(result):
        logger.debug(f"Condition formula evaluated to {result}")
        return False
    return is_truthy(result)


def evaluate_filter_tree(
    tree: Any,
    row: Mapping[str, Any],
    fields: Iterable[Any] | None = None,
) -> bool:
    """
    Check whether a row satisfies a filter tree.

    Args:
        tree: Filter tree in any supported shape; empty matches everything
        row: Field name -> raw value
        fields: Declared fields

    Returns:
        True if the row matches; False on any invalid tree or evaluation error
    """
    descriptors = to_field_descriptors(fields)
    try:
        formula = compile_filter_tree(tree, descriptors)
    except FilterException as e:
        logger.debug(f"Filter tree rejected: {e.message}")
        return False
    return formula_matches(formula, row, descriptors)


def filter_records(
    records: Iterable[Any],
    tree: Any,
    fields: Iterable[Any] | None = None,
    get_row: Callable[[Any], Mapping[str, Any]] | None = None,
) -> list[Any]:
    """
    Return the records that match a filter tree, in their original order.

    The tree is compiled once; the formula is parsed and evaluated per record.

    Args:
        records: Records to filter
        tree: Filter tree in any supported shape
        fields: Declared fields
        get_row: Extracts the field mapping from a record, defaults to the
            record itself
    """
    records = list(records)
    descriptors: list[FieldDescriptor] = to_field_descriptors(fields)
    try:
        formula = compile_filter_tree(tree, descriptors)
    except FilterException as e:
        logger.debug(f"Filter tree rejected: {e.message}")
        return []

    if not formula:
        return records

    extract = get_row or (lambda record: record)
    return [r for r in records if formula_matches(formula, extract(r), descriptors)]
