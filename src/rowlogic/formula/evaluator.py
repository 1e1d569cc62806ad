"""Formula evaluator for rowlogic.

Evaluates parsed formula ASTs against a single record.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from rowlogic.core.config import settings
from rowlogic.core.exceptions import FormulaException
from rowlogic.formula import dates
from rowlogic.formula.functions import FORMULA_FUNCTIONS, FunctionRegistry
from rowlogic.formula.parser import (
    BinaryOpNode,
    FieldRefNode,
    FunctionCallNode,
    LiteralNode,
    Node,
    UnaryOpNode,
    parse,
)
from rowlogic.formula.tokenizer import tokenize
from rowlogic.formula.values import (
    DIV_ZERO_ERROR,
    ERROR,
    NAME_ERROR,
    VALUE_ERROR,
    FormulaError,
    FormulaValue,
    first_error,
    is_truthy,
    make_number,
    to_number,
    to_text,
)
from rowlogic.schemas.field import FieldDescriptor, to_field_descriptors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationContext:
    """
    Record being evaluated plus its field metadata.

    ``row`` maps field names to raw values. ``fields`` declares the known
    fields and their types; a field that is not declared is read from the
    row as-is.
    """

    row: Mapping[str, Any] = field(default_factory=dict)
    fields: tuple[FieldDescriptor, ...] = ()

    @classmethod
    def build(
        cls, row: Mapping[str, Any] | None = None, fields: Iterable[Any] | None = None
    ) -> "EvaluationContext":
        return cls(row=row or {}, fields=tuple(to_field_descriptors(fields)))

    def get_value(self, name: str) -> FormulaValue:
        """Look up ``name`` (case-insensitively) and coerce it by declared type."""
        lowered = name.lower()
        for descriptor in self.fields:
            if descriptor.name.lower() == lowered:
                return coerce_field_value(self._row_value(descriptor.name), descriptor)
        return coerce_field_value(self._row_value(name), None)

    def _row_value(self, name: str) -> Any:
        if name in self.row:
            return self.row[name]
        lowered = name.lower()
        for key, value in self.row.items():
            if isinstance(key, str) and key.lower() == lowered:
                return value
        return None


def coerce_field_value(value: Any, descriptor: FieldDescriptor | None) -> FormulaValue:
    """Convert a raw row value to a formula value according to its field type."""
    if descriptor is not None and descriptor.is_checkbox:
        return _to_bool(value)

    if value is None:
        return None

    if descriptor is None:
        if isinstance(value, (list, tuple)):
            return to_text(value)
        if isinstance(value, date) and not isinstance(value, datetime):
            return dates.to_datetime(value)
        if isinstance(value, (bool, int, float, str, datetime, FormulaError)):
            return value
        return to_text(value)

    if descriptor.is_numeric:
        number = to_number(value)
        return make_number(number) if number is not None else 0

    if descriptor.is_date:
        parsed = dates.to_datetime(value)
        return parsed if parsed is not None else to_text(value)

    if descriptor.is_multi_value:
        return to_text(value if isinstance(value, (list, tuple)) else [value])

    return to_text(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "checked")
    return bool(value)


class FormulaEvaluator:
    """
    Evaluates formula ASTs against record data.

    The function registry is fixed at construction. ``evaluate`` never
    raises: every failure is reported as a :class:`FormulaError` value.
    """

    def __init__(self, functions: FunctionRegistry = FORMULA_FUNCTIONS):
        """
        Initialize evaluator.

        Args:
            functions: Registry of callable formula functions
        """
        self._functions = functions

    def evaluate(self, ast: Node, context: EvaluationContext | None = None) -> FormulaValue:
        """
        Evaluate an AST node.

        Args:
            ast: AST node to evaluate
            context: Record and field metadata

        Returns:
            Evaluation result
        """
        try:
            return self._eval(ast, context or EvaluationContext())
        except RecursionError:
            logger.debug("Formula too deeply nested to evaluate")
            return ERROR

    def _eval(self, node: Node, context: EvaluationContext) -> FormulaValue:
        """Recursively evaluate an AST node."""
        if isinstance(node, LiteralNode):
            return node.value

        if isinstance(node, FieldRefNode):
            return context.get_value(node.field_name)

        if isinstance(node, FunctionCallNode):
            return self._eval_function(node, context)

        if isinstance(node, BinaryOpNode):
            return self._eval_binary(node, context)

        if isinstance(node, UnaryOpNode):
            return self._eval_unary(node, context)

        return ERROR

    def _eval_function(self, node: FunctionCallNode, context: EvaluationContext) -> FormulaValue:
        """Evaluate a function call."""
        func = self._functions.get(node.name)
        if func is None:
            return NAME_ERROR

        # Eager: every argument is evaluated, even for IF
        args = [self._eval(arg, context) for arg in node.arguments]

        if not FunctionRegistry.tolerates_errors(func):
            error = first_error(*args)
            if error is not None:
                return error

        try:
            result = func(*args)
        except Exception as e:
            logger.debug("Formula function %s failed: %s", node.name, e)
            return ERROR

        if isinstance(result, float):
            return make_number(result)
        return result

    def _eval_binary(self, node: BinaryOpNode, context: EvaluationContext) -> FormulaValue:
        """Evaluate a binary operation."""
        # Walk the left spine iteratively: `1 + 2 + ... + n` nests n deep
        chain: list[BinaryOpNode] = []
        current: Node = node
        while isinstance(current, BinaryOpNode):
            chain.append(current)
            current = current.left

        result = self._eval(current, context)
        for link in reversed(chain):
            right = self._eval(link.right, context)
            result = self._apply_binary(link.operator, result, right)
        return result

    def _apply_binary(self, op: str, left: FormulaValue, right: FormulaValue) -> FormulaValue:
        error = first_error(left, right)
        if error is not None:
            return error

        # String concatenation
        if op == "&":
            return to_text(left) + to_text(right)

        # Logical operators
        if op == "AND":
            return is_truthy(left) and is_truthy(right)
        if op == "OR":
            return is_truthy(left) or is_truthy(right)

        # Comparison operators
        if op in ("=", "<>", "<", ">", "<=", ">="):
            return compare_values(left, op, right)

        return self._arithmetic(op, left, right)

    def _arithmetic(self, op: str, left: Any, right: Any) -> FormulaValue:
        left_num = _arithmetic_operand(left)
        right_num = _arithmetic_operand(right)
        if left_num is None or right_num is None:
            return VALUE_ERROR

        if op == "+":
            return make_number(left_num + right_num)
        if op == "-":
            return make_number(left_num - right_num)
        if op == "*":
            return make_number(left_num * right_num)
        if op == "/":
            if right_num == 0:
                return DIV_ZERO_ERROR
            return make_number(left_num / right_num)

        return ERROR

    def _eval_unary(self, node: UnaryOpNode, context: EvaluationContext) -> FormulaValue:
        """Evaluate a unary operation."""
        operand = self._eval(node.operand, context)
        if isinstance(operand, FormulaError):
            return operand

        if node.operator == "NOT":
            return not is_truthy(operand)

        if node.operator == "-":
            number = _arithmetic_operand(operand)
            if number is None:
                return VALUE_ERROR
            return make_number(-number)

        return ERROR


def _arithmetic_operand(value: Any) -> float | None:
    """Strings use their leading numeric prefix; blank is not a number."""
    return to_number(value)


def compare_values(left: Any, op: str, right: Any) -> bool:
    """
    Compare two non-error formula values.

    Blank equals blank and ``""``; against anything else only ``<>`` holds.
    Dates compare as dates when the other side parses as one, then numbers
    when both sides are fully numeric, otherwise text.
    """
    if left is None or right is None:
        other = right if left is None else left
        equal = other is None or other == ""
        return equal if op in ("=", "<=", ">=") else (not equal if op == "<>" else False)

    if isinstance(left, datetime) or isinstance(right, datetime):
        left_date = dates.to_datetime(left)
        right_date = dates.to_datetime(right)
        if left_date is not None and right_date is not None:
            return _apply(op, left_date, right_date)

    left_num = to_number(left, strict=True)
    right_num = to_number(right, strict=True)
    if left_num is not None and right_num is not None:
        return _apply(op, left_num, right_num)

    return _apply(op, to_text(left), to_text(right))


def _apply(op: str, left: Any, right: Any) -> bool:
    if op == "=":
        return left == right
    if op == "<>":
        return left != right
    if op == "<":
        return left < right
    if op == ">":
        return left > right
    if op == "<=":
        return left <= right
    if op == ">=":
        return left >= right
    return False


def evaluate_formula(
    source: str | None,
    context: EvaluationContext | Mapping[str, Any] | None = None,
    fields: Iterable[Any] | None = None,
    evaluator: FormulaEvaluator | None = None,
) -> FormulaValue:
    """
    Tokenize, parse and evaluate a formula against one record.

    Args:
        source: Formula text
        context: An :class:`EvaluationContext`, or a plain row mapping
        fields: Field metadata, used when ``context`` is a plain row
        evaluator: Evaluator to use, defaults to one over the built-in functions

    Returns:
        The formula value; syntax errors and oversized formulas give ``#ERROR!``.
        A blank formula evaluates to blank.
    """
    if source is None or not source.strip():
        return None
    if len(source) > settings.formula_max_length:
        logger.debug("Formula rejected: %d characters exceeds limit", len(source))
        return ERROR

    if not isinstance(context, EvaluationContext):
        context = EvaluationContext.build(context, fields)

    try:
        ast = parse(tokenize(source))
    except FormulaException as e:
        logger.debug("Formula failed to parse: %s", e.message)
        return ERROR
    except RecursionError:
        logger.debug("Formula too deeply nested to parse")
        return ERROR

    return (evaluator or _default_evaluator).evaluate(ast, context)


_default_evaluator = FormulaEvaluator()
