"""Formula engine for rowlogic.

This module provides a complete formula evaluation system supporting:
- Arithmetic operations (+, -, *, /)
- Comparison operations (=, <>, !=, <, >, <=, >=)
- Logical operations (AND, OR, NOT)
- Text functions (CONCAT, LEFT, RIGHT, MID, LEN, TRIM, FIND, SUBSTITUTE, etc.)
- Numeric functions (SUM, AVERAGE, MIN, MAX, ROUND, ABS, etc.)
- Logical functions (IF, SWITCH, ISBLANK, ISERROR)
- Date functions (TODAY, NOW, DATEADD, DATETIME_FORMAT, DATETIME_DIFF, etc.)
- Field references (Name or {Field Name})
"""

from rowlogic.formula.evaluator import (
    EvaluationContext,
    FormulaEvaluator,
    evaluate_formula,
)
from rowlogic.formula.functions import FORMULA_FUNCTIONS, FunctionRegistry
from rowlogic.formula.parser import FormulaParser, parse
from rowlogic.formula.tokenizer import Token, TokenKind, tokenize
from rowlogic.formula.values import (
    ErrorCode,
    FormulaError,
    FormulaValue,
    is_error,
    serialize_value,
    to_display_value,
)


def validate_formula(source: str) -> tuple[bool, str | None]:
    """Check formula syntax without evaluating it."""
    return FormulaParser().validate(source)


def get_field_references(source: str) -> list[str]:
    """Field names a formula reads, in first-seen order."""
    return FormulaParser().get_field_references(source)


__all__ = [
    "EvaluationContext",
    "ErrorCode",
    "FORMULA_FUNCTIONS",
    "FormulaError",
    "FormulaEvaluator",
    "FormulaParser",
    "FormulaValue",
    "FunctionRegistry",
    "Token",
    "TokenKind",
    "evaluate_formula",
    "get_field_references",
    "is_error",
    "parse",
    "serialize_value",
    "to_display_value",
    "tokenize",
    "validate_formula",
]
