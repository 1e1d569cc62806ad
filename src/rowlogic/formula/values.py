"""Formula value model.

A formula evaluates to one of: ``None`` (blank), ``bool``, a number
(``int``/``float``), ``str``, ``datetime``, or a :class:`FormulaError`.
Errors are ordinary values that propagate through operators; they are
only turned into their ``#...`` string sentinel when a result leaves the
engine (see :func:`to_display_value`).
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Union

ERROR_PREFIX = "#"


class ErrorCode(str, Enum):
    """Closed set of formula error codes."""

    VALUE = "#VALUE!"
    NAME = "#NAME?"
    ERROR = "#ERROR!"
    DIV_ZERO = "#DIV/0!"


@dataclass(frozen=True)
class FormulaError:
    """Error variant of a formula value."""

    code: ErrorCode

    def __str__(self) -> str:
        return self.code.value


VALUE_ERROR = FormulaError(ErrorCode.VALUE)
NAME_ERROR = FormulaError(ErrorCode.NAME)
ERROR = FormulaError(ErrorCode.ERROR)
DIV_ZERO_ERROR = FormulaError(ErrorCode.DIV_ZERO)

FormulaValue = Union[None, bool, int, float, str, datetime, FormulaError]

# Leading numeric prefix, like JavaScript's parseFloat
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_NUMBER_FULL = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*$")


def is_error(value: Any) -> bool:
    """True for error values and for strings carrying the ``#`` sentinel."""
    if isinstance(value, FormulaError):
        return True
    return isinstance(value, str) and value.startswith(ERROR_PREFIX)


def first_error(*values: Any) -> FormulaError | None:
    """Return the first error among ``values`` (left to right), if any."""
    for value in values:
        if isinstance(value, FormulaError):
            return value
    return None


def is_truthy(value: Any) -> bool:
    """Formula truthiness: blank, ``""``, ``0``, ``FALSE`` and errors are falsy."""
    if value is None or isinstance(value, FormulaError):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def to_number(value: Any, strict: bool = False) -> float | None:
    """
    Coerce a value to a float.

    Args:
        value: Value to coerce
        strict: Require the whole string to be numeric. When False, a
            leading numeric prefix is accepted (``"12px"`` -> 12).

    Returns:
        The number, or None when the value does not coerce
    """
    if value is None or isinstance(value, (FormulaError, date)):
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return None if math.isnan(number) else number
    if isinstance(value, str):
        if strict:
            return float(value) if _NUMBER_FULL.match(value) else None
        match = _NUMBER_PREFIX.match(value)
        return float(match.group(1)) if match else None
    return None


def make_number(value: float) -> int | float | FormulaError:
    """Normalize an arithmetic result: integral floats become ints."""
    if isinstance(value, float):
        if not math.isfinite(value):
            return VALUE_ERROR
        if value.is_integer():
            return int(value)
    return value


def format_number(value: int | float) -> str:
    """Render a number without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer() and math.isfinite(value):
        return str(int(value))
    return str(value)


def to_text(value: Any) -> str:
    """Stringify a formula value; blank becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(to_text(v) for v in value if v is not None)
    return str(value)


def to_display_value(value: FormulaValue) -> Any:
    """Replace an error variant with its ``#...`` string sentinel."""
    if isinstance(value, FormulaError):
        return value.code.value
    return value


def serialize_value(value: Any) -> Any:
    """
    Serialize a formula result for storage or an API response.

    Args:
        value: Computed formula result

    Returns:
        JSON-serializable value
    """
    if value is None:
        return None

    if isinstance(value, FormulaError):
        return value.code.value

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, Decimal):
        return make_number(float(value))

    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]

    return value
