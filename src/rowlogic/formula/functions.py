"""Formula functions for rowlogic.

Implements the built-in functions available in formulas. Functions receive
already-evaluated :data:`FormulaValue` arguments; error arguments have been
filtered out by the evaluator unless the function is registered with
``tolerates_errors=True``. Bad input is reported by *returning* an error
value, never by raising. A function that raises anyway (for example because
it was called with the wrong number of arguments) is mapped to ``#ERROR!``
by the evaluator.
"""

import calendar
import math
import re
from collections.abc import Iterator, Mapping
from datetime import datetime, timedelta
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any, Callable

from rowlogic.core.config import settings
from rowlogic.formula import dates
from rowlogic.formula.values import (
    DIV_ZERO_ERROR,
    ERROR,
    VALUE_ERROR,
    FormulaError,
    FormulaValue,
    is_truthy,
    make_number,
    to_number,
    to_text,
)

# Type alias for formula functions
FormulaFunction = Callable[..., FormulaValue]

# Filled by @register_function at import time, then frozen into FORMULA_FUNCTIONS
_BUILTINS: dict[str, FormulaFunction] = {}


def register_function(
    name: str, tolerates_errors: bool = False
) -> Callable[[FormulaFunction], FormulaFunction]:
    """Decorator to register a built-in formula function."""

    def decorator(func: FormulaFunction) -> FormulaFunction:
        if tolerates_errors:
            func.tolerates_errors = True  # type: ignore[attr-defined]
        _BUILTINS[name] = func
        return func

    return decorator


class FunctionRegistry(Mapping[str, FormulaFunction]):
    """
    Immutable name -> function mapping.

    Lookups are case-sensitive. Use :meth:`extend` to derive a registry with
    extra functions instead of mutating an existing one.
    """

    def __init__(self, functions: Mapping[str, FormulaFunction]):
        self._functions = MappingProxyType(dict(functions))

    def __getitem__(self, name: str) -> FormulaFunction:
        return self._functions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def extend(self, functions: Mapping[str, FormulaFunction]) -> "FunctionRegistry":
        return FunctionRegistry({**self._functions, **functions})

    @staticmethod
    def tolerates_errors(func: FormulaFunction) -> bool:
        return getattr(func, "tolerates_errors", False)


# =============================================================================
# Argument helpers
# =============================================================================


def _number_arg(value: Any) -> float | FormulaError:
    """Numeric argument; blank or non-numeric input is #VALUE!."""
    number = to_number(value)
    return VALUE_ERROR if number is None else number


def _count_arg(value: Any, default: int = 1) -> int:
    """Character count argument: numbers are floored, anything else uses the default."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return math.floor(value)
    return default


def _flatten(args: tuple[Any, ...]) -> list[Any]:
    values: list[Any] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            values.extend(_flatten(tuple(arg)))
        else:
            values.append(arg)
    return values


def _numbers(args: tuple[Any, ...]) -> list[float]:
    """Numeric values among the arguments; blanks and text are skipped."""
    numbers = []
    for arg in _flatten(args):
        if arg is None or isinstance(arg, str) and arg.strip() == "":
            continue
        number = to_number(arg, strict=True)
        if number is not None:
            numbers.append(number)
    return numbers


# =============================================================================
# Text Functions
# =============================================================================


@register_function("CONCAT")
def func_concat(*args: Any) -> str:
    """Concatenate values into a string; blanks become empty strings."""
    return "".join(to_text(a) for a in args)


@register_function("UPPER")
def func_upper(text: Any) -> str | FormulaError:
    if text is None:
        return VALUE_ERROR
    return to_text(text).upper()


@register_function("LOWER")
def func_lower(text: Any) -> str | FormulaError:
    if text is None:
        return VALUE_ERROR
    return to_text(text).lower()


@register_function("LEN")
def func_len(text: Any) -> int:
    """Length of text; blank has length 0."""
    if text is None:
        return 0
    return len(to_text(text))


@register_function("LEFT")
def func_left(text: Any, count: Any = 1) -> str | FormulaError:
    """Leftmost characters; counts outside the string clamp."""
    if text is None:
        return VALUE_ERROR
    n = _count_arg(count)
    return to_text(text)[: max(0, n)]


@register_function("RIGHT")
def func_right(text: Any, count: Any = 1) -> str | FormulaError:
    """Rightmost characters; counts outside the string clamp."""
    if text is None:
        return VALUE_ERROR
    s = to_text(text)
    n = _count_arg(count)
    return s[max(0, len(s) - n) :] if n > 0 else ""


@register_function("MID")
def func_mid(text: Any, start: Any, count: Any) -> str | FormulaError:
    """Substring from a 1-indexed start position."""
    if text is None:
        return VALUE_ERROR
    begin = max(1, _count_arg(start)) - 1
    length = max(0, _count_arg(count, default=0))
    return to_text(text)[begin : begin + length]


@register_function("TRIM")
def func_trim(text: Any) -> str:
    if text is None:
        return ""
    return to_text(text).strip()


@register_function("FIND")
def func_find(search: Any, text: Any, start: Any = None) -> int | FormulaError:
    """Position of ``search`` in ``text`` (case-sensitive, 1-indexed, 0 if absent)."""
    if search is None or text is None:
        return VALUE_ERROR
    begin = max(0, _count_arg(start) - 1) if start is not None else 0
    return to_text(text).find(to_text(search), begin) + 1


@register_function("SUBSTITUTE")
def func_substitute(text: Any, old: Any, new: Any, instance: Any = None) -> str | FormulaError:
    """
    Replace ``old`` with ``new``.

    All occurrences unless ``instance`` is a number; a numeric 1-based
    ``instance`` replaces only that occurrence. An instance that does not
    exist leaves the text unchanged.
    """
    if text is None or old is None or new is None:
        return VALUE_ERROR
    s, old_text, new_text = to_text(text), to_text(old), to_text(new)
    if old_text == "":
        return s

    if not isinstance(instance, (int, float)) or isinstance(instance, bool):
        return s.replace(old_text, new_text)

    n = _count_arg(instance, default=0)
    parts = s.split(old_text)
    if n < 1 or len(parts) <= n:
        return s
    return old_text.join(parts[:n]) + new_text + old_text.join(parts[n:])


@register_function("VALUE")
def func_value(text: Any) -> int | float | FormulaError:
    """Convert text to a number, ignoring thousands separators."""
    if text is None:
        return VALUE_ERROR
    number = to_number(to_text(text).replace(",", ""), strict=True)
    if number is None:
        return VALUE_ERROR
    return make_number(number)


# =============================================================================
# Numeric Functions
# =============================================================================


@register_function("ROUND")
def func_round(value: Any, decimals: Any = 0) -> int | float | FormulaError:
    """Round to ``decimals`` places, halves toward positive infinity."""
    number = _number_arg(value)
    places = _number_arg(decimals)
    if isinstance(number, FormulaError) or isinstance(places, FormulaError):
        return VALUE_ERROR
    quantum = Decimal(1).scaleb(-math.floor(places))
    # Decimal has no half-ceiling mode
    rounding = ROUND_HALF_UP if number >= 0 else ROUND_HALF_DOWN
    rounded = Decimal(repr(number)).quantize(quantum, rounding=rounding)
    return make_number(float(rounded))


@register_function("FLOOR")
def func_floor(value: Any, significance: Any = 1) -> int | float | FormulaError:
    """Round down to the nearest multiple of ``significance``."""
    number = _number_arg(value)
    step = _number_arg(significance)
    if isinstance(number, FormulaError) or isinstance(step, FormulaError):
        return VALUE_ERROR
    if step == 0:
        return 0
    return make_number(math.floor(number / step) * step)


@register_function("CEILING")
def func_ceiling(value: Any, significance: Any = 1) -> int | float | FormulaError:
    """Round up to the nearest multiple of ``significance``."""
    number = _number_arg(value)
    step = _number_arg(significance)
    if isinstance(number, FormulaError) or isinstance(step, FormulaError):
        return VALUE_ERROR
    if step == 0:
        return 0
    return make_number(math.ceil(number / step) * step)


@register_function("ABS")
def func_abs(value: Any) -> int | float | FormulaError:
    number = _number_arg(value)
    if isinstance(number, FormulaError):
        return number
    return make_number(abs(number))


@register_function("MOD")
def func_mod(value: Any, divisor: Any) -> int | float | FormulaError:
    """Remainder with the sign of the divisor."""
    number = _number_arg(value)
    d = _number_arg(divisor)
    if isinstance(number, FormulaError) or isinstance(d, FormulaError):
        return VALUE_ERROR
    if d == 0:
        return DIV_ZERO_ERROR
    return make_number(number % d)


@register_function("SUM")
def func_sum(*args: Any) -> int | float | FormulaError:
    return make_number(float(sum(_numbers(args))))


@register_function("AVERAGE")
def func_average(*args: Any) -> int | float | FormulaError:
    numbers = _numbers(args)
    if not numbers:
        return DIV_ZERO_ERROR
    return make_number(sum(numbers) / len(numbers))


@register_function("MIN")
def func_min(*args: Any) -> int | float | FormulaError:
    numbers = _numbers(args)
    return make_number(min(numbers)) if numbers else 0


@register_function("MAX")
def func_max(*args: Any) -> int | float | FormulaError:
    numbers = _numbers(args)
    return make_number(max(numbers)) if numbers else 0


# =============================================================================
# Logical Functions
# =============================================================================


@register_function("IF")
def func_if(condition: Any, if_true: Any, if_false: Any = None) -> Any:
    """Conditional: IF(condition, value_if_true, value_if_false).

    Both branches have already been evaluated by the time this runs.
    """
    return if_true if is_truthy(condition) else if_false


@register_function("SWITCH")
def func_switch(expression: Any, *args: Any) -> Any:
    """Switch: SWITCH(expr, case1, val1, case2, val2, ..., [default])."""
    if len(args) < 2:
        return ERROR

    for i in range(0, len(args) - 1, 2):
        if _same_value(expression, args[i]):
            return args[i + 1]

    # An unpaired trailing argument is the default
    if len(args) % 2 == 1:
        return args[-1]
    return None


def _same_value(left: Any, right: Any) -> bool:
    """Strict equality: no coercion between text, numbers and booleans."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


@register_function("AND")
def func_and(*args: Any) -> bool:
    return all(is_truthy(arg) for arg in _flatten(args))


@register_function("OR")
def func_or(*args: Any) -> bool:
    return any(is_truthy(arg) for arg in _flatten(args))


@register_function("NOT")
def func_not(value: Any) -> bool:
    return not is_truthy(value)


@register_function("BLANK")
def func_blank() -> None:
    return None


@register_function("ISBLANK")
def func_isblank(value: Any) -> bool:
    """Blank means no value, an empty string or an empty list."""
    return value is None or value == "" or value == [] or value == ()


@register_function("ISERROR", tolerates_errors=True)
def func_iserror(value: Any) -> bool:
    return isinstance(value, FormulaError)


# =============================================================================
# Date Functions
# =============================================================================


@register_function("TODAY")
def func_today() -> datetime:
    """Midnight of the current local day."""
    return dates.start_of_day(dates.today())


@register_function("NOW")
def func_now() -> datetime:
    return dates.now()


@register_function("YEAR")
def func_year(value: Any) -> int | FormulaError:
    parsed = dates.to_datetime(value)
    return parsed.year if parsed else VALUE_ERROR


@register_function("MONTH")
def func_month(value: Any) -> int | FormulaError:
    parsed = dates.to_datetime(value)
    return parsed.month if parsed else VALUE_ERROR


@register_function("DAY")
def func_day(value: Any) -> int | FormulaError:
    parsed = dates.to_datetime(value)
    return parsed.day if parsed else VALUE_ERROR


_UNIT_ALIASES = {
    "YEAR": "years",
    "YEARS": "years",
    "MONTH": "months",
    "MONTHS": "months",
    "WEEK": "weeks",
    "WEEKS": "weeks",
    "DAY": "days",
    "DAYS": "days",
    "HOUR": "hours",
    "HOURS": "hours",
    "MINUTE": "minutes",
    "MINUTES": "minutes",
    "SECOND": "seconds",
    "SECONDS": "seconds",
}


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    # Jan 31 + 1 month -> Feb 28/29
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@register_function("DATEADD")
def func_dateadd(value: Any, amount: Any, unit: Any) -> datetime | FormulaError:
    """Add time to a date: DATEADD(date, amount, 'days'|'months'|'years'|...)."""
    if value is None or amount is None or unit is None:
        return VALUE_ERROR
    start = dates.to_datetime(value)
    count = to_number(amount)
    normalized = _UNIT_ALIASES.get(to_text(unit).strip().upper())
    if start is None or count is None or normalized is None:
        return VALUE_ERROR

    try:
        if normalized == "years":
            return _add_months(start, math.floor(count) * 12)
        if normalized == "months":
            return _add_months(start, math.floor(count))
        return start + timedelta(**{normalized: count})
    except (OverflowError, ValueError):
        return VALUE_ERROR


@register_function("DATETIME_DIFF")
def func_datetime_diff(start: Any, end: Any, unit: Any = "days") -> int | float | FormulaError:
    """Whole units from ``start`` to ``end`` (negative when ``end`` is earlier)."""
    d1 = dates.to_datetime(start)
    d2 = dates.to_datetime(end)
    normalized = _UNIT_ALIASES.get(to_text(unit).strip().upper())
    if d1 is None or d2 is None or normalized is None:
        return VALUE_ERROR

    if normalized == "years":
        return d2.year - d1.year
    if normalized == "months":
        return (d2.year - d1.year) * 12 + (d2.month - d1.month)

    seconds = (d2 - d1).total_seconds()
    per_unit = {"weeks": 604800, "days": 86400, "hours": 3600, "minutes": 60, "seconds": 1}
    return int(seconds / per_unit[normalized])


_FORMAT_TOKENS = re.compile(r"YYYY|YY|MM|DD|HH|mm|ss")


@register_function("DATETIME_FORMAT")
def func_datetime_format(value: Any, pattern: Any = None) -> str | FormulaError:
    """
    Format a date with ``YYYY YY MM DD HH mm ss`` tokens.

    Any other characters in the pattern are copied through unchanged.
    """
    if value is None:
        return VALUE_ERROR
    parsed = dates.to_datetime(value)
    if parsed is None:
        return VALUE_ERROR
    fmt = settings.date_only_format if pattern is None else to_text(pattern)

    replacements = {
        "YYYY": f"{parsed.year:04d}",
        "YY": f"{parsed.year % 100:02d}",
        "MM": f"{parsed.month:02d}",
        "DD": f"{parsed.day:02d}",
        "HH": f"{parsed.hour:02d}",
        "mm": f"{parsed.minute:02d}",
        "ss": f"{parsed.second:02d}",
    }
    return _FORMAT_TOKENS.sub(lambda m: replacements[m.group(0)], fmt)


# Immutable registry injected into evaluators by default
FORMULA_FUNCTIONS = FunctionRegistry(_BUILTINS)
