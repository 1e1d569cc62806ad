"""Date handling shared by the function library, filters and highlight rules.

All dates are compared as naive *local* datetimes. Timezone-aware inputs
(e.g. ``...Z`` timestamps) are converted to local time first, so a
"day" always means a local calendar day.

The clock is read through :func:`now`; tests pin it by monkeypatching
``rowlogic.formula.dates.now``.
"""

import re
from datetime import date, datetime, timedelta
from typing import Any

DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TODAY = "__TODAY__"
YESTERDAY = "__YESTERDAY__"
TOMORROW = "__TOMORROW__"

# Placeholder -> day offset from today
DYNAMIC_DAY_OFFSETS: dict[str, int] = {
    TODAY: 0,
    YESTERDAY: -1,
    TOMORROW: 1,
}

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
)


def now() -> datetime:
    """Current local time (naive)."""
    return datetime.now()


def today() -> date:
    """Current local calendar day."""
    return now().date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def to_datetime(value: Any) -> datetime | None:
    """
    Parse various date representations into a naive local datetime.

    Numbers and booleans are never treated as dates.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return start_of_day(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_local_date(value: Any) -> date | None:
    """Local calendar day of a date-like value."""
    parsed = to_datetime(value)
    return parsed.date() if parsed else None


def is_date_only(value: Any) -> bool:
    """True for ``YYYY-MM-DD`` strings."""
    return isinstance(value, str) and bool(DATE_ONLY_PATTERN.match(value))


def to_date_only(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def is_dynamic_value(value: Any) -> bool:
    return isinstance(value, str) and value in DYNAMIC_DAY_OFFSETS


def resolve_dynamic_value(value: Any) -> Any:
    """Resolve a day placeholder to a concrete date-only string.

    Any other value is returned unchanged.
    """
    if is_dynamic_value(value):
        return to_date_only(today() + timedelta(days=DYNAMIC_DAY_OFFSETS[value]))
    return value


def compare_day(value: Any, day: date) -> int | None:
    """
    Compare the local day of ``value`` with ``day``.

    Returns:
        -1, 0 or 1 like a comparator, or None when ``value`` is not a date
    """
    value_day = to_local_date(value)
    if value_day is None:
        return None
    if value_day < day:
        return -1
    if value_day > day:
        return 1
    return 0
