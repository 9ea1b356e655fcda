"""
Value parsing for the filter data types.

Filter values (``parse_*``) are strict: anything that cannot be read as
the requested type raises ``FilterValueError``. Record values
(``coerce_*``) are lenient: an unreadable value becomes ``None`` and
simply fails to match, the same way SQL treats NULL.

All datetimes are normalized to naive UTC so that aware and naive
values, and values read back from a database, compare consistently.
"""

from __future__ import annotations

import datetime
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, NamedTuple

from .exceptions import FilterValueError

# ---------------------------------------------------------------------------
# Accepted layouts
# ---------------------------------------------------------------------------

# Tried in order after ISO 8601.
DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%dT%H:%M:%S",
    "%Y/%m/%d %H:%M:%S%z",
    "%Y/%m/%d %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M:%S %z",
    "%d %b %y %H:%M %Z",
    "%d %b %y %H:%M %z",
    "%A, %d-%b-%y %H:%M:%S %Z",
    "%a %b %d %H:%M:%S %Y",
    "%a %b %d %H:%M:%S %Z %Y",
    "%a %b %d %H:%M:%S %z %Y",
    "%a %b %d %Y %H:%M:%S %z",
)

# Date-only layouts; a match covers the whole day.
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
)

TIME_FORMATS: tuple[str, ...] = (
    "%H:%M:%S",
    "%H:%M",
    "%H:%M:%S.%f",
    "%I:%M%p",
    "%I:%M:%S%p",
    "%I:%M %p",
    "%I:%M:%S %p",
)

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_TIME_ZONE_SUFFIX_RE = re.compile(r"\s*(?:Z|[+-]\d{2}:?\d{2}|[A-Z]{3,4})$")
_INT_RE = re.compile(r"^[+-]?\d+$")

_TRUE_STRINGS = frozenset({"true", "t", "1", "yes", "y", "on"})
_FALSE_STRINGS = frozenset({"false", "f", "0", "no", "n", "off"})


class ParsedDateTime(NamedTuple):
    value: datetime.datetime
    date_only: bool


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, str):
        text = value.strip()
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        if _INT_RE.match(text):
            return int(text)
        try:
            return float(Decimal(text))
        except InvalidOperation:
            return None
    return None


def parse_number(value: Any, path: str | None = None) -> int | float:
    """Parse a filter value as a number (int, float, Decimal or numeric text)."""
    number = _to_number(value)
    if number is None:
        raise FilterValueError(
            f"Cannot parse {value!r} as a number", path=path, value=value
        )
    return number


def coerce_number(value: Any) -> int | float | None:
    return _to_number(value)


# ---------------------------------------------------------------------------
# Booleans
# ---------------------------------------------------------------------------


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def parse_bool(value: Any, path: str | None = None) -> bool:
    """Parse a filter value as a boolean (``true``/``false``, ``1``/``0``, ...)."""
    result = _to_bool(value)
    if result is None:
        raise FilterValueError(
            f"Cannot parse {value!r} as a boolean", path=path, value=value
        )
    return result


def coerce_bool(value: Any) -> bool | None:
    return _to_bool(value)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def coerce_text(value: Any) -> str:
    """Lower-cased text used by all text modes; ``None`` reads as empty."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).lower()


# ---------------------------------------------------------------------------
# Dates and datetimes
# ---------------------------------------------------------------------------


def to_naive_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def _strptime_any(text: str, formats: tuple[str, ...]) -> datetime.datetime | None:
    for fmt in formats:
        try:
            return datetime.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _read_datetime(value: Any) -> ParsedDateTime | None:
    if isinstance(value, datetime.datetime):
        return ParsedDateTime(to_naive_utc(value), date_only=False)
    if isinstance(value, datetime.date):
        return ParsedDateTime(
            datetime.datetime.combine(value, datetime.time.min), date_only=True
        )
    if not isinstance(value, str):
        return None

    text = _FRACTION_RE.sub(r"\1", value.strip())
    if not text:
        return None

    try:
        return ParsedDateTime(
            datetime.datetime.combine(
                datetime.date.fromisoformat(text), datetime.time.min
            ),
            date_only=True,
        )
    except ValueError:
        pass
    try:
        parsed = datetime.datetime.fromisoformat(text.replace("Z", "+00:00"))
        return ParsedDateTime(to_naive_utc(parsed), date_only=False)
    except ValueError:
        pass

    parsed = _strptime_any(text, DATETIME_FORMATS)
    if parsed is not None:
        return ParsedDateTime(to_naive_utc(parsed), date_only=False)
    parsed = _strptime_any(text, DATE_FORMATS)
    if parsed is not None:
        return ParsedDateTime(parsed, date_only=True)
    return None


def parse_datetime(value: Any, path: str | None = None) -> ParsedDateTime:
    """
    Parse a filter value as a date or datetime.

    Accepts ``datetime``/``date`` objects and text in ISO 8601 or any of
    ``DATETIME_FORMATS`` / ``DATE_FORMATS``. ``date_only`` on the result
    tells the caller the value names a whole day rather than an instant.

    Raises:
        FilterValueError: If no layout matches.
    """
    parsed = _read_datetime(value)
    if parsed is None:
        raise FilterValueError(
            f"Cannot parse {value!r} as a date", path=path, value=value
        )
    return parsed


def coerce_datetime(value: Any) -> datetime.datetime | None:
    parsed = _read_datetime(value)
    return parsed.value if parsed is not None else None


# ---------------------------------------------------------------------------
# Time of day
# ---------------------------------------------------------------------------


def _read_time(value: Any) -> datetime.time | None:
    if isinstance(value, datetime.datetime):
        return to_naive_utc(value).time()
    if isinstance(value, datetime.time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str):
        return None

    text = _FRACTION_RE.sub(r"\1", value.strip())
    if not text:
        return None

    bare = _TIME_ZONE_SUFFIX_RE.sub("", text)
    parsed = _strptime_any(bare.upper(), TIME_FORMATS)
    if parsed is not None:
        return parsed.time()

    # Full timestamps contribute their time of day.
    stamp = _read_datetime(text)
    if stamp is not None and not stamp.date_only:
        return stamp.value.time()
    return None


def parse_time(value: Any, path: str | None = None) -> datetime.time:
    """
    Parse a filter value as a time of day.

    Accepts ``time``/``datetime`` objects, 24-hour and 12-hour text with
    optional seconds and fractions, and full timestamps. A trailing zone
    or offset is ignored; the wall-clock time is kept.

    Raises:
        FilterValueError: If the value is not a recognizable time.
    """
    parsed = _read_time(value)
    if parsed is None:
        raise FilterValueError(
            f"Cannot parse {value!r} as a time of day", path=path, value=value
        )
    return parsed


def coerce_time(value: Any) -> datetime.time | None:
    return _read_time(value)
