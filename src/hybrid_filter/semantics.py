"""
Comparison semantics shared by both backends.

Every field filter is first compiled into a :class:`Condition` by
:func:`build_condition`. A condition is an ``Operator`` plus an already
parsed operand and the data type that tells each backend how to project
the field value before comparing:

- the in-memory backend coerces the record value (``coerce_field``) and
  evaluates the operator through a ``MemoryOperatorRegistry``;
- the relational backend projects the column and compiles the same
  operator through a ``SQLAlchemyOperatorRegistry``.

Mode rules per data type
------------------------
``text``
    Case-insensitive. ``None`` reads as ``""`` so ``isEmpty`` covers
    both null and zero-length values.
    Not applicable to fields declared as dates or times.
``number`` / ``bool``
    Compared by value. A null field never matches.
``date``
    A date-only operand names a whole day and becomes a half-open
    window ``[day, next day)``; ``equal`` matches anything inside it,
    ``gt``/``after`` starts at the next day, ``lte`` ends before it.
    Full timestamps compare exactly.
``time``
    Time of day only, microsecond precision. ``after``/``before`` are
    strict like ``gt``/``lt``.

``range`` is inclusive on both ends and raises ``RangeError`` when
``from`` is after ``to``. A date-only ``to`` covers its whole day.
"""

from __future__ import annotations

import datetime
import operator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import FilterValueError, RangeError, UnsupportedModeError
from .models import DataType, FilterRange, Mode
from .parsing import (
    coerce_bool,
    coerce_datetime,
    coerce_number,
    coerce_text,
    coerce_time,
    parse_bool,
    parse_datetime,
    parse_number,
    parse_time,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .evaluator import MemoryOperatorRegistry

_ONE_DAY = datetime.timedelta(days=1)


class Operator(str, Enum):
    """Backend-neutral predicates a condition can express."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    # lower <= x <= upper
    BETWEEN = "between"
    # lower <= x < upper
    WITHIN = "within"
    # x < lower or x >= upper
    NOT_WITHIN = "not_within"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


@dataclass(frozen=True)
class Condition:
    """A parsed, backend-neutral predicate on one field."""

    op: Operator
    operand: Any
    data_type: DataType


# ---------------------------------------------------------------------------
# Mode tables
# ---------------------------------------------------------------------------

_TEXT_OPERATORS: dict[Mode, Operator] = {
    Mode.EQUAL: Operator.EQ,
    Mode.NOT_EQUAL: Operator.NE,
    Mode.CONTAINS: Operator.CONTAINS,
    Mode.NOT_CONTAINS: Operator.NOT_CONTAINS,
    Mode.STARTS_WITH: Operator.STARTS_WITH,
    Mode.ENDS_WITH: Operator.ENDS_WITH,
    Mode.IS_EMPTY: Operator.IS_EMPTY,
    Mode.IS_NOT_EMPTY: Operator.IS_NOT_EMPTY,
}

_ORDERED_OPERATORS: dict[Mode, Operator] = {
    Mode.EQUAL: Operator.EQ,
    Mode.NOT_EQUAL: Operator.NE,
    Mode.GT: Operator.GT,
    Mode.GTE: Operator.GE,
    Mode.LT: Operator.LT,
    Mode.LTE: Operator.LE,
}

# Both backends build their comparison and interval operators from
# these tables.
COMPARISONS: dict[Operator, Callable[[Any, Any], Any]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
    Operator.GT: operator.gt,
    Operator.GE: operator.ge,
    Operator.LT: operator.lt,
    Operator.LE: operator.le,
}


@dataclass(frozen=True)
class Interval:
    """
    An interval operator over a ``(lower, upper)`` operand, as two
    ``COMPARISONS``: ``value <low> lower`` and ``value <high> upper``,
    joined by *or* when ``either`` is set and by *and* otherwise.
    """

    low: Operator
    high: Operator
    either: bool = False


INTERVALS: dict[Operator, Interval] = {
    Operator.BETWEEN: Interval(Operator.GE, Operator.LE),
    Operator.WITHIN: Interval(Operator.GE, Operator.LT),
    Operator.NOT_WITHIN: Interval(Operator.LT, Operator.GE, either=True),
}

_TEMPORAL_OPERATORS: dict[Mode, Operator] = {
    **_ORDERED_OPERATORS,
    Mode.AFTER: Operator.GT,
    Mode.BEFORE: Operator.LT,
}

_BOOL_OPERATORS: dict[Mode, Operator] = {
    Mode.EQUAL: Operator.EQ,
    Mode.NOT_EQUAL: Operator.NE,
}

SUPPORTED_MODES: dict[DataType, frozenset[Mode]] = {
    DataType.TEXT: frozenset(_TEXT_OPERATORS),
    DataType.NUMBER: frozenset(_ORDERED_OPERATORS) | {Mode.RANGE},
    DataType.BOOL: frozenset(_BOOL_OPERATORS),
    DataType.DATE: frozenset(_TEMPORAL_OPERATORS) | {Mode.RANGE},
    DataType.TIME: frozenset(_TEMPORAL_OPERATORS) | {Mode.RANGE},
}


# ---------------------------------------------------------------------------
# Operand helpers
# ---------------------------------------------------------------------------


def _range_bounds(value: Any, path: str | None) -> tuple[Any, Any]:
    if isinstance(value, FilterRange):
        lower, upper = value.from_, value.to
    elif isinstance(value, dict):
        lower, upper = value.get("from", value.get("from_")), value.get("to")
    elif isinstance(value, list | tuple) and len(value) == 2:
        lower, upper = value
    else:
        raise FilterValueError(
            "Range filters need a {'from': ..., 'to': ...} value",
            path=path,
            value=value,
        )
    if lower is None or upper is None:
        raise FilterValueError(
            "Range filters need both 'from' and 'to'", path=path, value=value
        )
    return lower, upper


def _scalar(value: Any, path: str | None) -> Any:
    if isinstance(value, dict | list | tuple | set | FilterRange):
        raise FilterValueError(
            "Expected a single value, not a collection", path=path, value=value
        )
    return value


def _checked_range(lower: Any, upper: Any, path: str | None) -> None:
    if lower > upper:
        raise RangeError(lower, upper, path=path)


# ---------------------------------------------------------------------------
# Per-type builders
# ---------------------------------------------------------------------------


def _text_condition(mode: Mode, value: Any, path: str | None) -> Condition:
    op = _TEXT_OPERATORS[mode]
    if op in (Operator.IS_EMPTY, Operator.IS_NOT_EMPTY):
        return Condition(op, None, DataType.TEXT)
    return Condition(op, coerce_text(_scalar(value, path)), DataType.TEXT)


def _number_condition(mode: Mode, value: Any, path: str | None) -> Condition:
    if mode is Mode.RANGE:
        raw_lower, raw_upper = _range_bounds(value, path)
        lower = parse_number(raw_lower, path)
        upper = parse_number(raw_upper, path)
        _checked_range(lower, upper, path)
        return Condition(Operator.BETWEEN, (lower, upper), DataType.NUMBER)
    return Condition(
        _ORDERED_OPERATORS[mode],
        parse_number(_scalar(value, path), path),
        DataType.NUMBER,
    )


def _bool_condition(mode: Mode, value: Any, path: str | None) -> Condition:
    return Condition(
        _BOOL_OPERATORS[mode], parse_bool(_scalar(value, path), path), DataType.BOOL
    )


def _date_condition(mode: Mode, value: Any, path: str | None) -> Condition:
    if mode is Mode.RANGE:
        raw_lower, raw_upper = _range_bounds(value, path)
        lower = parse_datetime(raw_lower, path)
        upper = parse_datetime(raw_upper, path)
        if upper.date_only:
            end = upper.value + _ONE_DAY
            if lower.value >= end:
                raise RangeError(lower.value, upper.value, path=path)
            return Condition(Operator.WITHIN, (lower.value, end), DataType.DATE)
        _checked_range(lower.value, upper.value, path)
        return Condition(Operator.BETWEEN, (lower.value, upper.value), DataType.DATE)

    parsed = parse_datetime(_scalar(value, path), path)
    op = _TEMPORAL_OPERATORS[mode]
    if not parsed.date_only:
        return Condition(op, parsed.value, DataType.DATE)

    start = parsed.value
    end = start + _ONE_DAY
    if op is Operator.EQ:
        return Condition(Operator.WITHIN, (start, end), DataType.DATE)
    if op is Operator.NE:
        return Condition(Operator.NOT_WITHIN, (start, end), DataType.DATE)
    if op is Operator.GT:
        return Condition(Operator.GE, end, DataType.DATE)
    if op is Operator.LE:
        return Condition(Operator.LT, end, DataType.DATE)
    # GE and LT bound on the start of the day
    return Condition(op, start, DataType.DATE)


def _time_condition(mode: Mode, value: Any, path: str | None) -> Condition:
    if mode is Mode.RANGE:
        raw_lower, raw_upper = _range_bounds(value, path)
        lower = parse_time(raw_lower, path)
        upper = parse_time(raw_upper, path)
        _checked_range(lower, upper, path)
        return Condition(Operator.BETWEEN, (lower, upper), DataType.TIME)
    return Condition(
        _TEMPORAL_OPERATORS[mode],
        parse_time(_scalar(value, path), path),
        DataType.TIME,
    )


_BUILDERS: dict[DataType, Callable[[Mode, Any, str | None], Condition]] = {
    DataType.TEXT: _text_condition,
    DataType.NUMBER: _number_condition,
    DataType.BOOL: _bool_condition,
    DataType.DATE: _date_condition,
    DataType.TIME: _time_condition,
}


def _is_temporal(value_type: type | None) -> bool:
    return isinstance(value_type, type) and issubclass(
        value_type, (datetime.date, datetime.time)
    )


def build_condition(
    data_type: DataType | str,
    mode: Mode | str,
    value: Any,
    *,
    path: str | None = None,
    value_type: type | None = None,
) -> Condition:
    """
    Compile one ``(data type, mode, value)`` triple into a ``Condition``.

    Args:
        data_type: How the field is parsed and compared.
        mode: The comparison requested.
        value: The raw filter value (a scalar, or ``from``/``to`` bounds
            for ``range``).
        path: Field path, used only in error messages.
        value_type: Declared type of the field, when known. Text modes
            are refused for date and time fields, whose text form
            differs between Python and each database.

    Raises:
        UnsupportedModeError: If ``mode`` does not apply to ``data_type``
            or a text mode targets a temporal field.
        FilterValueError: If the value cannot be parsed.
        RangeError: If range bounds are inverted.
    """
    data_type = DataType(data_type)
    mode = Mode(mode)
    supported = SUPPORTED_MODES[data_type]
    if mode not in supported:
        raise UnsupportedModeError(
            mode.value,
            data_type.value,
            [m.value for m in supported],
            path=path,
        )
    if data_type is DataType.TEXT and _is_temporal(value_type):
        raise UnsupportedModeError(
            mode.value,
            data_type.value,
            [],
            path=path,
            reason="Temporal fields take filterDataType 'date' or 'time'.",
        )
    return _BUILDERS[data_type](mode, value, path)


# ---------------------------------------------------------------------------
# Field projection
# ---------------------------------------------------------------------------

_COERCERS: dict[DataType, Callable[[Any], Any]] = {
    DataType.TEXT: coerce_text,
    DataType.NUMBER: coerce_number,
    DataType.BOOL: coerce_bool,
    DataType.DATE: coerce_datetime,
    DataType.TIME: coerce_time,
}


def coerce_field(data_type: DataType, value: Any) -> Any:
    """Project a record value onto the representation ``data_type`` compares."""
    return _COERCERS[data_type](value)


def evaluate_condition(
    condition: Condition,
    field_value: Any,
    registry: MemoryOperatorRegistry | None = None,
) -> bool:
    """Evaluate a compiled condition against a raw record value."""
    if registry is None:
        from .operators_memory import DEFAULT_MEMORY_REGISTRY

        registry = DEFAULT_MEMORY_REGISTRY
    return registry.evaluate(
        condition.op,
        coerce_field(condition.data_type, field_value),
        condition.operand,
    )


def compare(
    data_type: DataType | str,
    mode: Mode | str,
    field_value: Any,
    filter_value: Any,
) -> bool:
    """
    Decide whether ``field_value`` satisfies ``mode`` against ``filter_value``.

    This is the reference both backends agree with.
    """
    return evaluate_condition(build_condition(data_type, mode, filter_value), field_value)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def _sort_form(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime.datetime):
        return coerce_datetime(value)
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    if isinstance(value, datetime.time):
        return value.replace(tzinfo=None)
    return value


def order_values(a: Any, b: Any) -> int:
    """
    Three-way comparison used for sorting.

    ``None`` sorts before everything else, booleans sort ``False`` before
    ``True``, and dates sort with datetimes. Values of unrelated types
    fall back to comparing their text form.
    """
    if a is None or b is None:
        return (a is not None) - (b is not None)
    x, y = _sort_form(a), _sort_form(b)
    try:
        return (x > y) - (x < y)
    except TypeError:
        sx, sy = str(x), str(y)
        return (sx > sy) - (sx < sy)


def order(data_type: DataType | str, a: Any, b: Any) -> int:
    """
    Order two record values as ``data_type`` sees them.

    Returns -1, 0 or 1. Unreadable values order like ``None``.
    """
    data_type = DataType(data_type)
    if data_type is DataType.TEXT:
        # Sorting keeps case; only matching folds it.
        x = None if a is None else str(_sort_form(a))
        y = None if b is None else str(_sort_form(b))
        return order_values(x, y)
    return order_values(coerce_field(data_type, a), coerce_field(data_type, b))
