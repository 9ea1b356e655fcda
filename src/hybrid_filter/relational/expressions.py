"""
Column projections that make SQL compare the way the in-memory backend does.

``project_column`` wraps a column for the condition's data type:

- text: ``lower(coalesce(col, ''))`` (non-string columns are cast first);
  boolean and enum-class columns never reach this, see
  ``match_enumerated``;
- time: the time-of-day part of a datetime column via ``time_of_day``;
- everything else: the column itself.

``narrow_to_dates`` rewrites a datetime condition for ``DATE`` columns,
whose values are whole days, so bounds land on day boundaries.
"""

from __future__ import annotations

import datetime
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, Date, String, Time, case, cast, false, func, or_
from sqlalchemy import Enum as SAEnum
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from ..models import DataType
from ..semantics import Condition, Operator, evaluate_condition, order_values

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.sql.compiler import SQLCompiler

_ONE_DAY = datetime.timedelta(days=1)


class time_of_day(FunctionElement[datetime.time]):  # noqa: N801
    """Time-of-day part of a datetime column, rendered per dialect."""

    type = Time()
    name = "time_of_day"
    inherit_cache = True


@compiles(time_of_day)
def _time_of_day_default(element: Any, compiler: SQLCompiler, **kw: Any) -> str:
    return f"CAST({compiler.process(element.clauses, **kw)} AS TIME)"


@compiles(time_of_day, "sqlite")
def _time_of_day_sqlite(element: Any, compiler: SQLCompiler, **kw: Any) -> str:
    """
    SQLite stores datetimes as ``YYYY-MM-DD HH:MM:SS.ffffff`` text; the time
    part starts at offset 12 and matches the storage format of ``Time``.
    """
    return f"substr({compiler.process(element.clauses, **kw)}, 12, 15)"


@compiles(time_of_day, "mysql")
def _time_of_day_mysql(element: Any, compiler: SQLCompiler, **kw: Any) -> str:
    return f"TIME({compiler.process(element.clauses, **kw)})"


def project_column(data_type: DataType, column: Any) -> Any:
    """Wrap ``column`` so SQL compares it like ``coerce_field`` does."""
    if data_type is DataType.TEXT:
        text = column if isinstance(column.type, String) else cast(column, String)
        return func.lower(func.coalesce(text, ""), type_=String())
    if data_type is DataType.TIME and not isinstance(column.type, Time):
        return time_of_day(column)
    return column


def is_date_column(column: Any) -> bool:
    return isinstance(getattr(column, "type", None), Date)


# ---------------------------------------------------------------------------
# Boolean and enum columns
# ---------------------------------------------------------------------------


def _enum_class(column: Any) -> type | None:
    column_type = getattr(column, "type", None)
    if isinstance(column_type, SAEnum):
        return column_type.enum_class
    return None


def enumerated_values(column: Any) -> tuple[Any, ...] | None:
    """Every non-null value a boolean or enum-class column can hold."""
    if isinstance(getattr(column, "type", None), Boolean):
        return (True, False)
    enum_class = _enum_class(column)
    return tuple(enum_class) if enum_class is not None else None


def match_enumerated(
    condition: Condition, column: Any, values: tuple[Any, ...]
) -> ColumnElement[bool]:
    """
    Compile a text condition on a column with a closed set of values.

    The stored form of such columns differs from their Python text form
    (enum names vs. values, ``1``/``0`` vs. ``true``/``false``). The
    condition is therefore evaluated in Python against every possible
    value, and the column is tested for membership in the matching ones.
    """
    matching = [v for v in values if evaluate_condition(condition, v)]
    clauses: list[Any] = []
    if matching:
        clauses.append(column.in_(matching))
    if evaluate_condition(condition, None):
        clauses.append(column.is_(None))
    return or_(*clauses) if clauses else false()


def sort_expression(column: Any) -> Any:
    """Enum-class columns sort by member value, like the in-memory sort."""
    enum_class = _enum_class(column)
    if enum_class is None:
        return column
    members = sorted(enum_class, key=cmp_to_key(order_values))
    return case(*((column == member, rank) for rank, member in enumerate(members)))


# ---------------------------------------------------------------------------
# DATE columns
# ---------------------------------------------------------------------------


def _floor(value: datetime.datetime) -> datetime.date:
    return value.date()


def _ceil(value: datetime.datetime) -> datetime.date:
    day = value.date()
    return day if value.time() == datetime.time.min else day + _ONE_DAY


def narrow_to_dates(condition: Condition) -> Condition:
    """
    Rewrite a datetime condition for a column holding whole days.

    A day ``d`` satisfies ``d >= x`` exactly when ``d >= ceil(x)``, and
    ``d > x`` exactly when ``d > floor(x)``. Equality with a
    non-midnight instant can never hold, which the empty window
    ``[ceil(x), floor(x))`` expresses.
    """
    op, operand = condition.op, condition.operand
    if op in (Operator.BETWEEN, Operator.WITHIN, Operator.NOT_WITHIN):
        lower, upper = operand
        if op is Operator.BETWEEN:
            narrowed: Any = (_ceil(lower), _floor(upper))
        else:
            narrowed = (_ceil(lower), _ceil(upper))
        return Condition(op, narrowed, condition.data_type)

    if op in (Operator.EQ, Operator.NE):
        if operand.time() == datetime.time.min:
            return Condition(op, operand.date(), condition.data_type)
        window = (_ceil(operand), _floor(operand))
        wrapped = Operator.WITHIN if op is Operator.EQ else Operator.NOT_WITHIN
        return Condition(wrapped, window, condition.data_type)

    if op in (Operator.GT, Operator.LE):
        return Condition(op, _floor(operand), condition.data_type)
    return Condition(op, _ceil(operand), condition.data_type)
