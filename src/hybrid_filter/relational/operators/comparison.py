"""Ordered comparisons and intervals as SQL clauses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, or_

from ...semantics import COMPARISONS, INTERVALS, Operator
from ..strategy import SQLAlchemyOperator

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement


class ComparisonOperator(SQLAlchemyOperator):
    """One of ``COMPARISONS``; SQL comparisons with NULL are never true."""

    def __init__(self, op: Operator) -> None:
        self.op = op
        self._compare = COMPARISONS[op]

    def apply(self, column: Any, operand: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", self._compare(column, operand))


class IntervalOperator(SQLAlchemyOperator):
    def __init__(self, op: Operator) -> None:
        self.op = op
        interval = INTERVALS[op]
        self._low = COMPARISONS[interval.low]
        self._high = COMPARISONS[interval.high]
        self._join = or_ if interval.either else and_

    def apply(self, column: Any, operand: Any) -> ColumnElement[bool]:
        lower, upper = operand
        return self._join(self._low(column, lower), self._high(column, upper))
