"""Substring and emptiness tests as SQL clauses.

The column arrives as ``lower(coalesce(col, ''))`` and the operand is
already lower-cased. ``autoescape`` keeps ``%`` and ``_`` literal, as
the in-memory substring test treats them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import not_

from ...semantics import Operator
from ..strategy import SQLAlchemyOperator

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement

PATTERNS: dict[Operator, Callable[[Any, str], Any]] = {
    Operator.CONTAINS: lambda column, part: column.contains(part, autoescape=True),
    Operator.NOT_CONTAINS: lambda column, part: not_(
        column.contains(part, autoescape=True)
    ),
    Operator.STARTS_WITH: lambda column, part: column.startswith(
        part, autoescape=True
    ),
    Operator.ENDS_WITH: lambda column, part: column.endswith(part, autoescape=True),
}


class TextMatchOperator(SQLAlchemyOperator):
    def __init__(self, op: Operator) -> None:
        self.op = op
        self._pattern = PATTERNS[op]

    def apply(self, column: Any, operand: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", self._pattern(column, operand))


class EmptinessOperator(SQLAlchemyOperator):
    """Compared with ``''``, which the coalesced projection also gives NULL."""

    def __init__(self, op: Operator) -> None:
        self.op = op

    def apply(self, column: Any, _operand: Any) -> ColumnElement[bool]:
        if self.op is Operator.IS_EMPTY:
            return cast("ColumnElement[bool]", column == "")
        return cast("ColumnElement[bool]", column != "")
