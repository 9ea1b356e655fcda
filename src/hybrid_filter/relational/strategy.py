"""
SQL predicates keyed by ``Operator``.

The counterpart of ``hybrid_filter.evaluator``: a ``SQLAlchemyOperator``
turns a projected column and a parsed operand into a boolean clause,
and the registry picks the one registered for a condition's operator.
Operands are always passed to SQLAlchemy as values, so they end up as
bound parameters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from ..semantics import Operator


class SQLAlchemyOperator(ABC):
    """Compiles the ``Operator`` named by ``op``."""

    op: Operator

    @abstractmethod
    def apply(self, column: Any, operand: Any) -> ColumnElement[bool]: ...


class SQLAlchemyOperatorRegistry:
    """``Operator`` to ``SQLAlchemyOperator`` lookup; later registrations win."""

    def __init__(self, *operators: SQLAlchemyOperator) -> None:
        self._by_op: dict[Operator, SQLAlchemyOperator] = {}
        self.register(*operators)

    def register(self, *operators: SQLAlchemyOperator) -> None:
        for strategy in operators:
            self._by_op[strategy.op] = strategy

    def get(self, op: Operator) -> SQLAlchemyOperator | None:
        return self._by_op.get(op)

    def apply(self, op: Operator, column: Any, operand: Any) -> ColumnElement[bool]:
        strategy = self._by_op.get(op)
        if strategy is None:
            raise ValueError(f"No SQL operator registered for {op.value!r}")
        return strategy.apply(column, operand)
