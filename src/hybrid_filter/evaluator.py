"""
In-memory predicates keyed by ``Operator``.

A ``MemoryOperator`` decides one operator for a field value already
projected by ``semantics.coerce_field`` and an operand already parsed by
``build_condition``. ``MemoryOperatorRegistry`` dispatches to the
operator registered for a condition; ``operators_memory`` builds the
default set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .semantics import Operator


class MemoryOperator(ABC):
    """Decides the ``Operator`` named by ``op``."""

    op: Operator

    @abstractmethod
    def evaluate(self, field_value: Any, operand: Any) -> bool: ...


class MemoryOperatorRegistry:
    """
    ``Operator`` to ``MemoryOperator`` lookup.

    Registering an operator for an ``Operator`` that already has one
    replaces it::

        registry = build_default_registry()
        registry.register(MyEqualOperator())
    """

    def __init__(self, *operators: MemoryOperator) -> None:
        self._by_op: dict[Operator, MemoryOperator] = {}
        self.register(*operators)

    def register(self, *operators: MemoryOperator) -> None:
        for strategy in operators:
            self._by_op[strategy.op] = strategy

    def get(self, op: Operator) -> MemoryOperator | None:
        return self._by_op.get(op)

    def evaluate(self, op: Operator, field_value: Any, operand: Any) -> bool:
        strategy = self._by_op.get(op)
        if strategy is None:
            raise ValueError(f"No in-memory operator registered for {op.value!r}")
        return strategy.evaluate(field_value, operand)
