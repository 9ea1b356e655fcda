"""Built-in SQL operators and the default registry."""

from __future__ import annotations

from ...semantics import COMPARISONS, INTERVALS, Operator
from ..strategy import SQLAlchemyOperatorRegistry
from .comparison import ComparisonOperator, IntervalOperator
from .text import PATTERNS, EmptinessOperator, TextMatchOperator


def build_default_registry() -> SQLAlchemyOperatorRegistry:
    """A new registry with an operator for every ``Operator``."""
    return SQLAlchemyOperatorRegistry(
        *(ComparisonOperator(op) for op in COMPARISONS),
        *(IntervalOperator(op) for op in INTERVALS),
        *(TextMatchOperator(op) for op in PATTERNS),
        EmptinessOperator(Operator.IS_EMPTY),
        EmptinessOperator(Operator.IS_NOT_EMPTY),
    )


DEFAULT_SQLA_REGISTRY = build_default_registry()

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "ComparisonOperator",
    "EmptinessOperator",
    "IntervalOperator",
    "TextMatchOperator",
    "build_default_registry",
]
