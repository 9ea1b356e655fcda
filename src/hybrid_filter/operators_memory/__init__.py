"""
Built-in in-memory operators.

Usage::

    from hybrid_filter.operators_memory import build_default_registry

    registry = build_default_registry()
    registry.evaluate(Operator.GT, 3, 2)  # True
"""

from __future__ import annotations

from ..evaluator import MemoryOperatorRegistry
from ..semantics import COMPARISONS, INTERVALS, Operator
from .comparison import ComparisonOperator, IntervalOperator
from .text import TEXT_MATCHERS, EmptinessOperator, TextMatchOperator


def build_default_registry() -> MemoryOperatorRegistry:
    """A new registry with an operator for every ``Operator``."""
    return MemoryOperatorRegistry(
        *(ComparisonOperator(op) for op in COMPARISONS),
        *(IntervalOperator(op) for op in INTERVALS),
        *(TextMatchOperator(op) for op in TEXT_MATCHERS),
        EmptinessOperator(Operator.IS_EMPTY),
        EmptinessOperator(Operator.IS_NOT_EMPTY),
    )


DEFAULT_MEMORY_REGISTRY = build_default_registry()

__all__ = [
    "DEFAULT_MEMORY_REGISTRY",
    "ComparisonOperator",
    "EmptinessOperator",
    "IntervalOperator",
    "MemoryOperatorRegistry",
    "TextMatchOperator",
    "build_default_registry",
]
