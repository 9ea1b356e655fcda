"""Ordered comparisons and intervals over projected values."""

from __future__ import annotations

from typing import Any

from ..evaluator import MemoryOperator
from ..semantics import COMPARISONS, INTERVALS, Operator


class ComparisonOperator(MemoryOperator):
    """One of ``COMPARISONS``. A null field never matches."""

    def __init__(self, op: Operator) -> None:
        self.op = op
        self._compare = COMPARISONS[op]

    def evaluate(self, field_value: Any, operand: Any) -> bool:
        if field_value is None:
            return False
        return bool(self._compare(field_value, operand))


class IntervalOperator(MemoryOperator):
    """One of ``INTERVALS``; the operand is a ``(lower, upper)`` pair."""

    def __init__(self, op: Operator) -> None:
        self.op = op
        interval = INTERVALS[op]
        self._low = COMPARISONS[interval.low]
        self._high = COMPARISONS[interval.high]
        self._either = interval.either

    def evaluate(self, field_value: Any, operand: Any) -> bool:
        if field_value is None:
            return False
        lower, upper = operand
        low = bool(self._low(field_value, lower))
        high = bool(self._high(field_value, upper))
        return (low or high) if self._either else (low and high)
