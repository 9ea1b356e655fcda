"""Substring and emptiness tests.

Field values and operands both arrive lower-cased (``coerce_text``), so
matching is case-insensitive.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..evaluator import MemoryOperator
from ..semantics import Operator

if TYPE_CHECKING:
    from collections.abc import Callable

TEXT_MATCHERS: dict[Operator, Callable[[str, str], bool]] = {
    Operator.CONTAINS: lambda text, part: part in text,
    Operator.NOT_CONTAINS: lambda text, part: part not in text,
    Operator.STARTS_WITH: str.startswith,
    Operator.ENDS_WITH: str.endswith,
}


class TextMatchOperator(MemoryOperator):
    def __init__(self, op: Operator) -> None:
        self.op = op
        self._match = TEXT_MATCHERS[op]

    def evaluate(self, field_value: Any, operand: Any) -> bool:
        if field_value is None:
            return False
        return self._match(str(field_value), str(operand))


class EmptinessOperator(MemoryOperator):
    """``is_empty`` / ``is_not_empty``; ``None`` and ``""`` are both empty."""

    def __init__(self, op: Operator) -> None:
        self.op = op
        self._empty = op is Operator.IS_EMPTY

    def evaluate(self, field_value: Any, _operand: Any) -> bool:
        return (field_value is None or field_value == "") is self._empty
