"""
Filter exception hierarchy with fuzzy-match suggestions.

All exceptions inherit from ``FilterError`` and provide
``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class FilterError(Exception):
    """Base exception for all filter errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ValidationError(FilterError):
    """Filter specification validation failed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "message": self.message,
            "path": self.path,
        }


class FilterValueError(ValidationError):
    """A filter value could not be parsed for its data type."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        value: Any = None,
    ) -> None:
        self.value = value
        super().__init__(message, path=path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FILTER_VALUE_ERROR",
            "message": self.message,
            "path": self.path,
            "value": repr(self.value),
        }


class RangeError(FilterValueError):
    """
    Range bounds are inverted.

    Raised when ``from`` is strictly after ``to`` once both bounds have
    been parsed for the filter's data type.
    """

    def __init__(self, lower: Any, upper: Any, path: str | None = None) -> None:
        self.lower = lower
        self.upper = upper
        where = f" on '{path}'" if path else ""
        super().__init__(
            f"Invalid range{where}: 'from' ({lower}) is after 'to' ({upper})",
            path=path,
            value=(lower, upper),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "RANGE_ERROR",
            "message": self.message,
            "path": self.path,
            "from": str(self.lower),
            "to": str(self.upper),
        }


class UnsupportedModeError(ValidationError):
    """
    Mode is not valid for the filter's data type.

    Provides fuzzy-matched suggestions among the modes the data type supports.
    """

    def __init__(
        self,
        mode: str,
        data_type: str,
        valid_modes: list[str],
        path: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.mode = mode
        self.data_type = data_type
        self.valid_modes = valid_modes
        self.reason = reason
        self.suggestions = get_close_matches(mode, valid_modes, n=3, cutoff=0.6)

        message = f"Mode '{mode}' is not supported for data type '{data_type}'."
        if reason:
            message += f" {reason}"
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        if valid_modes:
            message += f" Valid modes: {', '.join(sorted(valid_modes))}"
        super().__init__(message, path=path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_MODE",
            "mode": self.mode,
            "data_type": self.data_type,
            "path": self.path,
            "suggestions": self.suggestions,
            "valid_modes": sorted(self.valid_modes),
            "reason": self.reason,
        }


class FieldNotFoundError(ValidationError):
    """
    Unresolvable field path with helpful suggestions.

    Raised only when strict field resolution is enabled; lenient
    resolution drops the offending filter or sort field instead.

    Example error message::

        Invalid field 'rol' on 'User'.
        Did you mean one of these?
          • role

        Available fields: account.name, id, name, role, ...
    """

    def __init__(
        self,
        invalid_field: str,
        model_name: str,
        available_fields: list[str],
        reason: str | None = None,
        cutoff: float = 0.6,
    ) -> None:
        self.invalid_field = invalid_field
        self.model_name = model_name
        self.available_fields = available_fields
        self.reason = reason

        self.suggestions = get_close_matches(
            invalid_field, available_fields, n=5, cutoff=cutoff
        )

        super().__init__(self._build_message(), path=invalid_field)

    def _build_message(self) -> str:
        lines = [f"Invalid field '{self.invalid_field}' on '{self.model_name}'."]
        if self.reason:
            lines[0] += f" {self.reason}"
        if self.suggestions:
            lines.append("Did you mean one of these?")
            for s in self.suggestions:
                lines.append(f"  • {s}")

        sorted_fields = sorted(self.available_fields)
        preview = ", ".join(sorted_fields[:15])
        if len(sorted_fields) > 15:
            preview += ", ..."
        lines.append(f"Available fields: {preview}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_FOUND",
            "field": self.invalid_field,
            "model": self.model_name,
            "reason": self.reason,
            "suggestions": self.suggestions,
            "available_fields": sorted(self.available_fields),
        }


class EstimationError(FilterError):
    """Row-count estimation produced no usable figure."""

    def __init__(self, dialect: str, table: str, detail: str) -> None:
        self.dialect = dialect
        self.table = table
        super().__init__(f"{dialect} row estimate for '{table}' failed: {detail}")
