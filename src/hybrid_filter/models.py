"""
Filter specification data model.

The models accept the camelCase wire keys (``filterDataType``,
``sortFields``, ``from``) as well as their snake_case Python names::

    spec = FilterSpecification.from_dict(
        {
            "logic": "or",
            "filters": [
                {"field": "role", "mode": "equal", "filterDataType": "text",
                 "value": "admin"},
                {"field": "account.name", "mode": "startsWith",
                 "filterDataType": "text", "value": "acme"},
            ],
            "sortFields": [{"field": "id", "order": "asc"}],
        }
    )
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError


class _CaseInsensitiveEnum(str, Enum):
    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class Mode(_CaseInsensitiveEnum):
    """Comparison applied by a single field filter."""

    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    RANGE = "range"
    BEFORE = "before"
    AFTER = "after"


class DataType(_CaseInsensitiveEnum):
    """Semantic type governing how values are parsed and compared."""

    TEXT = "text"
    NUMBER = "number"
    BOOL = "bool"
    DATE = "date"
    TIME = "time"


class Logic(_CaseInsensitiveEnum):
    AND = "and"
    OR = "or"


class SortOrder(_CaseInsensitiveEnum):
    ASC = "asc"
    DESC = "desc"


class FilterRange(BaseModel):
    """Inclusive ``from``/``to`` bounds for ``range`` filters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: Any = Field(default=None, alias="from")
    to: Any = None


class FieldFilter(BaseModel):
    """One atomic condition on a dotted field path."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field: str
    mode: Mode
    data_type: DataType = Field(default=DataType.TEXT, alias="filterDataType")
    value: Any = None


class SortField(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field: str
    order: SortOrder = SortOrder.ASC

    @property
    def descending(self) -> bool:
        return self.order is SortOrder.DESC


class FilterSpecification(BaseModel):
    """
    A flat list of field filters joined by a single logic operator,
    plus sort fields and relations to eager-load.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    logic: Logic = Logic.AND
    filters: list[FieldFilter] = Field(default_factory=list)
    sort_fields: list[SortField] = Field(default_factory=list, alias="sortFields")
    preload: list[str] = Field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterSpecification:
        """
        Build a specification from a wire-format dictionary.

        Raises:
            ValidationError: If the document does not describe a valid
                specification.
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            path = ".".join(str(p) for p in first.get("loc", ()))
            raise ValidationError(
                f"Invalid filter specification: {first.get('msg')}",
                path=path or None,
            ) from exc

    @classmethod
    def from_json(cls, raw: str | bytes) -> FilterSpecification:
        """Parse a JSON document into a specification."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid JSON: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise ValidationError("Filter specification must be a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the wire format."""
        return self.model_dump(mode="json", by_alias=True)
