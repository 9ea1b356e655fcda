"""
Compile a ``FilterSpecification`` into SQLAlchemy clauses.

``translate`` resolves every field path against a mapped model and
returns a :class:`Translation`:

- ``where``: the filters joined by the specification's logic, each value
  a bound parameter;
- ``order_by``: sort fields with explicit null placement, followed by
  the primary key as a tie-breaker;
- ``joins``: one ``LEFT OUTER JOIN`` per relation prefix used by a
  filter or sort field.

Columns reached through a relation come from an ``aliased()`` target,
so every column in WHERE/ORDER BY is qualified by its table or alias
and an OR across base and joined fields is never ambiguous.

Usage::

    translation = translate(User, spec)
    stmt = translation.apply(select(User))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, case, or_
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import aliased

from ..config import DEFAULT_CONFIG, FilterConfig
from ..models import DataType, Logic
from ..resolver import FieldAccessor, FieldResolver
from ..semantics import Condition, build_condition
from .expressions import (
    enumerated_values,
    is_date_column,
    match_enumerated,
    narrow_to_dates,
    project_column,
    sort_expression,
)
from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select

    from ..models import FilterSpecification
    from .strategy import SQLAlchemyOperatorRegistry


@dataclass(frozen=True)
class Translation:
    """WHERE, ORDER BY and JOIN clauses for one specification."""

    where: ColumnElement[bool] | None
    order_by: tuple[Any, ...] = ()
    joins: tuple[Any, ...] = ()

    def apply_filter(self, stmt: Select[Any]) -> Select[Any]:
        """Add the joins and WHERE clause, leaving ordering alone."""
        for target in self.joins:
            stmt = stmt.outerjoin(target)
        if self.where is not None:
            stmt = stmt.where(self.where)
        return stmt

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        """Add joins, WHERE and ORDER BY."""
        return self.apply_filter(stmt).order_by(*self.order_by)


@dataclass
class _JoinBuilder:
    """
    Alias cache for relation traversal.

    ``alias_cache`` maps a relation prefix (``("account", "currency")``)
    to the aliased entity joined for it, so each prefix joins once.
    """

    model: type[Any]
    alias_cache: dict[tuple[str, ...], Any] = field(default_factory=dict)
    joins: list[Any] = field(default_factory=list)

    def entity_for(self, relations: tuple[str, ...]) -> Any:
        entity: Any = self.model
        for depth in range(1, len(relations) + 1):
            prefix = relations[:depth]
            cached = self.alias_cache.get(prefix)
            if cached is None:
                relationship = getattr(entity, prefix[-1])
                target = relationship.property.mapper.class_
                cached = aliased(target)
                self.joins.append(relationship.of_type(cached))
                self.alias_cache[prefix] = cached
            entity = cached
        return entity

    def column(self, accessor: FieldAccessor) -> Any:
        return getattr(self.entity_for(accessor.relations), accessor.column)


def compile_condition(
    condition: Condition,
    column: Any,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """Compile one condition against a table-qualified column."""
    reg = registry or DEFAULT_SQLA_REGISTRY
    if condition.data_type is DataType.TEXT:
        values = enumerated_values(column)
        if values is not None:
            return match_enumerated(condition, column, values)
    if condition.data_type is DataType.DATE and is_date_column(column):
        condition = narrow_to_dates(condition)
    projected = project_column(condition.data_type, column)
    return reg.apply(condition.op, projected, condition.operand)


def _order_clauses(column: Any, descending: bool) -> tuple[Any, Any]:
    # NULLs first ascending, last descending, on every dialect.
    nulls = case((column.is_(None), 0), else_=1)
    key = sort_expression(column)
    if descending:
        return nulls.desc(), key.desc()
    return nulls.asc(), key.asc()


def translate(
    model: type[Any],
    spec: FilterSpecification,
    *,
    config: FilterConfig | None = None,
    registry: SQLAlchemyOperatorRegistry | None = None,
    resolver: FieldResolver | None = None,
) -> Translation:
    """
    Translate ``spec`` for the mapped ``model``.

    Args:
        model: The SQLAlchemy mapped class queried.
        spec: The filter specification.
        config: Engine settings (max depth, strict fields).
        registry: Optional custom operator registry.
        resolver: Optional pre-built resolver for ``model``.

    Raises:
        FilterValueError: For unparseable values (``RangeError`` for
            inverted ranges).
        UnsupportedModeError: For a mode the data type does not support.
        FieldNotFoundError: For unresolvable paths in strict mode.
    """
    resolver = resolver or FieldResolver(model, config or DEFAULT_CONFIG)
    joins = _JoinBuilder(model)

    clauses: list[ColumnElement[bool]] = []
    for field_filter in spec.filters:
        accessor = resolver.resolve(field_filter.field)
        if accessor is None:
            continue
        condition = build_condition(
            field_filter.data_type,
            field_filter.mode,
            field_filter.value,
            path=field_filter.field,
            value_type=accessor.value_type,
        )
        clauses.append(compile_condition(condition, joins.column(accessor), registry))

    where: ColumnElement[bool] | None = None
    if clauses:
        where = or_(*clauses) if spec.logic is Logic.OR else and_(*clauses)

    order_by: list[Any] = []
    for sort_field in spec.sort_fields:
        accessor = resolver.resolve(sort_field.field)
        if accessor is not None:
            order_by.extend(
                _order_clauses(joins.column(accessor), sort_field.descending)
            )
    order_by.extend(column.asc() for column in primary_key_columns(model))

    return Translation(where=where, order_by=tuple(order_by), joins=tuple(joins.joins))


def primary_key_columns(model: type[Any]) -> list[Any]:
    """Primary-key attributes of ``model``, in mapper order."""
    mapper = sa_inspect(model)
    return [
        getattr(model, mapper.get_property_by_column(column).key)
        for column in mapper.primary_key
    ]
