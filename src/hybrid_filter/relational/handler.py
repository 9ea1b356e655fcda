"""
Database-side filtering on an ``AsyncSession``.

``SQLAlchemyFilter`` runs a translated specification as two statements
sharing one compiled WHERE clause: a ``COUNT`` over the filtered rows,
then the ordered, paged fetch.

Preset conditions scope every statement (count, page and full fetch),
e.g. to a tenant::

    accounts = SQLAlchemyFilter(Account)
    page = await accounts.execute(
        session, spec, page_index=0, page_size=20,
        preset={"organization_id": org_id},
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.orm import selectinload

from ..config import DEFAULT_CONFIG, FilterConfig
from ..pagination import PaginationResult, normalize_page
from ..resolver import FieldResolver
from .compiler import Translation, primary_key_columns, translate

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm.strategy_options import Load

    from ..models import FilterSpecification
    from .strategy import SQLAlchemyOperatorRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

Preset = ColumnElement[bool] | Mapping[str, Any] | Sequence[ColumnElement[bool]]


class SQLAlchemyFilter(Generic[T]):
    """
    Filter, sort and paginate a mapped model in the database.

    Args:
        model: The SQLAlchemy mapped class.
        config: Engine settings.
        registry: Optional custom operator registry.
    """

    def __init__(
        self,
        model: type[T],
        *,
        config: FilterConfig | None = None,
        registry: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self.model = model
        self.config = config or DEFAULT_CONFIG
        self.registry = registry
        self.resolver = FieldResolver(model, self.config)

    def translate(self, spec: FilterSpecification) -> Translation:
        return translate(
            self.model,
            spec,
            config=self.config,
            registry=self.registry,
            resolver=self.resolver,
        )

    # -- statement building --------------------------------------------------

    def _preset_clauses(self, preset: Preset | None) -> list[ColumnElement[bool]]:
        if preset is None:
            return []
        if isinstance(preset, Mapping):
            return [getattr(self.model, key) == value for key, value in preset.items()]
        if isinstance(preset, ColumnElement):
            return [preset]
        return list(preset)

    def base_statement(self, preset: Preset | None = None) -> Select[Any]:
        """``SELECT model`` with the preset conditions applied."""
        stmt = select(self.model)
        clauses = self._preset_clauses(preset)
        if clauses:
            stmt = stmt.where(*clauses)
        return stmt

    def load_options(self, paths: Iterable[Sequence[str]]) -> list[Load]:
        """
        ``selectinload`` chains for relationship attribute paths.

        Each path is a sequence of internal relationship attribute names,
        e.g. ``("account", "currency")``.
        """
        options: list[Load] = []
        seen: set[tuple[str, ...]] = set()
        for path in paths:
            key = tuple(path)
            if not key or key in seen:
                continue
            seen.add(key)
            entity: Any = self.model
            option: Any = None
            for attribute in key:
                relationship = getattr(entity, attribute)
                option = (
                    selectinload(relationship)
                    if option is None
                    else option.selectinload(relationship)
                )
                entity = relationship.property.mapper.class_
            options.append(option)
        return options

    def preload_options(self, names: Iterable[str]) -> list[Load]:
        """Eager-load options for the external relation names in ``preload``."""
        paths = []
        for name in names:
            attributes = self.resolver.resolve_relation(name)
            if attributes is not None:
                paths.append(attributes)
        return self.load_options(paths)

    # -- execution -----------------------------------------------------------

    async def count(
        self,
        session: AsyncSession,
        spec: FilterSpecification,
        *,
        preset: Preset | None = None,
    ) -> int:
        """Number of rows matching ``spec``."""
        filtered = self.translate(spec).apply_filter(self.base_statement(preset))
        return await self._count(session, filtered)

    async def _count(self, session: AsyncSession, filtered: Select[Any]) -> int:
        stmt = select(func.count()).select_from(filtered.order_by(None).subquery())
        return int((await session.execute(stmt)).scalar_one())

    async def execute(
        self,
        session: AsyncSession,
        spec: FilterSpecification,
        page_index: int | None = 0,
        page_size: int | None = 0,
        *,
        preset: Preset | None = None,
    ) -> PaginationResult[T]:
        """Count, then fetch one ordered page."""
        page = normalize_page(page_index, page_size, self.config.default_page_size)
        translation = self.translate(spec)
        filtered = translation.apply_filter(self.base_statement(preset))

        total = await self._count(session, filtered)

        stmt = (
            filtered.order_by(*translation.order_by)
            .offset(page.offset)
            .limit(page.size)
            .options(*self.preload_options(spec.preload))
        )
        rows = list((await session.execute(stmt)).scalars().all())
        logger.debug(
            "Relational filter on %s: %d matching, page %d returned %d rows",
            self.model.__name__,
            total,
            page.index,
            len(rows),
        )
        return PaginationResult.assemble(rows, total, page)

    async def execute_all(
        self,
        session: AsyncSession,
        spec: FilterSpecification,
        *,
        preset: Preset | None = None,
    ) -> list[T]:
        """Every matching row, ordered, without paginating."""
        translation = self.translate(spec)
        stmt = translation.apply(self.base_statement(preset)).options(
            *self.preload_options(spec.preload)
        )
        return list((await session.execute(stmt)).scalars().all())

    async def fetch_all(
        self,
        session: AsyncSession,
        *,
        preset: Preset | None = None,
        options: Sequence[Load] = (),
    ) -> list[T]:
        """Every row in primary-key order, for in-memory evaluation."""
        stmt = (
            self.base_statement(preset)
            .order_by(*(column.asc() for column in primary_key_columns(self.model)))
            .options(*options)
        )
        return list((await session.execute(stmt)).scalars().all())
