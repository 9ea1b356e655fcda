"""
Backend selection by estimated table size.

``HybridSelector`` turns a cheap row estimate into a backend choice:
at or below the threshold the table is small enough to load and filter
in memory, above it the database does the work. An estimator that
fails never fails the request; the selector falls back to the
relational backend, which is memory-bounded.

``HybridFilter`` wires the selector to both backends for one model::

    users = HybridFilter(User, config=FilterConfig(hybrid_threshold=5_000))
    page = await users.execute(session, spec, page_index=0, page_size=20)

Whichever backend runs, the result is the same: matching rows, sort
order (ties broken by primary key) and page boundaries agree. The
estimate and the query are not run in one snapshot, so rows changing in
between may shift the choice but not the semantics.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .config import DEFAULT_CONFIG, FilterConfig
from .memory import MemoryFilter
from .pagination import paginate
from .relational.estimators import build_default_estimators
from .relational.handler import SQLAlchemyFilter

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from .models import FilterSpecification
    from .pagination import PaginationResult
    from .relational.estimators import EstimatorRegistry
    from .relational.handler import Preset

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Backend(str, Enum):
    MEMORY = "memory"
    RELATIONAL = "relational"


class HybridSelector:
    """Choose a backend from a row estimate and a threshold."""

    def __init__(self, threshold: int | None = None) -> None:
        self.threshold = (
            threshold if threshold is not None else DEFAULT_CONFIG.hybrid_threshold
        )

    def choose(self, estimate: int, threshold: int | None = None) -> Backend:
        limit = self.threshold if threshold is None else threshold
        return Backend.MEMORY if estimate <= limit else Backend.RELATIONAL

    async def select(
        self,
        estimate_fn: Callable[[], Awaitable[int]],
        threshold: int | None = None,
    ) -> Backend:
        """
        Run ``estimate_fn`` and pick a backend.

        Any failure of the estimator, or a result that is not an integer,
        selects ``Backend.RELATIONAL``.
        """
        try:
            estimate = await estimate_fn()
        except Exception as exc:
            logger.warning(
                "Row estimation failed, falling back to relational filtering: %s",
                exc,
            )
            return Backend.RELATIONAL
        if isinstance(estimate, bool) or not isinstance(estimate, int):
            logger.warning(
                "Row estimation returned %r, falling back to relational filtering",
                estimate,
            )
            return Backend.RELATIONAL
        backend = self.choose(estimate, threshold)
        logger.debug(
            "Estimated %d rows (threshold %d): using %s backend",
            estimate,
            self.threshold if threshold is None else threshold,
            backend.value,
        )
        return backend


class HybridFilter(Generic[T]):
    """
    Filter a mapped model in memory or in the database, whichever the
    estimated table size favours.

    Args:
        model: The SQLAlchemy mapped class.
        config: Engine settings; ``hybrid_threshold`` is the default
            threshold.
        estimators: Dialect-keyed row estimators.
    """

    def __init__(
        self,
        model: type[T],
        *,
        config: FilterConfig | None = None,
        estimators: EstimatorRegistry | None = None,
    ) -> None:
        self.model = model
        self.config = config or DEFAULT_CONFIG
        self.relational: SQLAlchemyFilter[T] = SQLAlchemyFilter(
            model, config=self.config
        )
        self.memory: MemoryFilter[T] = MemoryFilter(model, config=self.config)
        self.selector = HybridSelector(self.config.hybrid_threshold)
        self.estimators = estimators or build_default_estimators()

    async def choose_backend(
        self, session: AsyncSession, threshold: int | None = None
    ) -> Backend:
        return await self.selector.select(
            lambda: self.estimators.estimate(session, self.model), threshold
        )

    async def _filter_in_memory(
        self,
        session: AsyncSession,
        spec: FilterSpecification,
        preset: Preset | None,
    ) -> list[T]:
        compiled = self.memory.compile(spec)
        # Relations read by filters and sorts must be loaded up front.
        relation_paths: list[Any] = [p.accessor.relations for p in compiled.predicates]
        relation_paths.extend(k.accessor.relations for k in compiled.sort_keys)
        options = self.relational.load_options(relation_paths)
        options.extend(self.relational.preload_options(spec.preload))
        rows = await self.relational.fetch_all(session, preset=preset, options=options)
        return self.memory.apply(rows, compiled)

    async def execute(
        self,
        session: AsyncSession,
        spec: FilterSpecification,
        page_index: int | None = 0,
        page_size: int | None = 0,
        *,
        threshold: int | None = None,
        preset: Preset | None = None,
    ) -> PaginationResult[T]:
        """Return one page, evaluated by the backend the estimate selects."""
        backend = await self.choose_backend(session, threshold)
        if backend is Backend.MEMORY:
            matched = await self._filter_in_memory(session, spec, preset)
            return paginate(
                matched,
                page_index,
                page_size,
                default_page_size=self.config.default_page_size,
            )
        return await self.relational.execute(
            session, spec, page_index, page_size, preset=preset
        )

    async def execute_all(
        self,
        session: AsyncSession,
        spec: FilterSpecification,
        *,
        threshold: int | None = None,
        preset: Preset | None = None,
    ) -> list[T]:
        """Every matching row, without paginating."""
        backend = await self.choose_backend(session, threshold)
        if backend is Backend.MEMORY:
            return await self._filter_in_memory(session, spec, preset)
        return await self.relational.execute_all(session, spec, preset=preset)
