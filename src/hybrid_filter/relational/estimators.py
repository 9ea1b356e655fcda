"""
Dialect-keyed row-count estimators.

The hybrid filter only needs a cheap signal of table size. Each
estimator reads the dialect's own statistics where one exists and
``COUNT(*)`` is the universal fallback:

=============  ==========================================
dialect        source
=============  ==========================================
postgresql     ``pg_class.reltuples``
mysql/mariadb  ``INFORMATION_SCHEMA.TABLES.TABLE_ROWS``
sqlite         ``sqlite_stat1`` (after ``ANALYZE``), else count
mssql          ``sys.partitions`` (heap or clustered index)
other          ``COUNT(*)``
=============  ==========================================

The table name is always passed as a bound parameter.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, text
from sqlalchemy import inspect as sa_inspect

from ..exceptions import EstimationError

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class RowEstimator(ABC):
    """Strategy interface for approximate row counts."""

    @property
    @abstractmethod
    def dialect(self) -> str:
        """Dialect name as reported by ``engine.dialect.name``."""
        ...

    @abstractmethod
    async def estimate(self, session: AsyncSession, table: Table) -> int:
        """Return an approximate number of rows in ``table``."""
        ...


def _as_count(dialect: str, table: Table, raw: Any) -> int:
    if raw is None:
        raise EstimationError(dialect, table.name, "no statistics row")
    try:
        rows = int(raw)
    except (TypeError, ValueError) as exc:
        raise EstimationError(dialect, table.name, f"unreadable {raw!r}") from exc
    if rows < 0:
        raise EstimationError(dialect, table.name, "table has not been analyzed")
    return rows


class CountEstimator(RowEstimator):
    """Exact ``COUNT(*)``; used for unknown dialects."""

    @property
    def dialect(self) -> str:
        return "default"

    async def estimate(self, session: AsyncSession, table: Table) -> int:
        result = await session.execute(select(func.count()).select_from(table))
        return int(result.scalar_one())


class PostgresEstimator(RowEstimator):
    _QUERY = text(
        "SELECT CAST(reltuples AS BIGINT) FROM pg_class WHERE relname = :table"
    )

    @property
    def dialect(self) -> str:
        return "postgresql"

    async def estimate(self, session: AsyncSession, table: Table) -> int:
        result = await session.execute(self._QUERY, {"table": table.name})
        return _as_count(self.dialect, table, result.scalar())


class MySQLEstimator(RowEstimator):
    _QUERY = text(
        "SELECT TABLE_ROWS FROM INFORMATION_SCHEMA.TABLES "
        "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table"
    )

    def __init__(self, dialect: str = "mysql") -> None:
        self._dialect = dialect

    @property
    def dialect(self) -> str:
        return self._dialect

    async def estimate(self, session: AsyncSession, table: Table) -> int:
        result = await session.execute(self._QUERY, {"table": table.name})
        return _as_count(self.dialect, table, result.scalar())


class SQLiteEstimator(RowEstimator):
    """``sqlite_stat1`` when ``ANALYZE`` has populated it, otherwise count."""

    _HAS_STATS = text(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_stat1'"
    )
    _STATS = text("SELECT stat FROM sqlite_stat1 WHERE tbl = :table LIMIT 1")

    @property
    def dialect(self) -> str:
        return "sqlite"

    async def estimate(self, session: AsyncSession, table: Table) -> int:
        has_stats = (await session.execute(self._HAS_STATS)).scalar()
        if has_stats:
            stat = (await session.execute(self._STATS, {"table": table.name})).scalar()
            if stat:
                # "<rows> <avg rows per index key> ..."
                first = str(stat).split(" ", 1)[0]
                if first.isdigit():
                    return int(first)
        return await CountEstimator().estimate(session, table)


class SQLServerEstimator(RowEstimator):
    _QUERY = text(
        "SELECT SUM(p.rows) FROM sys.partitions p "
        "JOIN sys.objects o ON p.object_id = o.object_id "
        "WHERE o.name = :table AND p.index_id IN (0, 1)"
    )

    @property
    def dialect(self) -> str:
        return "mssql"

    async def estimate(self, session: AsyncSession, table: Table) -> int:
        result = await session.execute(self._QUERY, {"table": table.name})
        return _as_count(self.dialect, table, result.scalar())


class EstimatorRegistry:
    """
    Registry of ``RowEstimator`` instances keyed by dialect name.

    Dialects without a registered estimator use ``COUNT(*)``.
    """

    def __init__(self, fallback: RowEstimator | None = None) -> None:
        self._estimators: dict[str, RowEstimator] = {}
        self._fallback = fallback or CountEstimator()

    def register(self, *estimators: RowEstimator) -> None:
        for estimator in estimators:
            self._estimators[estimator.dialect] = estimator

    def get(self, dialect: str) -> RowEstimator:
        return self._estimators.get(dialect, self._fallback)

    async def estimate(self, session: AsyncSession, model: type[Any]) -> int:
        """Estimate the row count of ``model``'s table on ``session``'s bind."""
        dialect = session.get_bind().dialect.name
        table = sa_inspect(model).local_table
        estimator = self.get(dialect)
        rows = await estimator.estimate(session, table)
        logger.debug(
            "Estimated %d rows in %s via %s", rows, table.name, type(estimator).__name__
        )
        return rows


def build_default_estimators() -> EstimatorRegistry:
    registry = EstimatorRegistry()
    registry.register(
        PostgresEstimator(),
        MySQLEstimator("mysql"),
        MySQLEstimator("mariadb"),
        SQLiteEstimator(),
        SQLServerEstimator(),
    )
    return registry
