"""Tests for dialect-keyed row estimation."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect as sa_inspect
from sqlalchemy import text

from hybrid_filter.exceptions import EstimationError
from hybrid_filter.relational.estimators import (
    CountEstimator,
    EstimatorRegistry,
    MySQLEstimator,
    PostgresEstimator,
    SQLiteEstimator,
    _as_count,
    build_default_estimators,
)

from .models import UserRecord

USERS = sa_inspect(UserRecord).local_table


async def test_count_estimator(seeded):
    assert await CountEstimator().estimate(seeded, USERS) == 5


async def test_sqlite_without_statistics_counts(seeded):
    assert await SQLiteEstimator().estimate(seeded, USERS) == 5


async def test_sqlite_reads_analyze_statistics(seeded):
    await seeded.execute(text("ANALYZE"))
    await seeded.execute(
        text("INSERT INTO users (id, name) VALUES (6, 'Eve'), (7, 'Frank')")
    )
    # sqlite_stat1 still reflects the table as analyzed.
    assert await SQLiteEstimator().estimate(seeded, USERS) == 5
    assert await CountEstimator().estimate(seeded, USERS) == 7


async def test_registry_dispatches_on_session_dialect(seeded):
    registry = build_default_estimators()
    assert isinstance(registry.get("sqlite"), SQLiteEstimator)
    assert await registry.estimate(seeded, UserRecord) == 5


def test_default_registry_contents():
    registry = build_default_estimators()
    for dialect in ("postgresql", "mysql", "mariadb", "sqlite", "mssql"):
        assert registry.get(dialect).dialect == dialect
    assert isinstance(registry.get("postgresql"), PostgresEstimator)
    assert registry.get("mariadb").dialect == "mariadb"
    assert isinstance(registry.get("oracle"), CountEstimator)


def test_registry_accepts_custom_fallback():
    fallback = MySQLEstimator("custom")
    registry = EstimatorRegistry(fallback=fallback)
    assert registry.get("anything") is fallback


@pytest.mark.parametrize(("raw", "expected"), [(12, 12), ("40", 40), (3.7, 3)])
def test_as_count(raw, expected):
    assert _as_count("postgresql", USERS, raw) == expected


@pytest.mark.parametrize("raw", [None, "n/a", -1])
def test_as_count_rejects(raw):
    with pytest.raises(EstimationError, match="users"):
        _as_count("postgresql", USERS, raw)
