"""Relational backend: SQLAlchemy translation, execution and row estimation."""

from .compiler import Translation, compile_condition, translate
from .estimators import (
    CountEstimator,
    EstimatorRegistry,
    MySQLEstimator,
    PostgresEstimator,
    RowEstimator,
    SQLiteEstimator,
    SQLServerEstimator,
    build_default_estimators,
)
from .expressions import project_column, time_of_day
from .handler import Preset, SQLAlchemyFilter
from .operators import DEFAULT_SQLA_REGISTRY, build_default_registry
from .strategy import SQLAlchemyOperator, SQLAlchemyOperatorRegistry

__all__ = [
    # Translation
    "Translation",
    "translate",
    "compile_condition",
    "project_column",
    "time_of_day",
    # Execution
    "SQLAlchemyFilter",
    "Preset",
    # Strategy
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "DEFAULT_SQLA_REGISTRY",
    "build_default_registry",
    # Estimation
    "RowEstimator",
    "EstimatorRegistry",
    "CountEstimator",
    "PostgresEstimator",
    "MySQLEstimator",
    "SQLiteEstimator",
    "SQLServerEstimator",
    "build_default_estimators",
]
