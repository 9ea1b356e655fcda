"""
Declarative filtering over in-memory records and SQLAlchemy models.

One ``FilterSpecification`` evaluates identically in memory
(``MemoryFilter``), in the database (``SQLAlchemyFilter``), or in
whichever of the two a row estimate favours (``HybridFilter``).
"""

from .config import FilterConfig
from .evaluator import MemoryOperator, MemoryOperatorRegistry
from .exceptions import (
    EstimationError,
    FieldNotFoundError,
    FilterError,
    FilterValueError,
    RangeError,
    UnsupportedModeError,
    ValidationError,
)
from .hybrid import Backend, HybridFilter, HybridSelector
from .memory import CompiledFilter, MemoryFilter, compile_specification
from .models import (
    DataType,
    FieldFilter,
    FilterRange,
    FilterSpecification,
    Logic,
    Mode,
    SortField,
    SortOrder,
)
from .operators_memory import build_default_registry
from .pagination import PageRequest, PaginationResult, normalize_page, paginate
from .relational import SQLAlchemyFilter, Translation, translate
from .resolver import FieldAccessor, FieldResolver
from .semantics import Condition, Operator, build_condition, compare, order

__all__ = [
    # Specification
    "FilterSpecification",
    "FieldFilter",
    "FilterRange",
    "SortField",
    "Mode",
    "DataType",
    "Logic",
    "SortOrder",
    # Configuration
    "FilterConfig",
    # Semantics
    "Operator",
    "Condition",
    "build_condition",
    "compare",
    "order",
    # Resolution
    "FieldAccessor",
    "FieldResolver",
    # Backends
    "MemoryFilter",
    "CompiledFilter",
    "compile_specification",
    "SQLAlchemyFilter",
    "Translation",
    "translate",
    "HybridFilter",
    "HybridSelector",
    "Backend",
    # Strategy
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "build_default_registry",
    # Pagination
    "PaginationResult",
    "PageRequest",
    "normalize_page",
    "paginate",
    # Exceptions
    "FilterError",
    "ValidationError",
    "FilterValueError",
    "RangeError",
    "UnsupportedModeError",
    "FieldNotFoundError",
    "EstimationError",
]
