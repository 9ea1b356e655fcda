"""
In-memory filter evaluation.

``MemoryFilter`` applies a ``FilterSpecification`` to records that are
already loaded::

    users = MemoryFilter(User)
    page = users.evaluate(records, spec, page_index=0, page_size=20)

The specification is compiled once per call (field resolution plus
condition parsing) before any record is touched, so invalid values fail
even on empty input. Predicate evaluation may be split across a thread
pool in contiguous chunks; the chunks are re-joined in input order
before the stable sort, so the output never depends on the split.
"""

from __future__ import annotations

import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import cmp_to_key
from itertools import chain
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .config import DEFAULT_CONFIG, FilterConfig
from .models import Logic
from .operators_memory import DEFAULT_MEMORY_REGISTRY
from .pagination import paginate
from .resolver import FieldAccessor, FieldResolver
from .semantics import Condition, build_condition, evaluate_condition, order_values

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from .evaluator import MemoryOperatorRegistry
    from .models import FilterSpecification
    from .pagination import PaginationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Predicate:
    accessor: FieldAccessor
    condition: Condition

    def test(self, record: Any, registry: MemoryOperatorRegistry) -> bool:
        return evaluate_condition(self.condition, self.accessor.read(record), registry)


@dataclass(frozen=True)
class SortKey:
    accessor: FieldAccessor
    descending: bool


@dataclass(frozen=True)
class CompiledFilter:
    """A specification with every field resolved and every value parsed."""

    logic: Logic
    predicates: tuple[Predicate, ...]
    sort_keys: tuple[SortKey, ...]


def compile_specification(
    spec: FilterSpecification, resolver: FieldResolver
) -> CompiledFilter:
    """
    Resolve and parse ``spec`` against a record type.

    Filters and sort fields whose path has no accessor are left out.

    Raises:
        FilterValueError: For unparseable values (``RangeError`` for
            inverted ranges).
        UnsupportedModeError: For a mode the data type does not support.
        FieldNotFoundError: For unresolvable paths in strict mode.
    """
    predicates: list[Predicate] = []
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
        predicates.append(Predicate(accessor, condition))

    sort_keys: list[SortKey] = []
    for sort_field in spec.sort_fields:
        accessor = resolver.resolve(sort_field.field)
        if accessor is not None:
            sort_keys.append(SortKey(accessor, sort_field.descending))

    return CompiledFilter(spec.logic, tuple(predicates), tuple(sort_keys))


class MemoryFilter(Generic[T]):
    """
    Filter, sort and paginate in-memory records of one type.

    Args:
        record_type: Type used to resolve field paths (a pydantic model,
            dataclass, annotated class, SQLAlchemy model, or ``dict``).
        config: Engine settings.
        registry: Operator registry; defaults to the built-in one.
    """

    def __init__(
        self,
        record_type: type[T],
        *,
        config: FilterConfig | None = None,
        registry: MemoryOperatorRegistry | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.resolver = FieldResolver(record_type, self.config)
        self.registry = registry or DEFAULT_MEMORY_REGISTRY

    def compile(self, spec: FilterSpecification) -> CompiledFilter:
        return compile_specification(spec, self.resolver)

    # -- public API ----------------------------------------------------------

    def evaluate(
        self,
        records: Iterable[T],
        spec: FilterSpecification,
        page_index: int | None = 0,
        page_size: int | None = 0,
    ) -> PaginationResult[T]:
        """Return one page of the filtered, sorted records."""
        matched = self.evaluate_all(records, spec)
        return paginate(
            matched,
            page_index,
            page_size,
            default_page_size=self.config.default_page_size,
        )

    def evaluate_all(self, records: Iterable[T], spec: FilterSpecification) -> list[T]:
        """Return every matching record, sorted, without paginating."""
        return self.apply(records, self.compile(spec))

    def apply(self, records: Iterable[T], compiled: CompiledFilter) -> list[T]:
        """Filter and sort with an already compiled specification."""
        items = records if isinstance(records, list | tuple) else list(records)
        matched = self._filter(items, compiled)
        logger.debug(
            "In-memory filter on %s matched %d of %d records",
            self.resolver.model_name,
            len(matched),
            len(items),
        )
        return self._sort(matched, compiled.sort_keys)

    # -- filtering -----------------------------------------------------------

    def _matcher(self, compiled: CompiledFilter) -> Callable[[Any], bool]:
        predicates = compiled.predicates
        registry = self.registry
        if compiled.logic is Logic.OR:
            return lambda record: any(p.test(record, registry) for p in predicates)
        return lambda record: all(p.test(record, registry) for p in predicates)

    def _worker_count(self, size: int) -> int:
        limit = self.config.max_workers or os.cpu_count() or 1
        return max(1, min(limit, size // self.config.parallel_min_chunk))

    def _filter(self, items: Sequence[T], compiled: CompiledFilter) -> list[T]:
        if not compiled.predicates:
            return list(items)

        matches = self._matcher(compiled)
        workers = self._worker_count(len(items))
        if workers == 1:
            return [record for record in items if matches(record)]

        chunk = math.ceil(len(items) / workers)
        chunks = [items[start : start + chunk] for start in range(0, len(items), chunk)]
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="hybrid-filter"
        ) as pool:
            parts = pool.map(
                lambda part: [record for record in part if matches(record)], chunks
            )
            return list(chain.from_iterable(parts))

    # -- sorting -------------------------------------------------------------

    @staticmethod
    def _sort(items: list[T], sort_keys: Sequence[SortKey]) -> list[T]:
        if not sort_keys:
            return items

        def compare(left: tuple[Any, ...], right: tuple[Any, ...]) -> int:
            for key, a, b in zip(sort_keys, left[0], right[0], strict=True):
                result = order_values(a, b)
                if result:
                    return -result if key.descending else result
            return 0

        decorated = [
            (tuple(key.accessor.read(item) for key in sort_keys), item)
            for item in items
        ]
        decorated.sort(key=cmp_to_key(compare))
        return [item for _, item in decorated]
