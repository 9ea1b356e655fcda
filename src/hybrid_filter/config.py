"""
Engine configuration.

``FilterConfig`` is a plain immutable value passed at construction time.
Nothing here reads the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_MAX_DEPTH = 3
DEFAULT_PAGE_SIZE = 30
DEFAULT_HYBRID_THRESHOLD = 10_000
DEFAULT_PARALLEL_MIN_CHUNK = 1_000


@dataclass(frozen=True)
class FilterConfig:
    """
    Immutable engine settings.

    Attributes:
        max_depth: Maximum number of relation hops in a field path.
            ``account.currency.code`` has two hops and a leaf; ``0``
            restricts filters to the record's own attributes.
        default_page_size: Page size used when the caller passes a
            non-positive one.
        hybrid_threshold: Estimated row count at or below which the hybrid
            filter evaluates in memory.
        strict_fields: Raise ``FieldNotFoundError`` for unknown or too-deep
            paths instead of dropping them.
        max_workers: Upper bound on in-memory filter threads
            (``None`` = ``os.cpu_count()``).
        parallel_min_chunk: Smallest chunk handed to a worker thread.
            Inputs shorter than two chunks are filtered sequentially.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    default_page_size: int = DEFAULT_PAGE_SIZE
    hybrid_threshold: int = DEFAULT_HYBRID_THRESHOLD
    strict_fields: bool = False
    max_workers: int | None = None
    parallel_min_chunk: int = DEFAULT_PARALLEL_MIN_CHUNK

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.default_page_size < 1:
            raise ValueError(
                f"default_page_size must be >= 1, got {self.default_page_size}"
            )
        if self.hybrid_threshold < 0:
            raise ValueError(
                f"hybrid_threshold must be >= 0, got {self.hybrid_threshold}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.parallel_min_chunk < 1:
            raise ValueError(
                f"parallel_min_chunk must be >= 1, got {self.parallel_min_chunk}"
            )

    def with_strict_fields(self, strict: bool = True) -> FilterConfig:
        """Return a copy with strict field resolution toggled."""
        return replace(self, strict_fields=strict)

    def with_threshold(self, threshold: int) -> FilterConfig:
        """Return a copy with a different hybrid threshold."""
        return replace(self, hybrid_threshold=threshold)

    def with_parallelism(
        self,
        max_workers: int | None = None,
        parallel_min_chunk: int | None = None,
    ) -> FilterConfig:
        """Return a copy with updated in-memory parallelism bounds."""
        return replace(
            self,
            max_workers=max_workers if max_workers is not None else self.max_workers,
            parallel_min_chunk=(
                parallel_min_chunk
                if parallel_min_chunk is not None
                else self.parallel_min_chunk
            ),
        )


DEFAULT_CONFIG = FilterConfig()
