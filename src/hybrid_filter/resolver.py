"""
Field path resolution.

Maps dotted external field names (``account.currency.code``) onto
internal attribute chains for a record type. Record types are
introspected once:

- SQLAlchemy mapped classes: column attributes and relationships
  (external name = attribute key, or ``info={"alias": ...}``);
- pydantic models: fields by ``serialization_alias`` / ``alias``;
- dataclasses: fields by ``metadata={"alias": ...}``;
- other annotated classes: annotated attribute names.

Only to-one relations are traversed. A path with more than
``FilterConfig.max_depth`` relation hops, a path through a to-many
relation, or an unknown path has no accessor. A path with no exact match
falls back to a case-insensitive match when that is unambiguous. Mapping
record types (``dict``) are schemaless: every path within the depth limit
resolves to key lookups.

The accessor maps are cached process-wide per ``(type, max_depth)`` and
never mutated after being published.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from .config import DEFAULT_CONFIG, FilterConfig
from .exceptions import FieldNotFoundError

logger = logging.getLogger(__name__)

_COLLECTION_ORIGINS = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class Member:
    """One introspected attribute of a record type."""

    name: str
    attribute: str
    target: type | None = None
    to_many: bool = False
    value_type: type | None = None


@dataclass(frozen=True)
class FieldAccessor:
    """
    Resolved field path.

    Attributes:
        path: The external dotted path as requested.
        attributes: Internal attribute names, one per segment. All but
            the last name a to-one relation.
        value_type: Declared Python type of the leaf, when known.
    """

    path: str
    attributes: tuple[str, ...]
    value_type: type | None = None

    @property
    def relations(self) -> tuple[str, ...]:
        return self.attributes[:-1]

    @property
    def column(self) -> str:
        return self.attributes[-1]

    def read(self, record: Any) -> Any:
        """Read the value off ``record``; a missing link yields ``None``."""
        value = record
        for name in self.attributes:
            if value is None:
                return None
            if isinstance(value, Mapping):
                value = value.get(name)
            else:
                value = getattr(value, name, None)
        return value


# ---------------------------------------------------------------------------
# Type introspection
# ---------------------------------------------------------------------------

_MEMBER_CACHE: dict[type, Mapping[str, Member] | None] = {}
_ACCESSOR_CACHE: dict[tuple[type, int], Mapping[str, FieldAccessor] | None] = {}


def _mapper_of(cls: Any) -> Mapper[Any] | None:
    if not isinstance(cls, type):
        return None
    mapper = sa_inspect(cls, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def _is_record_type(cls: Any) -> bool:
    if not isinstance(cls, type) or issubclass(cls, Enum):
        return False
    if issubclass(cls, BaseModel) or dataclasses.is_dataclass(cls):
        return True
    if _mapper_of(cls) is not None:
        return True
    return cls.__module__ != "builtins" and bool(
        getattr(cls, "__annotations__", None)
    )


def _relation_target(annotation: Any) -> tuple[type | None, bool]:
    """Return ``(record type, to_many)`` for an annotation, if it is a relation."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return _relation_target(args[0])
        return None, False
    if origin in _COLLECTION_ORIGINS or (
        isinstance(origin, type) and issubclass(origin, Sequence)
    ):
        args = typing.get_args(annotation)
        inner = args[0] if args else None
        return (inner if _is_record_type(inner) else None), True
    if _is_record_type(annotation):
        return annotation, False
    return None, False


def _leaf_type(annotation: Any) -> type | None:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return _leaf_type(args[0]) if len(args) == 1 else None
    if origin is not None:
        return None
    return annotation if isinstance(annotation, type) else None


def _column_type(column: Any) -> type | None:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return None
    return python_type if isinstance(python_type, type) else None


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return dict(getattr(cls, "__annotations__", {}))


def _describe_mapped(mapper: Mapper[Any]) -> dict[str, Member]:
    members: dict[str, Member] = {}
    for prop in mapper.column_attrs:
        column = prop.columns[0]
        name = column.info.get("alias", prop.key)
        members[name] = Member(
            name=name, attribute=prop.key, value_type=_column_type(column)
        )
    for rel in mapper.relationships:
        name = rel.info.get("alias", rel.key)
        members[name] = Member(
            name=name,
            attribute=rel.key,
            target=rel.mapper.class_,
            to_many=bool(rel.uselist),
        )
    return members


def _describe_pydantic(cls: type[BaseModel]) -> dict[str, Member]:
    members: dict[str, Member] = {}
    for attr, info in cls.model_fields.items():
        name = info.serialization_alias or info.alias or attr
        target, to_many = _relation_target(info.annotation)
        members[name] = Member(
            name=name,
            attribute=attr,
            target=target,
            to_many=to_many,
            value_type=_leaf_type(info.annotation),
        )
    return members


def _describe_dataclass(cls: type) -> dict[str, Member]:
    hints = _type_hints(cls)
    members: dict[str, Member] = {}
    for f in dataclasses.fields(cls):
        name = f.metadata.get("alias", f.name)
        annotation = hints.get(f.name, f.type)
        target, to_many = _relation_target(annotation)
        members[name] = Member(
            name=name,
            attribute=f.name,
            target=target,
            to_many=to_many,
            value_type=_leaf_type(annotation),
        )
    return members


def _describe_annotated(cls: type) -> dict[str, Member]:
    members: dict[str, Member] = {}
    for attr, annotation in _type_hints(cls).items():
        if attr.startswith("_"):
            continue
        target, to_many = _relation_target(annotation)
        members[attr] = Member(
            name=attr,
            attribute=attr,
            target=target,
            to_many=to_many,
            value_type=_leaf_type(annotation),
        )
    return members


def describe_type(record_type: type) -> Mapping[str, Member] | None:
    """
    Return the members of ``record_type`` keyed by external name.

    Returns ``None`` for schemaless record types (mappings, or types
    exposing no annotations).
    """
    if record_type in _MEMBER_CACHE:
        return _MEMBER_CACHE[record_type]

    members: dict[str, Member] | None
    mapper = _mapper_of(record_type)
    if mapper is not None:
        members = _describe_mapped(mapper)
    elif isinstance(record_type, type) and issubclass(record_type, BaseModel):
        members = _describe_pydantic(record_type)
    elif dataclasses.is_dataclass(record_type):
        members = _describe_dataclass(record_type)
    elif isinstance(record_type, type) and issubclass(record_type, Mapping):
        members = None
    else:
        members = _describe_annotated(record_type) or None

    published = MappingProxyType(members) if members is not None else None
    return _MEMBER_CACHE.setdefault(record_type, published)


def _walk(
    cls: type,
    ext_prefix: tuple[str, ...],
    attr_prefix: tuple[str, ...],
    remaining: int,
    out: dict[str, FieldAccessor],
) -> None:
    members = describe_type(cls)
    if not members:
        return
    for member in members.values():
        ext = (*ext_prefix, member.name)
        attrs = (*attr_prefix, member.attribute)
        if member.target is None:
            path = ".".join(ext)
            out[path] = FieldAccessor(
                path=path, attributes=attrs, value_type=member.value_type
            )
        elif not member.to_many and remaining > 0:
            _walk(member.target, ext, attrs, remaining - 1, out)


def build_accessors(
    record_type: type, max_depth: int
) -> Mapping[str, FieldAccessor] | None:
    """
    Build (or fetch from cache) every accessor of ``record_type``.

    Returns ``None`` for schemaless record types.
    """
    key = (record_type, max_depth)
    if key in _ACCESSOR_CACHE:
        return _ACCESSOR_CACHE[key]

    accessors: Mapping[str, FieldAccessor] | None = None
    if describe_type(record_type) is not None:
        found: dict[str, FieldAccessor] = {}
        _walk(record_type, (), (), max_depth, found)
        accessors = MappingProxyType(found)
    return _ACCESSOR_CACHE.setdefault(key, accessors)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class FieldResolver:
    """
    Resolve field paths for one record type under a ``FilterConfig``.

    Unresolvable paths return ``None`` (and are logged) unless
    ``config.strict_fields`` is set, in which case ``FieldNotFoundError``
    is raised.
    """

    def __init__(self, record_type: type, config: FilterConfig | None = None) -> None:
        self.record_type = record_type
        self.config = config or DEFAULT_CONFIG
        self._accessors = build_accessors(record_type, self.config.max_depth)
        self._folded = _fold(self._accessors or {})

    @property
    def model_name(self) -> str:
        return getattr(self.record_type, "__name__", repr(self.record_type))

    @property
    def accessors(self) -> Mapping[str, FieldAccessor]:
        return self._accessors or MappingProxyType({})

    def resolve(self, path: str) -> FieldAccessor | None:
        """Return the accessor for ``path``, or ``None`` when it is dropped."""
        segments = tuple(s for s in path.split(".") if s)
        if not segments:
            return self._reject(path)
        if len(segments) - 1 > self.config.max_depth:
            return self._too_deep(path)
        if self._accessors is None:
            return FieldAccessor(path=path, attributes=segments)
        accessor = self._accessors.get(path) or self._folded.get(path.lower())
        if accessor is None:
            return self._reject(path)
        return accessor

    def resolve_relation(self, path: str) -> tuple[str, ...] | None:
        """
        Resolve a dotted relation path (used for eager loading) to the
        internal relationship attribute names. Every segment is a hop.
        """
        segments = [s for s in path.split(".") if s]
        if not segments:
            return self._reject(path)
        if len(segments) > self.config.max_depth:
            return self._too_deep(path)
        cls: type | None = self.record_type
        attributes: list[str] = []
        for segment in segments:
            members = describe_type(cls) if cls is not None else None
            member = _member(members, segment) if members else None
            if member is None or member.target is None:
                return self._reject(path, "Not a relation.")
            attributes.append(member.attribute)
            cls = member.target
        return tuple(attributes)

    def _too_deep(self, path: str) -> None:
        return self._reject(
            path,
            f"Path exceeds the maximum relation depth of {self.config.max_depth}.",
        )

    def _reject(self, path: str, reason: str | None = None) -> None:
        if self.config.strict_fields:
            raise FieldNotFoundError(
                path, self.model_name, list(self.accessors), reason=reason
            )
        logger.warning(
            "Dropping unresolvable field '%s' on %s%s",
            path,
            self.model_name,
            f": {reason}" if reason else "",
        )
        return None


def _fold(accessors: Mapping[str, FieldAccessor]) -> dict[str, FieldAccessor]:
    """Lower-cased path index; paths that collide once folded are left out."""
    folded: dict[str, FieldAccessor] = {}
    collisions: set[str] = set()
    for path, accessor in accessors.items():
        key = path.lower()
        if key in folded:
            collisions.add(key)
        folded[key] = accessor
    for key in collisions:
        del folded[key]
    return folded


def _member(members: Mapping[str, Member], segment: str) -> Member | None:
    member = members.get(segment)
    if member is not None:
        return member
    matches = [m for name, m in members.items() if name.lower() == segment.lower()]
    return matches[0] if len(matches) == 1 else None
