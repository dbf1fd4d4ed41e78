"""
Schema descriptors: logical field names mapped to columns and value kinds.

A :class:`SchemaDescriptor` tells the compiler which physical column a
grid field refers to and how to coerce its raw text value. Descriptors are
built explicitly, or derived from a model:

- any class implementing ``__grid_schema__()`` (see :class:`SchemaProvider`)
- SQLAlchemy mapped classes (column attributes, via ``sqlalchemy.inspect``)
- pydantic models (``model_fields``; the alias is used as column name)
- dataclasses (``field(metadata={"column": ...})`` overrides the column)

Derivation is keyed by type and memoised in a :class:`SchemaCache`.
Share one cache across requests; it is safe for concurrent use and derives
each type at most once even under concurrent first use.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from .exceptions import SchemaResolutionError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"


@dataclass(frozen=True)
class FieldDescriptor:
    """One grid-addressable field.

    Attributes:
        name: Logical name used by the grid widget.
        column: Physical column name used in predicates.
        kind: Value kind driving coercion of raw text values.
        sql_type: Optional SQLAlchemy type used when binding values.
    """

    name: str
    column: str
    kind: FieldKind = FieldKind.TEXT
    sql_type: Any = None


class SchemaDescriptor:
    """Field descriptors indexed by logical name and by column name."""

    __slots__ = ("_by_column", "_by_name", "fields", "name")

    def __init__(self, name: str, fields: Iterable[FieldDescriptor]) -> None:
        self.name = name
        self.fields: tuple[FieldDescriptor, ...] = tuple(fields)
        self._by_name = {f.name: f for f in self.fields}
        self._by_column = {f.column: f for f in self.fields}

    @classmethod
    def of(cls, schema_name: str, /, **kinds: FieldKind) -> SchemaDescriptor:
        """Shorthand for descriptors whose columns equal their names."""
        return cls(schema_name, (FieldDescriptor(k, k, v) for k, v in kinds.items()))

    def lookup_field(self, name: str) -> FieldDescriptor | None:
        """Find a field by logical name, falling back to column name."""
        return self._by_name.get(name) or self._by_column.get(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup_field(name) is not None

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return f"SchemaDescriptor({self.name!r}, fields={len(self.fields)})"


@runtime_checkable
class SchemaProvider(Protocol):
    """Models that describe their own grid schema."""

    @classmethod
    def __grid_schema__(cls) -> SchemaDescriptor:
        """Return the descriptor for this model."""
        ...


# ---------------------------------------------------------------------------
# Kind detection
# ---------------------------------------------------------------------------


def kind_for_type(tp: Any) -> FieldKind:
    """Map a Python type annotation to a :class:`FieldKind`.

    ``Optional[X]`` and ``Annotated[X, ...]`` are unwrapped. ``bool`` is
    TEXT even though it subclasses ``int``.
    """
    origin = typing.get_origin(tp)
    if origin is typing.Annotated:
        return kind_for_type(typing.get_args(tp)[0])
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        return kind_for_type(args[0]) if len(args) == 1 else FieldKind.TEXT
    if origin is not None or not isinstance(tp, type) or issubclass(tp, bool):
        return FieldKind.TEXT
    if issubclass(tp, int):
        return FieldKind.INTEGER
    if issubclass(tp, float):
        return FieldKind.FLOAT
    return FieldKind.TEXT


def _sql_python_type(sql_type: Any) -> Any:
    try:
        return sql_type.python_type
    except NotImplementedError:
        return None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def from_sqlalchemy(model: type[Any]) -> SchemaDescriptor:
    """Build a descriptor from a SQLAlchemy mapped class."""
    mapper = sa_inspect(model, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise SchemaResolutionError(model, "not a SQLAlchemy mapped class")
    fields = []
    for attr in mapper.column_attrs:
        column = attr.columns[0]
        fields.append(
            FieldDescriptor(
                name=attr.key,
                column=column.name,
                kind=kind_for_type(_sql_python_type(column.type)),
                sql_type=column.type,
            )
        )
    return SchemaDescriptor(model.__name__, fields)


def from_pydantic(model: type[BaseModel]) -> SchemaDescriptor:
    """Build a descriptor from a pydantic model class."""
    fields = [
        FieldDescriptor(
            name=name,
            column=info.alias or name,
            kind=kind_for_type(info.annotation),
        )
        for name, info in model.model_fields.items()
    ]
    return SchemaDescriptor(model.__name__, fields)


def from_dataclass(model: type[Any]) -> SchemaDescriptor:
    """Build a descriptor from a dataclass."""
    try:
        hints = typing.get_type_hints(model)
    except NameError as e:
        raise SchemaResolutionError(model, f"unresolvable annotation: {e}") from e
    fields = [
        FieldDescriptor(
            name=f.name,
            column=f.metadata.get("column", f.name),
            kind=kind_for_type(hints.get(f.name, f.type)),
        )
        for f in dataclasses.fields(model)
    ]
    return SchemaDescriptor(model.__name__, fields)


def derive_schema(model_type: type[Any]) -> SchemaDescriptor:
    """Derive a descriptor for ``model_type`` without caching."""
    provider = getattr(model_type, "__grid_schema__", None)
    if provider is not None:
        try:
            descriptor = provider()
        except TypeError as e:
            raise SchemaResolutionError(
                model_type, "__grid_schema__ must be a classmethod"
            ) from e
        if not isinstance(descriptor, SchemaDescriptor):
            raise SchemaResolutionError(
                model_type, "__grid_schema__() must return a SchemaDescriptor"
            )
        return descriptor
    if isinstance(sa_inspect(model_type, raiseerr=False), Mapper):
        return from_sqlalchemy(model_type)
    if issubclass(model_type, BaseModel):
        return from_pydantic(model_type)
    if dataclasses.is_dataclass(model_type):
        return from_dataclass(model_type)
    raise SchemaResolutionError(model_type, "unsupported model shape")


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class SchemaCache:
    """Thread-safe get-or-derive cache of descriptors keyed by model type."""

    def __init__(
        self,
        derive: Callable[[type[Any]], SchemaDescriptor] = derive_schema,
    ) -> None:
        self._derive = derive
        self._entries: dict[type[Any], SchemaDescriptor] = {}
        self._pending: dict[type[Any], threading.Lock] = {}
        self._lock = threading.Lock()

    def get(self, model_type: type[Any]) -> SchemaDescriptor | None:
        with self._lock:
            return self._entries.get(model_type)

    def get_or_derive(self, model_type: type[Any]) -> SchemaDescriptor:
        """Return the cached descriptor, deriving it on first use.

        Concurrent callers for the same type wait for a single derivation.
        A failed derivation is not cached.
        """
        with self._lock:
            descriptor = self._entries.get(model_type)
            if descriptor is not None:
                return descriptor
            key_lock = self._pending.setdefault(model_type, threading.Lock())

        with key_lock:
            with self._lock:
                descriptor = self._entries.get(model_type)
            if descriptor is not None:
                return descriptor
            try:
                descriptor = self._derive(model_type)
                with self._lock:
                    self._entries[model_type] = descriptor
            finally:
                with self._lock:
                    self._pending.pop(model_type, None)
            logger.debug(
                "Derived grid schema for %s (%d fields)",
                model_type.__name__,
                len(descriptor),
            )
            return descriptor

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, model_type: object) -> bool:
        with self._lock:
            return model_type in self._entries


def resolve_schema(model: Any, cache: SchemaCache | None = None) -> SchemaDescriptor:
    """Return a descriptor for ``model``.

    ``model`` may be a :class:`SchemaDescriptor` (returned unchanged), a
    supported model class, or an instance of one (keyed by its type).
    """
    if isinstance(model, SchemaDescriptor):
        return model
    if model is None:
        raise SchemaResolutionError(model, "model is None")
    model_type = model if isinstance(model, type) else type(model)
    if cache is None:
        return derive_schema(model_type)
    return cache.get_or_derive(model_type)


__all__: list[str] = [
    "FieldDescriptor",
    "FieldKind",
    "SchemaCache",
    "SchemaDescriptor",
    "SchemaProvider",
    "derive_schema",
    "from_dataclass",
    "from_pydantic",
    "from_sqlalchemy",
    "kind_for_type",
    "resolve_schema",
]
