"""
Compile a bound :class:`SearchRequest` into a parameterized predicate.

The structured filter (``filters``) wins over the quick-search fields.
Each rule becomes a ``"<column> <token> ?"`` fragment; fragments are joined
by the group operator and paired with a positional argument list whose
order matches the placeholders left to right.

With a schema, fields are translated to their physical columns and values
are coerced to the column's kind. Coercion is best-effort: text that does
not parse as a number becomes ``0`` / ``0.0``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import FilterParseError
from .operators import PLACEHOLDER, sql_token
from .request import parse_int
from .schema import FieldKind
from .settings import DEFAULT_SETTINGS, GridQuerySettings

if TYPE_CHECKING:
    from .request import SearchRequest
    from .schema import SchemaDescriptor

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*")
_GROUP_OPERATORS = ("AND", "OR")


# ---------------------------------------------------------------------------
# Filter document
# ---------------------------------------------------------------------------


class Rule(BaseModel):
    """One ``{"field", "op", "data"}`` entry of the filter document."""

    model_config = ConfigDict(frozen=True)

    field: str = ""
    op: str = ""
    data: str = ""

    @field_validator("field", "op", "data", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class FilterSpec(BaseModel):
    """Rules combined by a group operator (``groupOp``)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rules: list[Rule] = Field(default_factory=list)
    group_op: str = Field(default="", alias="groupOp")

    @field_validator("rules", mode="before")
    @classmethod
    def _null_as_no_rules(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("group_op", mode="before")
    @classmethod
    def _null_as_no_group(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def parse(cls, raw: str) -> FilterSpec:
        """Parse the JSON filter document; raise :class:`FilterParseError`."""
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as e:
            messages = [err["msg"] for err in e.errors()]
            raise FilterParseError({"filters": messages}) from e


# ---------------------------------------------------------------------------
# Compiled output
# ---------------------------------------------------------------------------


class CompiledRule(NamedTuple):
    column: str
    token: str
    value: Any
    sql_type: Any = None

    @property
    def fragment(self) -> str:
        return f"{self.column} {self.token} {PLACEHOLDER}"


@dataclass(frozen=True)
class CompiledFilter:
    """Ordered predicate fragments and their positional arguments."""

    rules: tuple[CompiledRule, ...]
    group_op: str = "AND"
    schema: SchemaDescriptor | None = field(default=None, compare=False)

    @property
    def fragments(self) -> tuple[str, ...]:
        return tuple(r.fragment for r in self.rules)

    @property
    def args(self) -> tuple[Any, ...]:
        return tuple(r.value for r in self.rules)

    @property
    def predicate(self) -> str:
        return f" {self.group_op} ".join(self.fragments)

    def __len__(self) -> int:
        return len(self.rules)


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def coerce_value(schema: SchemaDescriptor | None, name: str, raw: str) -> Any:
    """Convert ``raw`` to the kind declared for ``name`` in ``schema``.

    Without a schema or a matching field the text is returned unchanged.
    """
    if schema is None:
        return raw
    descriptor = schema.lookup_field(name)
    if descriptor is None:
        return raw
    if descriptor.kind is FieldKind.INTEGER:
        value = parse_int(raw)
        if value is not None:
            return value
        logger.debug("Value %r for integer field %s coerced to 0", raw, name)
        return 0
    if descriptor.kind is FieldKind.FLOAT:
        if raw == raw.strip() and "_" not in raw:
            try:
                return float(raw)
            except ValueError:
                pass
        logger.debug("Value %r for float field %s coerced to 0.0", raw, name)
        return 0.0
    return raw


def is_identifier(name: str) -> bool:
    """True for plain (optionally dotted) SQL identifiers."""
    return _IDENTIFIER.fullmatch(name) is not None


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class FilterCompiler:
    """Translate search requests into filters and order clauses."""

    def __init__(self, settings: GridQuerySettings = DEFAULT_SETTINGS) -> None:
        self._settings = settings

    def filter_spec(self, request: SearchRequest) -> FilterSpec | None:
        """Return the rules requested, or ``None`` when no filter was asked."""
        if request.filters:
            return FilterSpec.parse(request.filters)
        if request.has_quick_search:
            rule = Rule(
                field=request.search_field,
                op=request.search_oper,
                data=request.search_string,
            )
            return FilterSpec(rules=[rule], group_op="AND")
        return None

    def compile(
        self,
        request: SearchRequest,
        schema: SchemaDescriptor | None = None,
    ) -> CompiledFilter | None:
        """Compile the request's filter; ``None`` means no filter."""
        spec = self.filter_spec(request)
        if spec is None or not spec.rules:
            return None
        group_op = self._group_op(spec.group_op)
        compiled = CompiledFilter(
            rules=tuple(self._compile_rule(r, schema) for r in spec.rules),
            group_op=group_op,
            schema=schema,
        )
        logger.debug(
            "Compiled grid filter %r with args %r", compiled.predicate, compiled.args
        )
        return compiled

    def order(
        self,
        request: SearchRequest,
        schema: SchemaDescriptor | None = None,
    ) -> tuple[str, int]:
        """Return ``(column, direction)``; ``("", 0)`` when no order was asked.

        ``direction`` is ``-1`` for DESC and ``1`` otherwise.
        """
        if not request.sort or not request.order:
            return "", 0
        column = request.sort
        if schema is not None:
            descriptor = schema.lookup_field(request.sort)
            if descriptor is not None:
                column = descriptor.column
        if not is_identifier(column):
            logger.warning("Ignoring grid sort on unsafe field %r", request.sort)
            return "", 0
        return column, -1 if request.order == "DESC" else 1

    def _compile_rule(
        self, rule: Rule, schema: SchemaDescriptor | None
    ) -> CompiledRule:
        column, sql_type = self._column(rule.field, schema)
        return CompiledRule(
            column=column,
            token=sql_token(rule.op),
            value=coerce_value(schema, rule.field, rule.data),
            sql_type=sql_type,
        )

    def _column(
        self, name: str, schema: SchemaDescriptor | None
    ) -> tuple[str, Any]:
        descriptor = schema.lookup_field(name) if schema is not None else None
        if descriptor is not None:
            return descriptor.column, descriptor.sql_type
        if not is_identifier(name):
            raise FilterParseError({"filters": [f"Invalid field name {name!r}"]})
        return name, None

    def _group_op(self, raw: str) -> str:
        group_op = (raw or self._settings.default_group_op).upper()
        if group_op not in _GROUP_OPERATORS:
            raise FilterParseError({"filters": [f"Unknown group operator {raw!r}"]})
        return group_op


__all__: list[str] = [
    "CompiledFilter",
    "CompiledRule",
    "FilterCompiler",
    "FilterSpec",
    "Rule",
    "coerce_value",
    "is_identifier",
]
