"""Grid search adapter: bind widget parameters, compile filters, paginate."""

from __future__ import annotations

from .compiler import (
    CompiledFilter,
    CompiledRule,
    FilterCompiler,
    FilterSpec,
    Rule,
    coerce_value,
)
from .exceptions import (
    FilterParseError,
    GridQueryError,
    QueryStringError,
    SchemaResolutionError,
    ValidationError,
)
from .operators import GridOperator, format_rule, sql_token
from .pagination import IQueryExecutor, Paging, parse_paging
from .query import GridQuery
from .request import SearchRequest, SortDirection, decode_query
from .schema import (
    FieldDescriptor,
    FieldKind,
    SchemaCache,
    SchemaDescriptor,
    SchemaProvider,
    resolve_schema,
)
from .settings import GridQuerySettings

__all__ = [
    "CompiledFilter",
    "CompiledRule",
    "FieldDescriptor",
    "FieldKind",
    "FilterCompiler",
    "FilterParseError",
    "FilterSpec",
    "GridOperator",
    "GridQuery",
    "GridQueryError",
    "GridQuerySettings",
    "IQueryExecutor",
    "Paging",
    "QueryStringError",
    "Rule",
    "SchemaCache",
    "SchemaDescriptor",
    "SchemaProvider",
    "SchemaResolutionError",
    "SearchRequest",
    "SortDirection",
    "ValidationError",
    "coerce_value",
    "decode_query",
    "format_rule",
    "parse_paging",
    "resolve_schema",
    "sql_token",
]
