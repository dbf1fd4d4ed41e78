"""GridQuery: per-request facade: bind, resolve schema, compile, paginate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .compiler import CompiledFilter, FilterCompiler
from .pagination import Paging, parse_paging
from .request import SearchRequest, decode_query
from .schema import SchemaCache, SchemaDescriptor, resolve_schema
from .settings import DEFAULT_SETTINGS, GridQuerySettings

if TYPE_CHECKING:
    from .pagination import IQueryExecutor
    from .request import QueryValues

logger = logging.getLogger(__name__)


class GridQuery:
    """Search state of one grid request.

    Usage::

        cache = SchemaCache()  # shared across requests

        query = GridQuery(schema_cache=cache)
        query.model(UserRecord)
        paging = await query.page(SQLAlchemyQueryExecutor(session, stmt), body)
    """

    def __init__(
        self,
        *,
        settings: GridQuerySettings = DEFAULT_SETTINGS,
        schema_cache: SchemaCache | None = None,
        compiler: FilterCompiler | None = None,
    ) -> None:
        self.settings = settings
        self.request = SearchRequest()
        self.schema: SchemaDescriptor | None = None
        self._schema_cache = schema_cache
        self._compiler = compiler or FilterCompiler(settings)

    def bind(self, values: QueryValues) -> None:
        self.request.bind(values, self.settings)

    def parse(self, raw: str | bytes) -> None:
        """Decode URL-encoded ``raw`` and bind it."""
        self.request.parse(raw, self.settings)

    def model(self, model: Any) -> SchemaDescriptor:
        """Use ``model``'s schema for column names and value coercion.

        Accepts a :class:`SchemaDescriptor` or anything
        :func:`~grid_query.schema.resolve_schema` can derive one from.
        """
        self.schema = resolve_schema(model, self._schema_cache)
        return self.schema

    def order(self) -> tuple[str, int]:
        return self._compiler.order(self.request, self.schema)

    def filter(self) -> CompiledFilter | None:
        """Compile the bound filter; ``None`` when none was requested."""
        return self._compiler.compile(self.request, self.schema)

    async def page(self, executor: IQueryExecutor, body: str | bytes) -> Paging:
        """Bind ``body``, apply order and filter, then count and fetch a page.

        Decoding and compilation errors are raised before ``executor``
        runs; errors from ``executor`` propagate unchanged.
        """
        values = decode_query(body)
        self.bind(values)
        paging = parse_paging(values, self.settings)

        column, direction = self.order()
        if column:
            executor = executor.order(column, direction)
        compiled = self.filter()
        if compiled is not None:
            executor = executor.where(compiled)

        await executor.view(paging)
        logger.debug(
            "Grid page %d (size %d): %d of %d rows",
            paging.page,
            paging.size,
            len(paging.rows),
            paging.total,
        )
        return paging


__all__: list[str] = ["GridQuery"]
