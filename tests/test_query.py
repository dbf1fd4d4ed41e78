"""Tests for GridQuery: binding, schema, filter/order and paging."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import pytest

from conftest import UserRecord
from grid_query.adapters.sqlalchemy import SQLAlchemyQueryExecutor
from grid_query.exceptions import FilterParseError, QueryStringError
from grid_query.query import GridQuery
from grid_query.schema import FieldKind, SchemaCache, SchemaDescriptor
from grid_query.settings import GridQuerySettings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from grid_query.compiler import CompiledFilter
    from grid_query.pagination import Paging


class RecordingExecutor:
    """Executor double recording the calls it receives."""

    def __init__(self, total: int = 0, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._total = total
        self._error = error

    def order(self, column: str, direction: int) -> RecordingExecutor:
        self.calls.append(("order", (column, direction)))
        return self

    def where(self, compiled: CompiledFilter) -> RecordingExecutor:
        self.calls.append(("where", (compiled.predicate, compiled.args)))
        return self

    async def view(self, paging: Paging) -> None:
        self.calls.append(("view", (paging.page, paging.size)))
        if self._error is not None:
            raise self._error
        paging.total = self._total


def _body(**params: Any) -> str:
    return urlencode(params)


def _filters(*rules: tuple[str, str, str], group_op: str = "AND") -> str:
    return json.dumps(
        {
            "rules": [{"field": f, "op": o, "data": d} for f, o, d in rules],
            "groupOp": group_op,
        }
    )


class TestGridQuery:
    def test_parse_then_filter_and_order(self) -> None:
        query = GridQuery()
        query.parse(
            _body(
                _search="true",
                sort="name",
                order="desc",
                filters=_filters(("age", "gt", "30")),
            )
        )
        assert query.order() == ("name", -1)
        compiled = query.filter()
        assert compiled is not None
        assert (compiled.predicate, compiled.args) == ("age > ?", ("30",))

    def test_model_enables_coercion(self) -> None:
        query = GridQuery()
        query.bind({"_search": "true", "filters": _filters(("age", "gt", "30"))})
        query.model(SchemaDescriptor.of("people", age=FieldKind.INTEGER))
        compiled = query.filter()
        assert compiled is not None
        assert compiled.args == (30,)

    def test_model_uses_shared_cache(self) -> None:
        cache = SchemaCache()
        first = GridQuery(schema_cache=cache).model(UserRecord)
        second = GridQuery(schema_cache=cache).model(UserRecord)
        assert first is second
        assert UserRecord in cache

    def test_search_off_means_nothing(self) -> None:
        query = GridQuery()
        query.parse(_body(_search="false", sort="name", order="asc"))
        assert query.order() == ("", 0)
        assert query.filter() is None


class TestPage:
    async def test_applies_order_and_filter(self) -> None:
        executor = RecordingExecutor(total=42)
        body = _body(
            _search="true",
            sort="age",
            order="asc",
            searchField="name",
            searchOper="ne",
            searchString="bob",
            page="3",
            size="10",
        )
        paging = await GridQuery().page(executor, body)
        assert executor.calls == [
            ("order", ("age", 1)),
            ("where", ("name <> ?", ("bob",))),
            ("view", (3, 10)),
        ]
        assert (paging.page, paging.size, paging.total) == (3, 10, 42)

    async def test_without_search_only_pages(self) -> None:
        executor = RecordingExecutor()
        paging = await GridQuery().page(executor, b"page=2")
        assert executor.calls == [("view", (2, 20))]
        assert paging.page == 2

    async def test_malformed_body_raises_before_executor(self) -> None:
        executor = RecordingExecutor()
        with pytest.raises(QueryStringError):
            await GridQuery().page(executor, "_search=true&sort=%zz")
        assert executor.calls == []

    async def test_bad_filter_raises_before_view(self) -> None:
        executor = RecordingExecutor()
        with pytest.raises(FilterParseError):
            await GridQuery().page(executor, _body(_search="true", filters="{"))
        assert ("view", (1, 20)) not in executor.calls

    async def test_executor_errors_propagate_unchanged(self) -> None:
        error = RuntimeError("database is gone")
        executor = RecordingExecutor(error=error)
        with pytest.raises(RuntimeError) as exc_info:
            await GridQuery().page(executor, "")
        assert exc_info.value is error

    async def test_jqgrid_settings(self) -> None:
        executor = RecordingExecutor()
        query = GridQuery(settings=GridQuerySettings.jqgrid())
        await query.page(
            executor, _body(_search="true", sidx="name", sord="desc", rows="15")
        )
        assert executor.calls == [("order", ("name", -1)), ("view", (1, 15))]


class TestPageWithSQLAlchemy:
    async def test_filtered_ordered_page(self, session: AsyncSession) -> None:
        query = GridQuery(schema_cache=SchemaCache())
        query.model(UserRecord)
        body = _body(
            _search="true",
            sort="age",
            order="desc",
            filters=_filters(("status", "eq", "active"), ("age", "ge", "28")),
            page="1",
            size="1",
        )
        paging = await query.page(
            SQLAlchemyQueryExecutor.for_model(session, UserRecord), body
        )
        assert paging.total == 2
        assert paging.pages == 2
        assert [u.name for u in paging.rows] == ["alice"]

    async def test_or_group_and_contains(self, session: AsyncSession) -> None:
        query = GridQuery()
        query.model(UserRecord)
        body = _body(
            _search="true",
            sort="id",
            order="asc",
            filters=_filters(
                ("name", "co", "erin"), ("score", "gt", "9.2"), group_op="OR"
            ),
        )
        paging = await query.page(
            SQLAlchemyQueryExecutor.for_model(session, UserRecord), body
        )
        assert [u.id for u in paging.rows] == [1, 5]
        assert paging.total == 2

    async def test_non_numeric_value_coerced_to_zero(
        self, session: AsyncSession
    ) -> None:
        query = GridQuery()
        query.model(UserRecord)
        body = _body(
            _search="true",
            searchField="age",
            searchOper="gt",
            searchString="many",
        )
        paging = await query.page(
            SQLAlchemyQueryExecutor.for_model(session, UserRecord), body
        )
        assert paging.total == 5

    async def test_out_of_range_integer_coerced_to_zero(
        self, session: AsyncSession
    ) -> None:
        query = GridQuery()
        query.model(UserRecord)
        body = _body(
            _search="true",
            searchField="age",
            searchOper="gt",
            searchString="99999999999999999999",
        )
        paging = await query.page(
            SQLAlchemyQueryExecutor.for_model(session, UserRecord), body
        )
        assert paging.total == 5

    async def test_huge_page_numbers_stay_in_range(
        self, session: AsyncSession
    ) -> None:
        executor = SQLAlchemyQueryExecutor.for_model(session, UserRecord)
        paging = await GridQuery().page(executor, "page=99999999999999999999")
        assert paging.page == 1
        assert paging.total == 5
        assert len(paging.rows) == 5

        paging = await GridQuery().page(executor, "page=9223372036854775807")
        assert paging.total == 5
        assert paging.rows == []
