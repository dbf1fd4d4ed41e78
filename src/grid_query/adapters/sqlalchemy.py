"""
SQLAlchemy query execution for compiled grid searches.

``to_sqla_clause`` materializes a :class:`CompiledFilter` as a ``text()``
clause with one named bind parameter per placeholder, typed with the
column's SQL type when the schema supplied one. ``IN`` rules bind as
expanding parameters; a scalar value becomes a one-element list.

``SQLAlchemyQueryExecutor`` applies ordering and filtering to a ``Select``
and runs the count-and-fetch on an ``AsyncSession``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, func, literal_column, select, text

from ..operators import IN_TOKEN

if TYPE_CHECKING:
    from sqlalchemy import Select, TextClause
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import BindParameter

    from ..compiler import CompiledFilter, CompiledRule
    from ..pagination import Paging


def _bind(name: str, rule: CompiledRule) -> BindParameter[Any]:
    if rule.token == IN_TOKEN:
        value = rule.value
        values = list(value) if isinstance(value, (list, tuple, set)) else [value]
        return bindparam(name, values, type_=rule.sql_type, expanding=True)
    return bindparam(name, rule.value, type_=rule.sql_type)


def to_sqla_clause(compiled: CompiledFilter) -> TextClause:
    """Build a bound ``text()`` clause from a compiled grid filter."""
    parts: list[str] = []
    params: list[BindParameter[Any]] = []
    for index, rule in enumerate(compiled.rules):
        name = f"p_{index}"
        parts.append(f"{rule.column} {rule.token} :{name}")
        params.append(_bind(name, rule))
    sql = f" {compiled.group_op} ".join(parts)
    if len(parts) > 1:
        sql = f"({sql})"
    return text(sql).bindparams(*params)


class SQLAlchemyQueryExecutor:
    """Run grid searches against a ``Select`` on an ``AsyncSession``.

    Rows are fetched with ``session.scalars``, so ``stmt`` is expected to
    select a single entity or column, e.g. ``select(UserRecord)``.
    """

    def __init__(self, session: AsyncSession, stmt: Select[Any]) -> None:
        self._session = session
        self._stmt = stmt

    @classmethod
    def for_model(
        cls, session: AsyncSession, model: type[Any]
    ) -> SQLAlchemyQueryExecutor:
        return cls(session, select(model))

    @property
    def stmt(self) -> Select[Any]:
        return self._stmt

    def order(self, column: str, direction: int) -> SQLAlchemyQueryExecutor:
        col = literal_column(column)
        clause = col.desc() if direction < 0 else col.asc()
        return SQLAlchemyQueryExecutor(self._session, self._stmt.order_by(clause))

    def where(self, compiled: CompiledFilter) -> SQLAlchemyQueryExecutor:
        return SQLAlchemyQueryExecutor(
            self._session, self._stmt.where(to_sqla_clause(compiled))
        )

    async def view(self, paging: Paging) -> None:
        """Count all matches, then fetch the requested page."""
        count_stmt = select(func.count()).select_from(
            self._stmt.order_by(None).subquery()
        )
        paging.total = (await self._session.scalar(count_stmt)) or 0
        page_stmt = self._stmt.limit(paging.size).offset(paging.offset)
        result = await self._session.scalars(page_stmt)
        paging.rows = list(result.all())


__all__: list[str] = ["SQLAlchemyQueryExecutor", "to_sqla_clause"]
