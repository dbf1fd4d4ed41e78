"""Paging state and the query-executor protocol it is filled by."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .request import INT64_MAX, first_value, parse_int
from .settings import DEFAULT_SETTINGS, GridQuerySettings

if TYPE_CHECKING:
    from typing_extensions import Self

    from .compiler import CompiledFilter
    from .request import QueryValues


@dataclass
class Paging:
    """Page request and, once executed, its result.

    ``page`` is 1-based. ``total`` is the number of matching records and
    ``rows`` the records of the current page; both are set by the executor.
    """

    page: int = 0
    size: int = 0
    total: int = 0
    rows: list[Any] = field(default_factory=list)

    def init(
        self,
        size: int,
        settings: GridQuerySettings = DEFAULT_SETTINGS,
    ) -> None:
        """Apply defaults: page at least 1, size defaulted and capped.

        The page is also capped so that :attr:`offset` fits in 64 bits.
        """
        if self.page < 1:
            self.page = 1
        self.size = size if size >= 1 else settings.default_page_size
        self.size = min(self.size, settings.max_page_size)
        self.page = min(self.page, INT64_MAX // self.size)

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.size

    @property
    def pages(self) -> int:
        if self.size <= 0 or self.total <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


def _lenient_int(raw: str) -> int:
    value = parse_int(raw)
    return 0 if value is None else value


def parse_paging(
    values: QueryValues,
    settings: GridQuerySettings = DEFAULT_SETTINGS,
) -> Paging:
    """Read page and size from decoded values; unparsable numbers are 0."""
    paging = Paging(page=_lenient_int(first_value(values, settings.page_key)))
    paging.init(_lenient_int(first_value(values, settings.size_key)), settings)
    return paging


@runtime_checkable
class IQueryExecutor(Protocol):
    """Query-execution collaborator that runs the compiled search.

    ``order`` and ``where`` return a new executor; ``view`` runs the
    count-and-fetch and fills ``paging.total`` and ``paging.rows``.
    """

    def order(self, column: str, direction: int) -> Self: ...

    def where(self, compiled: CompiledFilter) -> Self: ...

    async def view(self, paging: Paging) -> None: ...


__all__: list[str] = ["IQueryExecutor", "Paging", "parse_paging"]
