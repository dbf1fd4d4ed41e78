"""Query-execution adapters for compiled grid searches."""

from __future__ import annotations

from .sqlalchemy import SQLAlchemyQueryExecutor, to_sqla_clause

__all__ = ["SQLAlchemyQueryExecutor", "to_sqla_clause"]
