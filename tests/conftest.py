"""Shared fixtures: SQLAlchemy records and an in-memory async session."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import Float, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class Base(DeclarativeBase):
    pass


class UserRecord(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    age: Mapped[int] = mapped_column(Integer)
    score: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column("user_status", String)


USERS = [
    {"id": 1, "name": "alice", "age": 34, "score": 9.5, "status": "active"},
    {"id": 2, "name": "bob", "age": 27, "score": 7.0, "status": "active"},
    {"id": 3, "name": "carol", "age": 41, "score": 8.25, "status": "banned"},
    {"id": 4, "name": "dave", "age": 30, "score": 6.5, "status": "active"},
    {"id": 5, "name": "erin", "age": 52, "score": 9.0, "status": "pending"},
]


@pytest.fixture
async def session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as s:
        s.add_all(UserRecord(**row) for row in USERS)
        await s.commit()
        yield s
    await engine.dispose()
