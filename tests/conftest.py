"""Shared fixtures: a throwaway SQLite database, sessions and an HTTP client."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("WORKOS_API_KEY", "sk_test_placeholder")
os.environ.setdefault("WORKOS_CLIENT_ID", "client_test_placeholder")

from pathlib import Path
from typing import AsyncIterator

import pytest
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from smartwardrobe import models  # noqa: F401
from smartwardrobe.api.v1.schemas.auth import CurrentUser
from smartwardrobe.core.database import Base, get_db
from smartwardrobe.core.dependencies import get_current_user

TEST_USER_HEADER = "X-Test-User"
DEFAULT_USER = "user-1"


class StatementRecorder:
    """Collects every SQL statement sent to the database while attached."""

    def __init__(self) -> None:
        self.statements: list[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany) -> None:
        self.statements.append(statement)

    @property
    def writes(self) -> list[str]:
        return [
            statement
            for statement in self.statements
            if statement.lstrip().upper().startswith(("INSERT", "UPDATE", "DELETE"))
        ]


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'wardrobe.db'}")

    # pysqlite's implicit transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    # Reference: https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#serializable-isolation-savepoints-transactional-ddl
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def recorder(engine: AsyncEngine):
    recorder = StatementRecorder()
    event.listen(engine.sync_engine, "before_cursor_execute", recorder)
    yield recorder
    event.remove(engine.sync_engine, "before_cursor_execute", recorder)


@pytest.fixture
async def client(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """HTTP client against the app; the caller is picked with the X-Test-User header."""
    from smartwardrobe.main import app

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user(request: Request) -> CurrentUser:
        return CurrentUser(id=request.headers.get(TEST_USER_HEADER, DEFAULT_USER))

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
