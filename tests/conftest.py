"""
Pytest configuration for the Sura test suite.

Database tests run against a shared in-memory SQLite database through
aiosqlite; the StaticPool keeps one connection so every statement sees the
same data.
"""

from __future__ import annotations

from typing import AsyncIterator, Iterator

import pytest
from argon2 import PasswordHasher as Argon2Hasher
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from sura.config import Environment, Settings
from sura.container import Container
from sura.database.query_builder import QueryBuilder
from sura.services.password_hasher import Argon2PasswordHasher
from sura.support.registry import Registry

SQLITE_URL = "sqlite+aiosqlite:///:memory:"

SCHEMA = [
    """
    CREATE TABLE users (
        user_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_email TEXT NOT NULL UNIQUE,
        user_password TEXT NOT NULL,
        user_name TEXT NOT NULL,
        user_last_name TEXT NOT NULL DEFAULT '',
        user_age INTEGER NOT NULL DEFAULT 0,
        user_group INTEGER NOT NULL DEFAULT 5
    )
    """,
    """
    CREATE TABLE posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        body TEXT NOT NULL DEFAULT '',
        created_at TEXT,
        updated_at TEXT
    )
    """,
]


@pytest.fixture(autouse=True)
def reset_global_state() -> Iterator[None]:
    """Process-wide container and registry must not leak between tests."""
    yield
    Container.set_instance(None)
    Registry.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SERVICE_NAME="sura-test",
        ENVIRONMENT=Environment.TESTING,
        DATABASE_URL=SQLITE_URL,
        COOKIE_SECURE=False,
        SECRET_KEY="test-secret",
        SESSION_BACKEND="memory",
    )


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        SQLITE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        for statement in SCHEMA:
            await conn.execute(text(statement))
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> QueryBuilder:
    return QueryBuilder(engine)


@pytest.fixture
def hasher() -> Argon2PasswordHasher:
    """Cheap argon2 parameters; production defaults are far slower."""
    return Argon2PasswordHasher(Argon2Hasher(time_cost=1, memory_cost=8, parallelism=1))


@pytest.fixture
def container() -> Container:
    container = Container()
    Container.set_instance(container)
    return container
