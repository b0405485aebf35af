"""Thin async SQL wrapper over a SQLAlchemy AsyncEngine.

Statements are plain SQL with ``?`` placeholders bound positionally:

    users = await db.query("SELECT * FROM users WHERE age > ?", [18])
    user = await db.fetch_one("SELECT * FROM users WHERE id = ?", [1])
    count = await db.fetch_column("SELECT COUNT(*) FROM users")

    await db.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["John", "j@x.org"])
    new_id = db.last_insert_id()

    async with db.transaction():
        await db.execute("INSERT INTO logs (message) VALUES (?)", ["Started"])
        await db.execute("UPDATE counters SET value = value + 1")

Outside a transaction every statement runs in its own connection and commits
on success. Transaction state and the last insert id are tracked per asyncio
task, so concurrent requests never share a connection.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Mapping, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from sura.exceptions import QueryError
from sura.logging_utils import create_service_logger

logger = create_service_logger("sura.database")

Params = Sequence[Any] | Mapping[str, Any]

# Quoted literals are matched first so a ``?`` inside them is left alone
_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?")
_INSERT_RE = re.compile(r"^\s*(INSERT|REPLACE)\b", re.IGNORECASE)


def bind_positional(sql: str, params: Params | None) -> tuple[str, dict[str, Any]]:
    """Rewrite ``?`` placeholders to named binds ``:p0``, ``:p1`` ...

    Mappings are returned unchanged for statements already using ``:name``.

    Raises:
        ValueError: the number of placeholders and parameters differ
    """
    if params is None:
        params = ()
    if isinstance(params, Mapping):
        return sql, dict(params)

    values = list(params)
    bound: dict[str, Any] = {}

    def substitute(match: re.Match[str]) -> str:
        token = match.group(0)
        if token != "?":
            return token
        index = len(bound)
        if index >= len(values):
            raise ValueError(
                f"Statement has more placeholders than the {len(values)} parameters given"
            )
        bound[f"p{index}"] = values[index]
        return f":p{index}"

    statement = _PLACEHOLDER_RE.sub(substitute, sql)
    if len(bound) != len(values):
        raise ValueError(
            f"Statement has {len(bound)} placeholders but {len(values)} parameters were given"
        )
    return statement, bound


def inline_params(sql: str, params: Params | None) -> str:
    """Statement with parameters quoted in place, for the query log only."""
    if not params:
        return sql
    if isinstance(params, Mapping):
        return f"{sql} -- {dict(params)!r}"
    values = iter(params)

    def substitute(match: re.Match[str]) -> str:
        token = match.group(0)
        if token != "?":
            return token
        value = next(values, None)
        if value is None:
            return "NULL"
        escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"

    return _PLACEHOLDER_RE.sub(substitute, sql)


@dataclass
class _Outcome:
    rows: list[dict[str, Any]]
    lastrowid: int | None


class QueryBuilder:
    def __init__(self, engine: AsyncEngine, log_path: str | None = None) -> None:
        self.engine = engine
        self.log_path = Path(log_path) if log_path else None
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection: ContextVar[AsyncConnection | None] = ContextVar(
            f"sura_db_connection_{id(self)}", default=None
        )
        self._last_insert_id: ContextVar[int] = ContextVar(
            f"sura_db_last_insert_id_{id(self)}", default=0
        )

    async def query(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        """Rows of a SELECT as dicts; empty list when nothing matches."""
        return (await self._run(sql, params)).rows

    async def execute(self, sql: str, params: Params | None = None) -> bool:
        """Run a write statement. Failures raise QueryError."""
        await self._run(sql, params)
        return True

    async def fetch_one(self, sql: str, params: Params | None = None) -> dict[str, Any] | None:
        rows = await self.query(sql, params)
        return rows[0] if rows else None

    async def fetch_column(self, sql: str, params: Params | None = None) -> Any:
        """First column of the first row, or None."""
        row = await self.fetch_one(sql, params)
        if not row:
            return None
        return next(iter(row.values()))

    def last_insert_id(self) -> int:
        """Id generated by the last INSERT run in the current task."""
        return self._last_insert_id.get()

    # Transactions

    def in_transaction(self) -> bool:
        return self._connection.get() is not None

    async def begin_transaction(self) -> bool:
        if self.in_transaction():
            raise RuntimeError("A transaction is already active in this task")
        connection = await self.engine.connect()
        await connection.begin()
        self._connection.set(connection)
        logger.debug("Transaction started")
        return True

    async def commit(self) -> bool:
        connection = self._take_connection()
        try:
            await connection.commit()
        finally:
            await connection.close()
        logger.debug("Transaction committed")
        return True

    async def rollback(self) -> bool:
        connection = self._take_connection()
        try:
            await connection.rollback()
        finally:
            await connection.close()
        logger.debug("Transaction rolled back")
        return True

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[QueryBuilder]:
        """Commit when the block succeeds, roll back and re-raise otherwise."""
        await self.begin_transaction()
        try:
            yield self
        except BaseException:
            await self.rollback()
            raise
        await self.commit()

    def _take_connection(self) -> AsyncConnection:
        connection = self._connection.get()
        if connection is None:
            raise RuntimeError("No active transaction in this task")
        self._connection.set(None)
        return connection

    # Execution

    async def _run(self, sql: str, params: Params | None) -> _Outcome:
        statement, bound = bind_positional(sql, params)
        self._log(sql, params)

        is_insert = bool(_INSERT_RE.match(sql))
        try:
            connection = self._connection.get()
            if connection is not None:
                result = await connection.execute(text(statement), bound)
                outcome = self._consume(result, is_insert)
            else:
                async with self.engine.begin() as connection:
                    result = await connection.execute(text(statement), bound)
                    outcome = self._consume(result, is_insert)
        except SQLAlchemyError as e:
            logger.error("Query failed", sql=sql, error=str(e))
            raise QueryError(str(e), sql) from e

        if is_insert and outcome.lastrowid:
            self._last_insert_id.set(int(outcome.lastrowid))
        return outcome

    @staticmethod
    def _consume(result: Any, is_insert: bool) -> _Outcome:
        lastrowid = result.lastrowid if is_insert else None
        rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
        return _Outcome(rows=rows, lastrowid=lastrowid)

    def _log(self, sql: str, params: Params | None) -> None:
        logger.debug("SQL", sql=sql, params=params if params else None)
        if self.log_path is None:
            return
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        with self.log_path.open("a", encoding="utf-8") as fh:
            fh.write(f"[{stamp}] {inline_params(sql, params)}\n")
