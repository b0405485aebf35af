"""Minimal table gateway base class.

Subclasses declare the table shape as class attributes:

    class User(Model):
        primary_key = "user_id"
        fillable = ["user_email", "user_name"]

    users = User(db)
    new_id = await users.create({"user_email": "a@b.c", "user_name": "Ann"})
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, ClassVar

from sura.container import Container
from sura.database.query_builder import QueryBuilder

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def check_identifier(name: str) -> str:
    """Reject anything but ``column`` or ``table.column``."""
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier '{name}'")
    return name


class Model:
    table: ClassVar[str] = ""
    primary_key: ClassVar[str] = "id"
    fillable: ClassVar[list[str]] = []
    timestamps: ClassVar[bool] = True
    created_at_column: ClassVar[str] = "created_at"
    updated_at_column: ClassVar[str] = "updated_at"

    def __init__(self, db: QueryBuilder | None = None) -> None:
        self.db: QueryBuilder = db if db is not None else Container.get_instance().get("db.query")
        # User -> users, Product -> products
        self.table_name = check_identifier(self.table or type(self).__name__.lower() + "s")

    def get_table(self) -> str:
        return self.table_name

    async def all(self) -> list[dict[str, Any]]:
        return await self.db.query(f"SELECT * FROM {self.table_name}")

    async def find(self, id: int) -> dict[str, Any] | None:
        return await self.db.fetch_one(
            f"SELECT * FROM {self.table_name} WHERE {self.primary_key} = ?", [id]
        )

    async def find_by(self, column: str, value: Any) -> dict[str, Any] | None:
        check_identifier(column)
        return await self.db.fetch_one(
            f"SELECT * FROM {self.table_name} WHERE {column} = ?", [value]
        )

    async def where(self, column: str, value: Any) -> list[dict[str, Any]]:
        check_identifier(column)
        return await self.db.query(f"SELECT * FROM {self.table_name} WHERE {column} = ?", [value])

    async def create(self, data: dict[str, Any]) -> int:
        """Insert the fillable part of ``data``; returns the new primary key."""
        values = self.filter_fillable(data)

        if self.timestamps:
            now = _now()
            values[self.created_at_column] = now
            values[self.updated_at_column] = now

        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        await self.db.execute(
            f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})",
            list(values.values()),
        )
        return self.db.last_insert_id()

    async def update(self, id: int, data: dict[str, Any]) -> bool:
        values = self.filter_fillable(data)

        if self.timestamps:
            values[self.updated_at_column] = _now()

        if not values:
            return False

        set_clause = ", ".join(f"{column} = ?" for column in values)
        return await self.db.execute(
            f"UPDATE {self.table_name} SET {set_clause} WHERE {self.primary_key} = ?",
            [*values.values(), id],
        )

    async def delete(self, id: int) -> bool:
        return await self.db.execute(
            f"DELETE FROM {self.table_name} WHERE {self.primary_key} = ?", [id]
        )

    def filter_fillable(self, data: dict[str, Any]) -> dict[str, Any]:
        if not self.fillable:
            raise ValueError(f"Property fillable must be defined in {type(self).__name__}")
        return {key: value for key, value in data.items() if key in self.fillable}


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")
