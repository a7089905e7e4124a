"""Run statements against a pool with dynamic parameters."""

import sqlite3
from typing import Any

from litebridge.errors import SqlError
from litebridge.store import codec
from litebridge.store.pool import Pool


async def execute(pool: Pool, query: str, values: list[Any] | None = None) -> tuple[int, int]:
    """Run a write statement once.

    Returns (rows_affected, last_insert_id) as reported by SQLite.
    """
    params = codec.encode_all(values)
    async with pool.acquire() as conn:
        try:
            cursor = await conn.execute(query, params)
            try:
                rows_affected = max(cursor.rowcount, 0)
                last_insert_id = cursor.lastrowid or 0
            finally:
                await cursor.close()
        except sqlite3.Error as e:
            raise SqlError(str(e)) from e
    return rows_affected, last_insert_id


async def select(pool: Pool, query: str, values: list[Any] | None = None) -> list[dict[str, Any]]:
    """Run a read statement and decode every row.

    A single column that cannot be decoded fails the whole call.
    """
    params = codec.encode_all(values)
    async with pool.acquire() as conn:
        try:
            cursor = await conn.execute(query, params)
            try:
                rows = await cursor.fetchall()
                description = cursor.description
            finally:
                await cursor.close()
        except sqlite3.Error as e:
            raise SqlError(str(e)) from e

    if not description:
        return []
    names = [column[0] for column in description]
    return [codec.decode_row(names, row) for row in rows]
