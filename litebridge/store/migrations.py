"""Versioned schema migrations applied once per database."""

import asyncio
import logging
import re
import sqlite3
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from litebridge.errors import MigrationError
from litebridge.lib.hashing import sha384
from litebridge.store.pool import Pool

logger = logging.getLogger(__name__)

LEDGER = "_migrations"

_FILE_PATTERN = re.compile(r"^(\d+)_(.+?)(?:\.(up|down))?\.sql$")


class MigrationKind(Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    sql: str
    kind: MigrationKind = MigrationKind.UP

    @property
    def checksum(self) -> bytes:
        return sha384(self.sql)


class PendingMigrations:
    """Migration lists registered before first connect, keyed by db url.

    An entry is removed the moment its database is first connected, so each
    list is handed out at most once per process.
    """

    def __init__(self, initial: dict[str, list[Migration]] | None = None):
        self._pending: dict[str, list[Migration]] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def register(self, db: str, migrations: list[Migration]) -> None:
        async with self._lock:
            self._pending[db] = list(migrations)

    async def take(self, db: str) -> list[Migration] | None:
        async with self._lock:
            return self._pending.pop(db, None)

    async def peek(self, db: str) -> list[Migration] | None:
        async with self._lock:
            migs = self._pending.get(db)
            return list(migs) if migs is not None else None

    def __len__(self) -> int:
        return len(self._pending)


def forward(migrations: list[Migration]) -> list[Migration]:
    """Up migrations in ascending version order; duplicate versions are rejected."""
    ups = sorted(
        (m for m in migrations if m.kind is MigrationKind.UP),
        key=lambda m: m.version,
    )
    for prev, cur in zip(ups, ups[1:]):
        if prev.version == cur.version:
            raise MigrationError(f"duplicate migration version {cur.version}")
    return ups


async def apply(pool: Pool, migrations: list[Migration]) -> list[int]:
    """Apply pending up migrations to the pool's database.

    Each migration runs in its own transaction together with its ledger row.
    Any failure aborts the batch with MigrationError.

    Returns:
        Versions newly applied, in order.
    """
    ups = forward(migrations)
    applied_now: list[int] = []

    async with pool.acquire() as conn:
        try:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {LEDGER} (
                    version INTEGER PRIMARY KEY,
                    description TEXT NOT NULL,
                    installed_on TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    success INTEGER NOT NULL,
                    checksum BLOB NOT NULL,
                    execution_time INTEGER NOT NULL
                )
                """
            )
            async with conn.execute(f"SELECT version, checksum FROM {LEDGER}") as cursor:
                applied = {row[0]: bytes(row[1]) for row in await cursor.fetchall()}
        except sqlite3.Error as e:
            raise MigrationError(f"could not read migration ledger: {e}") from e

        known = {m.version: m for m in ups}
        for version in sorted(applied):
            if version not in known:
                raise MigrationError(
                    f"migration {version} was previously applied but is missing in the resolved migrations"
                )
            if known[version].checksum != applied[version]:
                raise MigrationError(
                    f"migration {version} was previously applied but has been modified"
                )

        for migration in ups:
            if migration.version in applied:
                continue
            start = time.perf_counter_ns()
            try:
                await conn.executescript(f"BEGIN;\n{migration.sql}\n;")
                await conn.execute(
                    f"INSERT INTO {LEDGER} (version, description, success, checksum, execution_time)"
                    " VALUES (?, ?, 1, ?, ?)",
                    (
                        migration.version,
                        migration.description,
                        migration.checksum,
                        time.perf_counter_ns() - start,
                    ),
                )
                await conn.commit()
            except sqlite3.Error as e:
                if conn.in_transaction:
                    await conn.rollback()
                logger.error(f"Migration {migration.version} '{migration.description}' failed: {e}")
                raise MigrationError(
                    f"migration {migration.version} '{migration.description}' failed: {e}"
                ) from e
            logger.info(f"Applied migration {migration.version} '{migration.description}'")
            applied_now.append(migration.version)

    return applied_now


def load_dir(migrations_dir: Path) -> list[Migration]:
    """Read migrations from `<version>_<description>[.up|.down].sql` files.

    Files that do not match the pattern are ignored. Returns records
    ordered by version, up before down for the same version.
    """
    if not migrations_dir.is_dir():
        return []

    migrations = []
    for sql_file in migrations_dir.glob("*.sql"):
        match = _FILE_PATTERN.match(sql_file.name)
        if not match:
            continue
        version, description, direction = match.groups()
        migrations.append(
            Migration(
                version=int(version),
                description=description.replace("_", " "),
                sql=sql_file.read_text(),
                kind=MigrationKind.DOWN if direction == "down" else MigrationKind.UP,
            )
        )

    migrations.sort(key=lambda m: (m.version, m.kind is MigrationKind.DOWN))
    return migrations
