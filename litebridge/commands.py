"""The load / close / execute / select calls exposed to a host."""

from typing import Any

from litebridge.state import PluginState
from litebridge.store import migrations, query
from litebridge.store.options import ConnectOptions, resolve
from litebridge.store.pool import Pool


def _options(options: ConnectOptions | dict | str) -> ConnectOptions:
    if isinstance(options, ConnectOptions):
        return options
    if isinstance(options, dict):
        return ConnectOptions.from_dict(options)
    return ConnectOptions.from_url(options)


async def connect(state: PluginState, options: ConnectOptions) -> Pool:
    """Open a pool and apply any pending migrations for its url.

    The pending list is consumed even if applying it fails; the pool is
    closed again in that case.
    """
    target = resolve(options.db_url, state.storage_dir, options.extensions)
    pool = await Pool.connect(
        target,
        max_connections=state.config.max_connections,
        acquire_timeout=state.config.acquire_timeout,
    )

    migs = await state.migrations.take(options.db_url)
    if migs is not None:
        try:
            await migrations.apply(pool, migs)
        except BaseException:
            await pool.close()
            raise
    return pool


async def load(state: PluginState, options: ConnectOptions | dict | str) -> str:
    """Open (or reuse) the pool for options.db_url and return the url.

    Loads of the same url run one at a time, so a second caller only sees
    the pool after the first caller's migrations have been applied.
    """
    options = _options(options)
    db = options.db_url

    async with state.load_lock(db):
        async with state.instances.read() as instances:
            if instances.contains(db):
                return db

        pool = await connect(state, options)

        async with state.instances.write() as instances:
            instances.insert(db, pool)
    return db


async def close(state: PluginState, db: str | None = None) -> bool:
    """Close one database, or every loaded database when db is None."""
    async with state.instances.write() as instances:
        targets = [db] if db is not None else instances.identifiers()
        for name in targets:
            pool = instances.get(name)
            await pool.close()
            instances.remove(name)
    return True


async def execute(
    state: PluginState, db: str, sql: str, values: list[Any] | None = None
) -> tuple[int, int]:
    async with state.instances.read() as instances:
        pool = instances.get(db)
        return await query.execute(pool, sql, values)


async def select(
    state: PluginState, db: str, sql: str, values: list[Any] | None = None
) -> list[dict[str, Any]]:
    async with state.instances.read() as instances:
        pool = instances.get(db)
        return await query.select(pool, sql, values)
