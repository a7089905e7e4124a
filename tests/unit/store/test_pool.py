import asyncio

import pytest

from litebridge.errors import SqlError
from litebridge.store.options import resolve
from litebridge.store.pool import Pool


@pytest.fixture
def target(tmp_path):
    return resolve("sqlite:pool.db", tmp_path)


@pytest.mark.asyncio
async def test_connect_creates_database_file(target):
    assert not target.path.exists()
    pool = await Pool.connect(target)
    assert target.path.exists()
    assert pool.size == 1
    await pool.close()


@pytest.mark.asyncio
async def test_connections_use_wal_and_foreign_keys(target):
    pool = await Pool.connect(target)
    async with pool.acquire() as conn:
        async with conn.execute("PRAGMA journal_mode") as cursor:
            assert (await cursor.fetchone())[0] == "wal"
        async with conn.execute("PRAGMA foreign_keys") as cursor:
            assert (await cursor.fetchone())[0] == 1
    await pool.close()


@pytest.mark.asyncio
async def test_connect_fails_for_unreachable_path(tmp_path):
    target = resolve("sqlite:missing/dir/x.db", tmp_path)
    with pytest.raises(SqlError):
        await Pool.connect(target)


@pytest.mark.asyncio
async def test_pool_grows_lazily_up_to_max(target):
    pool = await Pool.connect(target, max_connections=3)
    async with pool.acquire(), pool.acquire():
        assert pool.size == 2
    async with pool.acquire():
        assert pool.size == 2
    await pool.close()


@pytest.mark.asyncio
async def test_acquire_times_out_when_pool_exhausted(target):
    pool = await Pool.connect(target, max_connections=1, acquire_timeout=0.05)
    async with pool.acquire():
        with pytest.raises(SqlError, match="timed out"):
            async with pool.acquire():
                pass
    await pool.close()


@pytest.mark.asyncio
async def test_acquire_on_closed_pool_fails(target):
    pool = await Pool.connect(target)
    await pool.close()
    assert pool.closed
    with pytest.raises(SqlError, match="closed pool"):
        async with pool.acquire():
            pass


@pytest.mark.asyncio
async def test_close_waits_for_checked_out_connections(target):
    pool = await Pool.connect(target)
    acquired = asyncio.Event()
    release = asyncio.Event()
    events = []

    async def worker():
        async with pool.acquire() as conn:
            acquired.set()
            await release.wait()
            await conn.execute("SELECT 1")
            events.append("query")

    task = asyncio.create_task(worker())
    await acquired.wait()
    closer = asyncio.create_task(pool.close())
    await asyncio.sleep(0.01)
    assert not closer.done()

    release.set()
    await asyncio.gather(task, closer)
    events.append("closed")
    assert events == ["query", "closed"]
    assert pool.size == 0


@pytest.mark.asyncio
async def test_open_transaction_is_rolled_back_on_release(target, caplog):
    pool = await Pool.connect(target, max_connections=1)
    async with pool.acquire() as conn:
        await conn.execute("CREATE TABLE t (v)")
        await conn.execute("BEGIN")
        await conn.execute("INSERT INTO t VALUES (1)")
    assert "Rolling back transaction left open" in caplog.text
    async with pool.acquire() as conn:
        assert not conn.in_transaction
        async with conn.execute("SELECT COUNT(*) FROM t") as cursor:
            assert (await cursor.fetchone())[0] == 0
    await pool.close()


@pytest.mark.asyncio
async def test_close_is_idempotent(target):
    pool = await Pool.connect(target)
    await pool.close()
    await pool.close()
    assert pool.closed
