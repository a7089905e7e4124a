import asyncio

import pytest

from litebridge.lib.rwlock import RWLock


@pytest.mark.asyncio
async def test_readers_share_the_lock():
    lock = RWLock()
    inside = 0
    peak = 0

    async def reader():
        nonlocal inside, peak
        async with lock.read():
            inside += 1
            peak = max(peak, inside)
            await asyncio.sleep(0.01)
            inside -= 1

    await asyncio.gather(*(reader() for _ in range(5)))
    assert peak == 5


@pytest.mark.asyncio
async def test_writer_waits_for_readers():
    lock = RWLock()
    events = []
    reading = asyncio.Event()
    release = asyncio.Event()

    async def reader():
        async with lock.read():
            reading.set()
            await release.wait()
            events.append("read done")

    async def writer():
        async with lock.write():
            events.append("write")

    r = asyncio.create_task(reader())
    await reading.wait()
    w = asyncio.create_task(writer())
    await asyncio.sleep(0.01)
    assert events == []

    release.set()
    await asyncio.gather(r, w)
    assert events == ["read done", "write"]


@pytest.mark.asyncio
async def test_waiting_writer_blocks_new_readers():
    lock = RWLock()
    events = []
    reading = asyncio.Event()
    release = asyncio.Event()

    async def first_reader():
        async with lock.read():
            reading.set()
            await release.wait()

    async def writer():
        async with lock.write():
            events.append("write")

    async def late_reader():
        async with lock.read():
            events.append("late read")

    r1 = asyncio.create_task(first_reader())
    await reading.wait()
    w = asyncio.create_task(writer())
    await asyncio.sleep(0.01)
    r2 = asyncio.create_task(late_reader())
    await asyncio.sleep(0.01)
    assert events == []

    release.set()
    await asyncio.gather(r1, w, r2)
    assert events == ["write", "late read"]


@pytest.mark.asyncio
async def test_cancelled_writer_unblocks_readers():
    lock = RWLock()
    reading = asyncio.Event()
    release = asyncio.Event()

    async def reader():
        async with lock.read():
            reading.set()
            await release.wait()

    async def writer():
        async with lock.write():
            pass

    r = asyncio.create_task(reader())
    await reading.wait()
    w = asyncio.create_task(writer())
    await asyncio.sleep(0.01)
    w.cancel()
    with pytest.raises(asyncio.CancelledError):
        await w

    async with asyncio.timeout(1):
        async with lock.read():
            pass

    release.set()
    await r
