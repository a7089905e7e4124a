import asyncio
import logging
import sqlite3
import time
from collections import deque
from contextlib import asynccontextmanager

import aiosqlite

from litebridge.errors import SqlError
from litebridge.lib.config import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_MAX_CONNECTIONS
from litebridge.store import codec
from litebridge.store.options import ConnectTarget

logger = logging.getLogger(__name__)


async def open_connection(target: ConnectTarget) -> aiosqlite.Connection:
    """Open one connection to the target with WAL, foreign keys and busy timeout.

    The database file is created if it does not exist.
    """
    codec.register_converters()
    start = time.perf_counter()
    try:
        conn = await aiosqlite.connect(
            target.database(),
            uri=target.uri,
            isolation_level=None,
            check_same_thread=False,
            detect_types=sqlite3.PARSE_DECLTYPES,
        )
    except sqlite3.Error as e:
        raise SqlError(str(e)) from e

    try:
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA busy_timeout = 5000")  # 5s for lock contention
        await conn.execute("PRAGMA journal_mode = WAL")
        if target.extensions:
            await conn.enable_load_extension(True)
            for extension in target.extensions:
                await conn.load_extension(extension)
            await conn.enable_load_extension(False)
    except (sqlite3.Error, AttributeError) as e:
        await conn.close()
        raise SqlError(str(e)) from e

    elapsed = time.perf_counter() - start
    if elapsed > 0.1:
        logger.warning(f"SQLite connection took {elapsed:.3f}s (possible lock contention)")

    return conn


class Pool:
    """Bounded set of reusable aiosqlite connections to one database."""

    def __init__(
        self,
        target: ConnectTarget,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT,
    ):
        self.target = target
        self.max_connections = max_connections
        self.acquire_timeout = acquire_timeout
        self._idle: deque[aiosqlite.Connection] = deque()
        self._permits = asyncio.Semaphore(max_connections)
        self._size = 0
        self._closed = False

    @classmethod
    async def connect(
        cls,
        target: ConnectTarget,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT,
    ) -> "Pool":
        pool = cls(target, max_connections, acquire_timeout)
        pool._idle.append(await open_connection(target))
        pool._size = 1
        logger.info(f"Opened pool for {target.url}")
        return pool

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def size(self) -> int:
        return self._size

    @asynccontextmanager
    async def acquire(self):
        if self._closed:
            raise SqlError("attempted to acquire a connection on a closed pool")
        try:
            await asyncio.wait_for(self._permits.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError as e:
            raise SqlError("pool timed out while waiting for an open connection") from e

        try:
            if self._closed:
                raise SqlError("attempted to acquire a connection on a closed pool")
            if self._idle:
                conn = self._idle.pop()
            else:
                conn = await open_connection(self.target)
                self._size += 1
        except BaseException:
            self._permits.release()
            raise

        try:
            yield conn
        finally:
            try:
                await self._release(conn)
            finally:
                self._permits.release()

    async def _release(self, conn: aiosqlite.Connection) -> None:
        try:
            if conn.in_transaction:
                logger.warning(f"Rolling back transaction left open on {self.target.url}")
                await conn.rollback()
        except sqlite3.Error as e:
            logger.warning(f"Discarding connection to {self.target.url}: {e}")
            self._size -= 1
            await conn.close()
            return
        self._idle.append(conn)

    async def close(self) -> None:
        """Wait for checked-out connections to come back, then close them all."""
        if self._closed:
            return
        self._closed = True

        for _ in range(self.max_connections):
            await self._permits.acquire()

        while self._idle:
            conn = self._idle.pop()
            await conn.close()
        self._size = 0
        logger.info(f"Closed pool for {self.target.url}")
