"""Open connection pools keyed by database url."""

import logging
from contextlib import asynccontextmanager

from litebridge.errors import DatabaseNotLoadedError
from litebridge.lib.rwlock import RWLock
from litebridge.store.pool import Pool

logger = logging.getLogger(__name__)


class DbInstances:
    """Registry of live pools.

    Lookups share a read lock; inserting and removing pools takes the
    write lock, which excludes every other registry access.
    """

    def __init__(self):
        self._pools: dict[str, Pool] = {}
        self._lock = RWLock()

    @asynccontextmanager
    async def read(self):
        async with self._lock.read():
            yield self

    @asynccontextmanager
    async def write(self):
        async with self._lock.write():
            yield self

    # The methods below expect the caller to hold read() or write().

    def get(self, db: str) -> Pool:
        pool = self._pools.get(db)
        if pool is None:
            raise DatabaseNotLoadedError(db)
        return pool

    def contains(self, db: str) -> bool:
        return db in self._pools

    def insert(self, db: str, pool: Pool) -> None:
        self._pools[db] = pool

    def remove(self, db: str) -> Pool:
        pool = self._pools.pop(db, None)
        if pool is None:
            raise DatabaseNotLoadedError(db)
        return pool

    def identifiers(self) -> list[str]:
        return list(self._pools)

    async def close_all(self) -> None:
        """Close and drop every pool; failures are logged, not raised."""
        async with self.write():
            for db in self.identifiers():
                pool = self._pools.pop(db)
                try:
                    await pool.close()
                except Exception as e:
                    logger.warning(f"Failed to close {db}: {e}")
