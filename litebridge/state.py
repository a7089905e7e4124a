import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from litebridge.lib.config import PluginConfig
from litebridge.store.migrations import PendingMigrations
from litebridge.store.registry import DbInstances


@dataclass
class PluginState:
    """Everything a command needs, created once by Plugin.setup()."""

    storage_dir: Path
    config: PluginConfig = field(default_factory=PluginConfig)
    instances: DbInstances = field(default_factory=DbInstances)
    migrations: PendingMigrations = field(default_factory=PendingMigrations)
    load_locks: dict[str, asyncio.Lock] = field(default_factory=dict)

    def load_lock(self, db: str) -> asyncio.Lock:
        """Lock serializing loads of one identifier; other identifiers never wait on it."""
        return self.load_locks.setdefault(db, asyncio.Lock())
