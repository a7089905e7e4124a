"""Plugin lifecycle: migration registration, startup preload, shutdown."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from litebridge import commands
from litebridge.lib import config as lib_config
from litebridge.lib import paths
from litebridge.lib.config import PluginConfig
from litebridge.state import PluginState
from litebridge.store.migrations import Migration, PendingMigrations
from litebridge.store.options import ConnectOptions

logger = logging.getLogger(__name__)

NAME = "sqlite"


class Builder:
    """Collects migrations before the plugin starts."""

    def __init__(self):
        self._migrations: dict[str, list[Migration]] | None = None

    def add_migrations(self, db_url: str, migrations: list[Migration]) -> "Builder":
        if self._migrations is None:
            self._migrations = {}
        self._migrations[db_url] = list(migrations)
        return self

    def build(self) -> "Plugin":
        migrations, self._migrations = self._migrations or {}, None
        return Plugin(migrations)


class Plugin:
    name = NAME

    def __init__(self, migrations: dict[str, list[Migration]] | None = None):
        self._migrations = migrations or {}
        self._state: PluginState | None = None
        self._started = False

    @property
    def state(self) -> PluginState:
        if self._state is None:
            raise RuntimeError("plugin is not set up")
        return self._state

    async def setup(
        self,
        storage_dir: Path | None = None,
        config: PluginConfig | dict | None = None,
    ) -> PluginState:
        """Create the plugin state and open every preloaded database.

        Preloaded databases are migrated before the registry is visible to
        any caller. A preload failure closes what was opened and re-raises.
        """
        if self._started:
            raise RuntimeError("plugin is already set up")
        self._started = True

        storage_dir = storage_dir or paths.app_home()
        if config is None:
            config = lib_config.plugin_config(storage_dir)
        elif isinstance(config, dict):
            config = PluginConfig.from_dict(config)

        state = PluginState(
            storage_dir=storage_dir,
            config=config,
            migrations=PendingMigrations(self._migrations),
        )
        self._migrations = {}

        async with state.instances.write() as instances:
            try:
                for db in config.preload:
                    pool = await commands.connect(state, ConnectOptions.from_url(db))
                    instances.insert(db, pool)
            except BaseException:
                for db in instances.identifiers():
                    await instances.remove(db).close()
                raise

        self._state = state
        return state

    async def exit(self) -> None:
        """Close every pool. Failures are logged; nothing is raised."""
        if self._state is None:
            return
        state, self._state = self._state, None
        await state.instances.close_all()

    @asynccontextmanager
    async def session(
        self,
        storage_dir: Path | None = None,
        config: PluginConfig | dict | None = None,
    ):
        state = await self.setup(storage_dir, config)
        try:
            yield state
        finally:
            await self.exit()
