"""Embedded SQLite access for host applications: load, execute, select, close."""

from litebridge.errors import (
    DatabaseNotLoadedError,
    InvalidDbUrlError,
    LiteBridgeError,
    MigrationError,
    SqlError,
    UnsupportedDatatypeError,
)
from litebridge.lib.config import PluginConfig
from litebridge.plugin import Builder, Plugin
from litebridge.state import PluginState
from litebridge.store.migrations import Migration, MigrationKind
from litebridge.store.options import ConnectOptions

__all__ = [
    "Builder",
    "Plugin",
    "PluginConfig",
    "PluginState",
    "Migration",
    "MigrationKind",
    "ConnectOptions",
    "LiteBridgeError",
    "SqlError",
    "MigrationError",
    "InvalidDbUrlError",
    "DatabaseNotLoadedError",
    "UnsupportedDatatypeError",
]
