from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml

from . import paths

DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_ACQUIRE_TIMEOUT = 30.0


@dataclass
class PluginConfig:
    preload: list[str] = field(default_factory=list)
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict | None) -> "PluginConfig":
        """Build config from parsed YAML, rejecting values of the wrong shape."""
        data = data or {}

        preload = data.get("preload") or []
        if not isinstance(preload, list) or not all(isinstance(db, str) for db in preload):
            raise ValueError("preload must be a list of database urls")

        max_connections = data.get("max_connections", DEFAULT_MAX_CONNECTIONS)
        if isinstance(max_connections, bool) or not isinstance(max_connections, int):
            raise ValueError("max_connections must be an integer")
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")

        acquire_timeout = data.get("acquire_timeout", DEFAULT_ACQUIRE_TIMEOUT)
        if isinstance(acquire_timeout, bool) or not isinstance(acquire_timeout, int | float):
            raise ValueError("acquire_timeout must be a number of seconds")
        if acquire_timeout <= 0:
            raise ValueError("acquire_timeout must be positive")

        return cls(
            preload=list(preload),
            max_connections=max_connections,
            acquire_timeout=float(acquire_timeout),
        )


def clear_cache():
    load_config.cache_clear()


@lru_cache(maxsize=8)
def load_config(home: Path | None = None) -> dict:
    """Load config.yaml from the storage directory, or an empty dict if not found."""
    path = paths.config_file(home)
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def plugin_config(home: Path | None = None) -> PluginConfig:
    return PluginConfig.from_dict(load_config(home))
