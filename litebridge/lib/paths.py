import os
from pathlib import Path


def app_home() -> Path:
    """Storage directory for databases and config.yaml.

    LITEBRIDGE_HOME overrides the default ~/.litebridge.
    """
    override = os.environ.get("LITEBRIDGE_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".litebridge"


def config_file(home: Path | None = None) -> Path:
    return (home or app_home()) / "config.yaml"
