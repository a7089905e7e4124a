import pytest
import pytest_asyncio

from litebridge.lib import config
from litebridge.plugin import Builder


@pytest.fixture
def storage_dir(tmp_path, monkeypatch):
    """Isolated storage directory; LITEBRIDGE_HOME points at it and config cache is cleared."""
    home = tmp_path / "home"
    monkeypatch.setenv("LITEBRIDGE_HOME", str(home))
    config.clear_cache()
    yield home
    config.clear_cache()


@pytest_asyncio.fixture
async def state(storage_dir):
    """Running plugin state with no registered migrations."""
    plugin = Builder().build()
    state = await plugin.setup(storage_dir)
    yield state
    await plugin.exit()
