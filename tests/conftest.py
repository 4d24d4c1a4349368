import io
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Add the parent directory to the path so the top-level packages import
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import ServerConfig
from indexer.sqlite_store import DocumentStore
from pipelines.http import HttpFetcher
from server.mcp_server import RustDocServer
from sources.loader import SourceLoader


@pytest_asyncio.fixture
async def store():
    """An initialized in-memory document store."""
    store = DocumentStore(":memory:")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def fetcher():
    """HttpFetcher stand-in; tests set get_text / get_json return values."""
    fetcher = MagicMock(spec=HttpFetcher)
    fetcher.get_text = AsyncMock()
    fetcher.get_json = AsyncMock()
    fetcher.close = AsyncMock()
    return fetcher


@pytest.fixture
def sources():
    return SourceLoader().get_enabled_sources()


@pytest.fixture
def config():
    return ServerConfig(db_path=":memory:", seed_on_start=True, heartbeat_interval=0, shutdown_grace=0.01)


@pytest.fixture
def output():
    return io.StringIO()


@pytest_asyncio.fixture
async def server(store, fetcher, sources, config, output):
    """A started server whose outbound HTTP is mocked and whose frames go to ``output``."""
    server = RustDocServer(store, config, fetcher=fetcher, sources=sources, output=output)
    await server.start()
    yield server
