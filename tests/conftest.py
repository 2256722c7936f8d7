"""Shared pytest fixtures for all tests."""

from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from cli.config import Config
from common.kv_store import MemoryKeyValueStore

APP_URL = "http://app.test/"
LOGO_URL = "https://ineqe.com/wp-content/uploads/2022/11/Airdrop_Logo2022.png"

SHELL_ROUTES: Dict[str, Tuple[int, bytes]] = {
    "http://app.test/": (200, b"<html>root</html>"),
    "http://app.test/index.html": (200, b"<html>shell</html>"),
    "http://app.test/styles.css": (200, b"body {}"),
    "http://app.test/script.js": (200, b"console.log('hi')"),
    "http://app.test/manifest.json": (200, b"{}"),
    LOGO_URL: (200, b"\x89PNG logo"),
}


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RoutedTransport:
    """
    Mock network: serves fixed routes, records every request and can be
    switched offline per URL or entirely.
    """

    def __init__(self, routes: Optional[Dict[str, Tuple[int, bytes]]] = None):
        self.routes = dict(routes or {})
        self.offline = False
        self.failing_urls: set = set()
        self.calls: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if self.offline or url in self.failing_urls:
            raise httpx.ConnectError("network unreachable", request=request)
        status, body = self.routes.get(url, (404, b"not found"))
        return httpx.Response(status, content=body, headers={"content-type": "text/plain"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_kv():
    return MemoryKeyValueStore()


@pytest.fixture
def transport():
    return RoutedTransport(SHELL_ROUTES)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .airdrop directory
    """
    config_dir = tmp_path / '.airdrop'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, tmp_path):
    """
    Create temporary config instance pointing at temp store and downloads.

    Returns:
        Config instance with temp config file
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['store_path'] = str(tmp_path / 'store.db')
    config.data['download_dir'] = str(tmp_path / 'downloads')
    config.data['app_url'] = APP_URL
    config.data['download_stagger_seconds'] = 0
    config.save()
    return config


@pytest.fixture
def sample_files(tmp_path):
    """
    Create a 3-byte text file and an empty file.

    Returns:
        List of Paths in selection order
    """
    first = tmp_path / 'abc.txt'
    first.write_bytes(b'abc')
    empty = tmp_path / 'empty.bin'
    empty.write_bytes(b'')
    return [first, empty]


@pytest.fixture
def make_source() -> Callable:
    """Factory for in-memory file sources."""
    from dataclasses import dataclass

    @dataclass
    class MemorySource:
        name: str
        data: bytes
        mime_type: str = "text/plain"
        modified_at: int = 0
        fail: bool = False

        @property
        def size(self) -> int:
            return len(self.data)

        def read_bytes(self) -> bytes:
            if self.fail:
                raise OSError(f"cannot read {self.name}")
            return self.data

    return MemorySource
