# ContentSync Test Fixtures
# Pytest fixtures for ContentSync tests

import io
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx
import yaml
from PIL import Image
from rich.console import Console as RichConsole

from contentsync.config.schema import ContentConfig
from contentsync.errors import SourceError, fetch_error
from contentsync.logger import SyncLogger
from contentsync.result import Err, Ok, Result
from contentsync.sources.base import ContentSource, FetchContext, SourceDocument
from contentsync.store import DataStore


class StaticSource(ContentSource):
    """Source returning fixed documents."""

    def __init__(self, source_id: str, documents: dict[str, Any]):
        super().__init__(source_id)
        self.documents = documents
        self.fetch_count = 0

    def fetch(self, ctx: FetchContext) -> Result[list[SourceDocument], SourceError]:
        self.fetch_count += 1
        return Ok([SourceDocument(id=doc_id, data=data) for doc_id, data in self.documents.items()])


class FailingSource(ContentSource):
    """Source whose fetch always fails."""

    def __init__(self, source_id: str, message: str = "remote unavailable"):
        super().__init__(source_id)
        self.message = message
        self.fetch_count = 0

    def fetch(self, ctx: FetchContext) -> Result[list[SourceDocument], SourceError]:
        self.fetch_count += 1
        return Err(fetch_error(self.message))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def output() -> io.StringIO:
    """Buffer capturing logger output."""
    return io.StringIO()


@pytest.fixture
def logger(output: io.StringIO) -> SyncLogger:
    """Verbose logger writing to a buffer."""
    console = RichConsole(file=output, no_color=True, width=200)
    return SyncLogger(console, verbose=True)


@pytest.fixture
def store() -> DataStore:
    """Empty data store."""
    return DataStore()


@pytest.fixture
def make_config(temp_dir: Path) -> Callable[..., ContentConfig]:
    """Factory for configs rooted in the temp dir."""

    def _make(**overrides: Any) -> ContentConfig:
        data: dict[str, Any] = {"download_path": str(temp_dir / "downloads")}
        data.update(overrides)
        return ContentConfig.model_validate(data)

    return _make


@pytest.fixture
def client() -> Generator[httpx.Client, None, None]:
    """HTTP client for respx-mocked requests."""
    with httpx.Client() as http_client:
        yield http_client


@pytest.fixture
def mock_http() -> Generator[respx.MockRouter, None, None]:
    """Router intercepting every httpx request."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def png_bytes() -> bytes:
    """A 40x20 PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_config(temp_dir: Path) -> dict:
    """Create sample configuration dict."""
    return {
        "download_path": str(temp_dir / "downloads"),
        "max_concurrent": 2,
        "keep": "*.csv",
        "image_transforms": [{"scale": 0.5}],
        "content_transforms": {"$..body": "mdToHtml"},
        "sources": [
            {
                "id": "site",
                "files": {"settings": "https://example.com/settings.json"},
            },
            {
                "id": "articles",
                "type": "rest",
                "base_url": "https://api.example.com/",
                "queries": ["articles"],
                "limit": 2,
            },
        ],
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "contentsync.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path
