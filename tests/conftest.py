"""Pytest fixtures for md-to-epub tests."""

from unittest.mock import MagicMock

import httpx
import pytest

from schemas.book import BookMetadata

# PNG signature followed by padding; the bytes are copied, never decoded.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture(autouse=True)
def isolate_config_files(tmp_path_factory, monkeypatch):
    """Keep user rc files out of every test.

    HOME and the working directory point at empty temporary directories so
    load_config only sees rc files a test writes itself.
    """
    home = tmp_path_factory.mktemp("home")
    workdir = tmp_path_factory.mktemp("workdir")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    return home


@pytest.fixture
def png_bytes():
    """Bytes standing in for a PNG image."""
    return PNG_BYTES


@pytest.fixture
def mock_http_client():
    """Create a mock HTTP client."""
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def sample_metadata():
    """Book metadata with every optional field populated."""
    return BookMetadata(
        title="The Sample Book",
        author="Jane Doe",
        language="en",
        publisher="Sample Press",
        description="A book used in tests.",
        rights="All rights reserved",
        identifier="urn:uuid:12345678-1234-5678-1234-567812345678",
        creation_date="2026-01-15",
    )


@pytest.fixture
def write_markdown(tmp_path):
    """Factory writing a markdown file below tmp_path.

    Usage:
        path = write_markdown("chapter.md", "# Title\\n\\nBody")
    """

    def _write(name: str, text: str):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
