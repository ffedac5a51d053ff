"""Tests for conversion exception classes."""

from pathlib import Path

from md_to_epub.exceptions import (
    ArchiveWriteError,
    AssetCopyError,
    AssetError,
    AssetFetchError,
    ConfigurationError,
    ConverterError,
    InputNotFoundError,
    ParseError,
)


class TestConverterError:
    """Tests for the base ConverterError exception."""

    def test_instantiation_with_message(self):
        """ConverterError stores the error message."""
        error = ConverterError("Something went wrong")

        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    def test_inheritance(self):
        """ConverterError is an Exception."""
        assert isinstance(ConverterError("test"), Exception)


class TestInputErrors:
    """Tests for input-related exceptions."""

    def test_input_not_found(self):
        """InputNotFoundError stores the missing path."""
        error = InputNotFoundError("missing", path=Path("a.md"))

        assert error.message == "missing"
        assert error.path == Path("a.md")
        assert isinstance(error, ConverterError)

    def test_parse_error(self):
        """ParseError path is optional."""
        error = ParseError("bad")

        assert error.path is None
        assert isinstance(error, ConverterError)


class TestAssetErrors:
    """Tests for asset exceptions."""

    def test_fetch_error(self):
        """AssetFetchError stores the URL and status code."""
        error = AssetFetchError("HTTP 404", url="https://example.com/a.png", status_code=404)

        assert error.url == "https://example.com/a.png"
        assert error.status_code == 404
        assert isinstance(error, AssetError)

    def test_fetch_error_without_status(self):
        """Network failures carry no status code."""
        error = AssetFetchError("refused", url="https://example.com/a.png")

        assert error.status_code is None

    def test_copy_error(self):
        """AssetCopyError stores the source path."""
        error = AssetCopyError("gone", path="a.png")

        assert error.path == "a.png"
        assert isinstance(error, AssetError)
        assert isinstance(error, ConverterError)


class TestPackagingErrors:
    """Tests for packaging and configuration exceptions."""

    def test_archive_write_error(self):
        """ArchiveWriteError stores the path."""
        error = ArchiveWriteError("disk full", path="book.epub")

        assert error.message == "disk full"
        assert error.path == "book.epub"

    def test_configuration_error(self):
        """ConfigurationError is a ConverterError."""
        assert isinstance(ConfigurationError("bad"), ConverterError)
