"""Custom exceptions for markdown to EPUB conversion."""

from pathlib import Path


class ConverterError(Exception):
    """Base exception for all conversion errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class InputNotFoundError(ConverterError):
    """Raised when a source document does not exist."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        super().__init__(message)


class ParseError(ConverterError):
    """Raised when the markdown transform itself fails."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        super().__init__(message)


class AssetError(ConverterError):
    """Base exception for a single image that cannot be materialized."""

    pass


class AssetFetchError(AssetError):
    """Raised when a remote image cannot be downloaded."""

    def __init__(self, message: str, url: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class AssetCopyError(AssetError):
    """Raised when a local image cannot be copied."""

    def __init__(self, message: str, path: Path | str):
        self.path = path
        super().__init__(message)


class ArchiveWriteError(ConverterError):
    """Raised when staging or packaging I/O fails."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        super().__init__(message)


class ConfigurationError(ConverterError):
    """Raised for an invalid combination of caller-supplied options."""

    pass
