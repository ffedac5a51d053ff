"""Schema definitions for md-to-epub."""

from .book import BookMetadata, Chapter
from .config import ConverterConfig
from .document import ImageReference, ParsedDocument
from .package import (
    AssetOutcome,
    ContentDocument,
    ManifestItem,
    NavPoint,
    PackageManifest,
    ResolvedAsset,
    StagedTree,
)

__all__ = [
    "AssetOutcome",
    "BookMetadata",
    "Chapter",
    "ContentDocument",
    "ConverterConfig",
    "ImageReference",
    "ManifestItem",
    "NavPoint",
    "PackageManifest",
    "ParsedDocument",
    "ResolvedAsset",
    "StagedTree",
]
