"""Transformers for converting markdown into the EPUB content model."""

from .extensions import FootnoteExtension, ImageCollectorExtension, RenderContext
from .markdown_transformer import MarkdownTransformer, extract_title

__all__ = [
    "MarkdownTransformer",
    "FootnoteExtension",
    "ImageCollectorExtension",
    "RenderContext",
    "extract_title",
]
