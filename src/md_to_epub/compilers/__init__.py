"""Compilers for assembling and packaging EPUB books."""

from .archive_packager import ArchivePackager
from .epub_compiler import EPUBCompiler

__all__ = ["ArchivePackager", "EPUBCompiler"]
