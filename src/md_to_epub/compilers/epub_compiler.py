"""EPUB Compiler for assembling OCF package trees.

Builds the container pointer, package document (manifest + spine),
navigation map, content documents and stylesheet for either a single
document or an ordered list of chapters, stages them together with the
resolved images, and hands the tree to the ArchivePackager.
"""

import logging
import shutil
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from lxml import etree

from md_to_epub.aggregators.asset_resolver import AssetResolver
from md_to_epub.exceptions import ArchiveWriteError, ConfigurationError
from schemas.book import BookMetadata, Chapter
from schemas.document import ImageReference, ParsedDocument
from schemas.package import (
    ContentDocument,
    ManifestItem,
    NavPoint,
    PackageManifest,
    ResolvedAsset,
    StagedTree,
)

from .archive_packager import MIMETYPE, MIMETYPE_FILENAME, ArchivePackager
from .filters import FILTERS

logger = logging.getLogger(__name__)

# Resources live beside the compilers package:
#   epub_compiler.py → compilers/ → md_to_epub/ → resources/
RESOURCES_DIR = Path(__file__).parent.parent / "resources"
TEMPLATES_DIR = RESOURCES_DIR / "templates"
STYLESHEETS_DIR = RESOURCES_DIR / "stylesheets"

STAGING_PREFIX = ".epub-temp-"
OEBPS_DIR = "OEBPS"
PACKAGE_PATH = f"{OEBPS_DIR}/content.opf"
STYLESHEET_HREF = "css/style.css"
NCX_HREF = "toc.ncx"
SINGLE_DOCUMENT_ID = "content"

XHTML_MEDIA_TYPE = "application/xhtml+xml"


class EPUBCompiler:
    """Assemble and package EPUB 3 books.

    The EPUBCompiler:
    1. Creates a uniquely named staging directory next to the output file
    2. Resolves images (and the cover) into OEBPS/images
    3. Renders container.xml, content.opf, toc.ncx and the content documents
    4. Copies the stylesheet
    5. Zips the tree with the ArchivePackager
    6. Removes the staging directory, on success or failure

    Attributes:
        templates_dir: Directory containing the Jinja2 templates
        stylesheets_dir: Directory containing the book stylesheet
        stylesheet_name: File name of the book stylesheet
    """

    def __init__(
        self,
        resolver: AssetResolver | None = None,
        packager: ArchivePackager | None = None,
        templates_dir: Path | None = None,
        stylesheets_dir: Path | None = None,
        stylesheet_name: str = "style.css",
    ):
        """Initialize the EPUB compiler.

        Args:
            resolver: Asset resolver to use; one is created per compile if omitted
            packager: Archive packager (default: ArchivePackager())
            templates_dir: Directory containing templates (default: resources/templates)
            stylesheets_dir: Directory containing stylesheets (default: resources/stylesheets)
            stylesheet_name: Name of the CSS stylesheet file
        """
        self._resolver = resolver
        self._packager = packager or ArchivePackager()
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.stylesheets_dir = stylesheets_dir or STYLESHEETS_DIR
        self.stylesheet_name = stylesheet_name

        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
            keep_trailing_newline=True,
        )
        for name, func in FILTERS.items():
            self._env.filters[name] = func

    def compile(
        self,
        metadata: BookMetadata,
        content: ParsedDocument | list[Chapter],
        images: list[ImageReference],
        output_path: Path,
    ) -> Path:
        """Build an EPUB file from a document or a list of chapters.

        Args:
            metadata: Book metadata
            content: A single ParsedDocument, or chapters for a multi-document book
            images: Image references from all documents, duplicates allowed
            output_path: Path of the .epub file to write

        Returns:
            The output path

        Raises:
            ArchiveWriteError: If staging or packaging fails
            ConfigurationError: If the chapter list is empty or ids repeat
        """
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveWriteError(
                f"Cannot create output directory {output_path.parent}: {e}",
                path=output_path.parent,
            ) from e

        with self.staging(output_path.parent) as root:
            images_dir = root / OEBPS_DIR / "images"

            if self._resolver is not None:
                assets, cover = self._resolve_assets(
                    self._resolver, metadata, images, images_dir
                )
            else:
                with AssetResolver() as resolver:
                    assets, cover = self._resolve_assets(
                        resolver, metadata, images, images_dir
                    )

            tree = self.assemble(metadata, content, assets, root, cover=cover)
            self._packager.pack(tree, output_path)

        return output_path

    @contextmanager
    def staging(self, output_dir: Path) -> Iterator[Path]:
        """Create a staging directory that is always removed afterwards.

        The name carries a fresh UUID so concurrent conversions into the same
        output directory never share a staging tree.

        Args:
            output_dir: Directory the final package will be written to

        Yields:
            Path to the new staging directory
        """
        root = output_dir / f"{STAGING_PREFIX}{uuid.uuid4()}"
        try:
            root.mkdir(parents=True)
        except OSError as e:
            raise ArchiveWriteError(
                f"Cannot create staging directory {root}: {e}", path=root
            ) from e

        logger.debug(f"Created staging directory {root}")
        try:
            yield root
        finally:
            shutil.rmtree(root, ignore_errors=True)
            logger.debug(f"Removed staging directory {root}")

    def assemble(
        self,
        metadata: BookMetadata,
        content: ParsedDocument | list[Chapter],
        assets: list[ResolvedAsset],
        root: Path,
        cover: ResolvedAsset | None = None,
        modified: datetime | None = None,
    ) -> StagedTree:
        """Write every package file except the images into a staging tree.

        Args:
            metadata: Book metadata
            content: A single ParsedDocument, or chapters
            assets: Images already placed in OEBPS/images
            root: Staging directory
            cover: Cover image already placed in OEBPS/images
            modified: Timestamp for dcterms:modified (default: now, UTC)

        Returns:
            StagedTree describing the written package
        """
        modified = modified or datetime.now(timezone.utc)
        documents = self._content_documents(metadata, content)
        manifest = self._build_manifest(documents, assets, cover)

        oebps = root / OEBPS_DIR
        self._write(root / MIMETYPE_FILENAME, MIMETYPE)
        self._write_xml(
            root / "META-INF" / "container.xml",
            self._render("container.xml.j2", package_path=PACKAGE_PATH),
        )
        self._write_xml(
            oebps / "content.opf",
            self._render(
                "content.opf.j2",
                metadata=metadata,
                manifest=manifest,
                modified=modified,
                cover_id=cover.id if cover else None,
            ),
        )
        self._write_xml(
            oebps / NCX_HREF,
            self._render("toc.ncx.j2", metadata=metadata, manifest=manifest),
        )

        for document in documents:
            self._write_content_document(oebps, document, metadata.language)

        self._copy_stylesheet(oebps / STYLESHEET_HREF)

        logger.info(
            f"Assembled package with {len(documents)} content document(s) "
            f"and {len(assets)} image(s)"
        )
        return StagedTree(root=root, manifest=manifest)

    def _resolve_assets(
        self,
        resolver: AssetResolver,
        metadata: BookMetadata,
        images: list[ImageReference],
        images_dir: Path,
    ) -> tuple[list[ResolvedAsset], ResolvedAsset | None]:
        """Materialize body images and the cover into the staging tree."""
        outcomes = resolver.resolve(images, images_dir)
        assets = [outcome.asset for outcome in outcomes if outcome.asset is not None]

        cover = None
        if metadata.cover_asset_path:
            cover = resolver.resolve_cover(Path(metadata.cover_asset_path), images_dir)
        return assets, cover

    def _content_documents(
        self,
        metadata: BookMetadata,
        content: ParsedDocument | list[Chapter],
    ) -> list[ContentDocument]:
        """Normalize single-document or chapter input into spine order."""
        if isinstance(content, ParsedDocument):
            return [
                ContentDocument(
                    id=SINGLE_DOCUMENT_ID,
                    href=f"{SINGLE_DOCUMENT_ID}.xhtml",
                    title=metadata.title,
                    content_html=content.content_html,
                )
            ]

        if not content:
            raise ConfigurationError("At least one chapter is required")

        chapter_ids = [chapter.chapter_id for chapter in content]
        if len(set(chapter_ids)) != len(chapter_ids):
            raise ConfigurationError(f"Chapter ids must be unique: {chapter_ids}")

        return [
            ContentDocument(
                id=chapter.chapter_id,
                href=chapter.href,
                title=chapter.title,
                content_html=chapter.content_html,
            )
            for chapter in sorted(content, key=lambda c: c.sequence_index)
        ]

    def _build_manifest(
        self,
        documents: list[ContentDocument],
        assets: list[ResolvedAsset],
        cover: ResolvedAsset | None,
    ) -> PackageManifest:
        """Build manifest items, spine and navigation points."""
        items = [
            ManifestItem(id="ncx", href=NCX_HREF, media_type="application/x-dtbncx+xml"),
            ManifestItem(id="style", href=STYLESHEET_HREF, media_type="text/css"),
        ]
        items.extend(
            ManifestItem(id=doc.id, href=doc.href, media_type=XHTML_MEDIA_TYPE)
            for doc in documents
        )

        if cover is not None:
            items.append(
                ManifestItem(
                    id=cover.id,
                    href=cover.href,
                    media_type=cover.media_type,
                    properties="cover-image",
                )
            )

        for asset in assets:
            if cover is not None and asset.filename == cover.filename:
                logger.warning(
                    f"Image {asset.filename} is replaced by the cover image; "
                    f"it is not listed separately"
                )
                continue
            items.append(
                ManifestItem(id=asset.id, href=asset.href, media_type=asset.media_type)
            )

        nav_points = [
            NavPoint(
                id=f"navpoint-{n}",
                play_order=n,
                label=doc.title,
                src=doc.href,
            )
            for n, doc in enumerate(documents, start=1)
        ]

        return PackageManifest(
            items=items,
            spine=[doc.id for doc in documents],
            nav_points=nav_points,
        )

    def _render(self, template_name: str, **context) -> str:
        """Render a package template."""
        return self._env.get_template(template_name).render(**context)

    def _write_content_document(
        self,
        oebps: Path,
        document: ContentDocument,
        language: str,
    ) -> None:
        """Render and write one content document."""
        xhtml = self._render(
            "content.xhtml.j2",
            title=document.title,
            language=language,
            stylesheet_path=STYLESHEET_HREF,
            content=document.content_html,
        )
        try:
            etree.fromstring(xhtml.encode("utf-8"))
        except etree.XMLSyntaxError as e:
            logger.warning(f"{document.href} is not well-formed XML: {e}")

        self._write(oebps / document.href, xhtml)
        logger.debug(f"Wrote content document {document.href}")

    def _write_xml(self, path: Path, text: str) -> None:
        """Write a generated package document after checking it is well-formed."""
        try:
            etree.fromstring(text.encode("utf-8"))
        except etree.XMLSyntaxError as e:
            raise ArchiveWriteError(
                f"Generated {path.name} is not well-formed: {e}", path=path
            ) from e
        self._write(path, text)

    def _write(self, path: Path, text: str) -> None:
        """Write a UTF-8 text file into the staging tree."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ArchiveWriteError(f"Cannot write {path}: {e}", path=path) from e

    def _copy_stylesheet(self, destination: Path) -> None:
        """Copy the book stylesheet into the staging tree."""
        src = self.stylesheets_dir / self.stylesheet_name
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, destination)
        except OSError as e:
            raise ArchiveWriteError(f"Cannot copy stylesheet {src}: {e}", path=src) from e
        logger.debug(f"Copied stylesheet to {destination}")
