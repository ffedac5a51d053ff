"""EPUB package schemas.

These describe the staged OCF tree that the compiler builds before it is
zipped into the final container.

Directory structure:
    .epub-temp-{token}/
    ├── mimetype
    ├── META-INF/
    │   └── container.xml
    └── OEBPS/
        ├── content.opf
        ├── toc.ncx
        ├── css/style.css
        ├── content.xhtml            # single-document mode
        ├── chapter-{n}.xhtml        # chapter mode
        └── images/
            └── ...
"""

from pathlib import Path

from pydantic import BaseModel

from .document import ImageReference


class ResolvedAsset(BaseModel):
    """An image whose bytes were placed in the staged tree.

    Attributes:
        id: Manifest item id
        filename: File name inside OEBPS/images
        media_type: MIME type of the asset
        source: Filesystem path or URL the bytes came from
    """

    id: str
    filename: str
    media_type: str
    source: str

    @property
    def href(self) -> str:
        return f"images/{self.filename}"


class AssetOutcome(BaseModel):
    """Result of materializing one unique image reference.

    Exactly one of ``asset`` and ``error`` is set.
    """

    reference: ImageReference
    asset: ResolvedAsset | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.asset is not None


class ContentDocument(BaseModel):
    """A content document to be written into the spine.

    Attributes:
        id: Manifest item id ("content" or "chapter-N")
        href: Path relative to OEBPS
        title: Document title for the XHTML head and navigation label
        content_html: XHTML body fragment
    """

    id: str
    href: str
    title: str
    content_html: str


class ManifestItem(BaseModel):
    """An item in the package document manifest."""

    id: str
    href: str
    media_type: str
    properties: str | None = None


class NavPoint(BaseModel):
    """A top-level entry in the navigation map."""

    id: str
    play_order: int
    label: str
    src: str


class PackageManifest(BaseModel):
    """Derived description of the package document and navigation map.

    Attributes:
        items: Manifest items in package-document order
        spine: Item ids in reading order
        nav_points: Navigation entries, same order as the spine
    """

    items: list[ManifestItem] = []
    spine: list[str] = []
    nav_points: list[NavPoint] = []

    def item(self, item_id: str) -> ManifestItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class StagedTree(BaseModel):
    """A fully written staging directory ready to be archived.

    Attributes:
        root: Staging directory
        manifest: Description of what the package document lists
    """

    root: Path
    manifest: PackageManifest
