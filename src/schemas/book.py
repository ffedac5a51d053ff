"""Book-level schemas: descriptive metadata and chapters."""

from pydantic import BaseModel, ConfigDict, Field


class BookMetadata(BaseModel):
    """Whole-book descriptive metadata.

    Attributes:
        title: Book title
        author: Book author (dc:creator)
        language: BCP 47 language code
        publisher: Publisher name, omitted from the package when absent
        description: Book description, omitted when absent
        rights: Rights statement, omitted when absent
        identifier: Globally unique book identifier
        cover_asset_path: Filesystem path of the cover image
        creation_date: ISO date fixed when the metadata is built
    """

    title: str
    author: str
    language: str = "en"
    publisher: str | None = None
    description: str | None = None
    rights: str | None = None
    identifier: str
    cover_asset_path: str | None = None
    creation_date: str


class Chapter(BaseModel):
    """One document placed in a multi-document book.

    Chapters are frozen once built so their id and order cannot drift.

    Attributes:
        title: Chapter title used for the content document and navigation
        content_html: XHTML fragment for the chapter body
        chapter_id: Manifest id and file stem ("chapter-N")
        sequence_index: 1-based position in reading order
    """

    model_config = ConfigDict(frozen=True)

    title: str
    content_html: str
    chapter_id: str
    sequence_index: int = Field(ge=1)

    @property
    def href(self) -> str:
        return f"{self.chapter_id}.xhtml"
