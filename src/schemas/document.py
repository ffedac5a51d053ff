"""Content model schemas produced by the markdown transformer.

A ParsedDocument is the result of transforming one markdown source: the
rendered XHTML fragment, every image usage site in encounter order, and the
first top-level heading when the source has one.
"""

from pydantic import BaseModel


class ImageReference(BaseModel):
    """One image usage site in a markdown source.

    Attributes:
        source_ref: Image path exactly as written in the markdown
        resolved_location: Absolute filesystem path, or the URL unchanged
        content_type: MIME type derived from the file extension
        asset_id: Identifier unique to this usage site
    """

    source_ref: str
    resolved_location: str
    content_type: str
    asset_id: str

    @property
    def is_remote(self) -> bool:
        return self.resolved_location.startswith(("http://", "https://"))


class ParsedDocument(BaseModel):
    """One transformed markdown document.

    Attributes:
        content_html: XHTML fragment for the document body
        images: Image references in first-appearance order, duplicates included
        extracted_title: Text of the first top-level heading, if any
    """

    content_html: str
    images: list[ImageReference] = []
    extracted_title: str | None = None
