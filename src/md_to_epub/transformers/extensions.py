"""Python-Markdown extensions for footnotes and image collection.

The extensions are registered on a fresh ``Markdown`` instance for every
document. Per-document state (collected images, footnote back-reference
counters, base directory) lives on a RenderContext passed in explicitly, so
two conversions never observe each other's data.

Footnote syntax:
    Text with a reference[^1].

    [^1]: The note text, running until a blank line or the next definition.

Definitions render where they occur in the source:
    <div class="footnote" id="fn-1"><sup>1</sup> The note text ...</div>

References render as:
    <sup><a href="#fn-1" id="ref-1">1</a></sup>
"""

import re
import uuid
import xml.etree.ElementTree as etree
from dataclasses import dataclass, field
from pathlib import Path

from markdown import Markdown
from markdown.blockprocessors import BlockProcessor
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.treeprocessors import Treeprocessor
from markdown.util import AtomicString

from md_to_epub.media import asset_filename, is_remote, media_type_for
from schemas.document import ImageReference

FOOTNOTE_REFERENCE_PATTERN = r"\[\^([^\]]+)\](?!:)"

# Above the link reference-definition processor (15), which would otherwise
# consume "[^id]: text" as a link definition.
FOOTNOTE_BLOCK_PRIORITY = 17
# Above "reference" (170) so "[^id]" is never treated as a reference link.
FOOTNOTE_INLINE_PRIORITY = 175
# Below "inline" (20): images exist in the tree only after inline processing.
IMAGE_COLLECTOR_PRIORITY = 15


@dataclass
class RenderContext:
    """Per-document state threaded through the extensions.

    Attributes:
        base_directory: Directory local image paths are resolved against
        images: Image references in encounter order
    """

    base_directory: Path
    images: list[ImageReference] = field(default_factory=list)
    _reference_counts: dict[str, int] = field(default_factory=dict)

    def reference_id(self, note_id: str) -> str:
        """Return a unique back-reference id for a footnote reference."""
        count = self._reference_counts.get(note_id, 0) + 1
        self._reference_counts[note_id] = count
        if count == 1:
            return f"ref-{note_id}"
        return f"ref-{note_id}-{count}"

    def add_image(self, source_ref: str) -> ImageReference:
        """Record one image usage site and return its reference."""
        if is_remote(source_ref):
            resolved = source_ref
        else:
            resolved = str((self.base_directory / source_ref).resolve())

        image = ImageReference(
            source_ref=source_ref,
            resolved_location=resolved,
            content_type=media_type_for(source_ref),
            asset_id=f"img-{uuid.uuid4()}",
        )
        self.images.append(image)
        return image


class FootnoteBlockProcessor(BlockProcessor):
    """Render footnote definitions in place as labeled, anchored notes."""

    RE = re.compile(r"^\[\^([^\]]+)\]:")
    DEFINITION_RE = re.compile(
        r"^\[\^([^\]]+)\]:[ \t]*(.*?)(?=\n\[\^[^\]]+\]:|\Z)",
        re.DOTALL | re.MULTILINE,
    )

    def test(self, parent: etree.Element, block: str) -> bool:
        return bool(self.RE.match(block))

    def run(self, parent: etree.Element, blocks: list[str]) -> bool:
        block = blocks.pop(0)
        for match in self.DEFINITION_RE.finditer(block):
            note_id = match.group(1)
            div = etree.SubElement(parent, "div")
            div.set("class", "footnote")
            div.set("id", f"fn-{note_id}")
            sup = etree.SubElement(div, "sup")
            sup.text = AtomicString(note_id)
            text = match.group(2).strip()
            if text:
                sup.tail = " " + text
        return True


class FootnoteReferenceProcessor(InlineProcessor):
    """Render ``[^id]`` (not followed by a colon) as a superscript link."""

    def __init__(self, pattern: str, md: Markdown, context: RenderContext):
        super().__init__(pattern, md)
        self.context = context

    def handleMatch(self, m: re.Match, data: str):
        note_id = m.group(1)
        sup = etree.Element("sup")
        link = etree.SubElement(sup, "a")
        link.set("href", f"#fn-{note_id}")
        link.set("id", self.context.reference_id(note_id))
        link.text = AtomicString(note_id)
        return sup, m.start(0), m.end(0)


class ImageCollectorTreeprocessor(Treeprocessor):
    """Record every rendered image and point it at its package file."""

    def __init__(self, md: Markdown, context: RenderContext):
        super().__init__(md)
        self.context = context

    def run(self, root: etree.Element) -> None:
        for img in root.iter("img"):
            source_ref = img.get("src", "")
            self.context.add_image(source_ref)
            img.set("src", f"images/{asset_filename(source_ref)}")


class FootnoteExtension(Extension):
    """Footnote definitions and references."""

    def __init__(self, context: RenderContext, **kwargs):
        self.context = context
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        md.parser.blockprocessors.register(
            FootnoteBlockProcessor(md.parser),
            "footnote_definition",
            FOOTNOTE_BLOCK_PRIORITY,
        )
        md.inlinePatterns.register(
            FootnoteReferenceProcessor(FOOTNOTE_REFERENCE_PATTERN, md, self.context),
            "footnote_reference",
            FOOTNOTE_INLINE_PRIORITY,
        )


class ImageCollectorExtension(Extension):
    """Image extraction and ``src`` rewriting."""

    def __init__(self, context: RenderContext, **kwargs):
        self.context = context
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        md.treeprocessors.register(
            ImageCollectorTreeprocessor(md, self.context),
            "image_collector",
            IMAGE_COLLECTOR_PRIORITY,
        )
