"""Markdown transformer for building the EPUB content model.

Transforms markdown sources into ParsedDocuments: an XHTML body fragment,
the images the document uses, and the first top-level heading.
"""

import logging
import re
from pathlib import Path

from markdown import Markdown

from md_to_epub.exceptions import InputNotFoundError, ParseError
from schemas.document import ParsedDocument

from .extensions import FootnoteExtension, ImageCollectorExtension, RenderContext

logger = logging.getLogger(__name__)

# Python-Markdown extensions giving GFM-like parsing. Shared, read-only.
# mdx_truly_sane_lists nests list items indented by two spaces.
MARKDOWN_EXTENSIONS = (
    "tables",
    "fenced_code",
    "mdx_truly_sane_lists",
    "pymdownx.tilde",
    "pymdownx.magiclink",
)

# Single tildes stay literal; only ~~text~~ is struck through.
MARKDOWN_EXTENSION_CONFIGS = {
    "pymdownx.tilde": {"subscript": False},
}

TITLE_PATTERN = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)


def extract_title(markdown_text: str) -> str | None:
    """Return the text of the first top-level heading, unescaped.

    Examples:
        >>> extract_title("intro\\n# The Title\\n## Sub")
        'The Title'
    """
    match = TITLE_PATTERN.search(markdown_text)
    if match is None:
        return None
    return match.group(1).rstrip()


class MarkdownTransformer:
    """Transform markdown into ParsedDocuments.

    The transformer itself holds only immutable configuration. Every call
    builds its own Markdown instance and RenderContext, so repeated or
    concurrent calls never share image lists or base directories.

    Example:
        transformer = MarkdownTransformer()
        document = transformer.transform(Path("book/chapter-1.md"))
        document.images  # every image in encounter order
    """

    def __init__(
        self,
        extensions: tuple[str, ...] = MARKDOWN_EXTENSIONS,
        extension_configs: dict | None = None,
    ):
        """Initialize the markdown transformer.

        Args:
            extensions: Names of Python-Markdown extensions to enable
            extension_configs: Per-extension settings keyed by extension name
        """
        self.extensions = tuple(extensions)
        self.extension_configs = (
            MARKDOWN_EXTENSION_CONFIGS if extension_configs is None else extension_configs
        )

    def build(self, source_text: str, base_directory: Path) -> ParsedDocument:
        """Transform markdown text into a ParsedDocument.

        Args:
            source_text: Markdown source
            base_directory: Directory local image paths are relative to

        Returns:
            ParsedDocument with the XHTML fragment, images and title

        Raises:
            ParseError: If the markdown transform fails
        """
        context = RenderContext(base_directory=Path(base_directory))
        md = self._create_markdown(context)

        try:
            content_html = md.convert(source_text)
        except Exception as e:
            raise ParseError(f"Markdown transform failed: {e}") from e

        return ParsedDocument(
            content_html=content_html,
            images=context.images,
            extracted_title=extract_title(source_text),
        )

    def transform(self, markdown_path: Path) -> ParsedDocument:
        """Read and transform a markdown file.

        Local images are resolved relative to the file's directory.

        Args:
            markdown_path: Path to the markdown file

        Returns:
            ParsedDocument for the file

        Raises:
            InputNotFoundError: If the file does not exist
            ParseError: If the file cannot be decoded or transformed
        """
        if not markdown_path.is_file():
            raise InputNotFoundError(
                f"Input file not found: {markdown_path}", path=markdown_path
            )

        logger.info(f"Parsing markdown file: {markdown_path}")
        try:
            source_text = markdown_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Cannot decode {markdown_path} as UTF-8: {e}", path=markdown_path
            ) from e
        except OSError as e:
            raise ParseError(
                f"Cannot read {markdown_path}: {e}", path=markdown_path
            ) from e

        try:
            document = self.build(source_text, markdown_path.parent)
        except ParseError as e:
            raise ParseError(f"{markdown_path}: {e.message}", path=markdown_path) from e

        logger.debug(
            f"Parsed {markdown_path.name}: {len(document.images)} image reference(s)"
        )
        return document

    def _create_markdown(self, context: RenderContext) -> Markdown:
        """Create a Markdown instance bound to one render context."""
        return Markdown(
            extensions=[
                *self.extensions,
                FootnoteExtension(context=context),
                ImageCollectorExtension(context=context),
            ],
            extension_configs=self.extension_configs,
            output_format="xhtml",
        )
