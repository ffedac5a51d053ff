"""Converter for turning markdown files into EPUB books.

Wires the markdown transformer and the EPUB compiler together for the four
ways of running a conversion: one file, many files (one book each), many
files as chapters of one book, and a directory of files.
"""

import logging
import uuid
from datetime import date
from pathlib import Path

from md_to_epub.compilers.epub_compiler import EPUBCompiler
from md_to_epub.discovery import find_markdown_files, is_markdown_file
from md_to_epub.exceptions import ConfigurationError, InputNotFoundError
from md_to_epub.transformers.markdown_transformer import MarkdownTransformer
from schemas.book import BookMetadata, Chapter
from schemas.config import ConverterConfig
from schemas.document import ImageReference

logger = logging.getLogger(__name__)

EPUB_SUFFIX = ".epub"


def _safe_filename(name: str) -> str:
    """Make a book title usable as a file name."""
    return name.replace("/", "_").replace("\\", "_").strip() or "book"


class Converter:
    """Convert markdown files into EPUB packages.

    Attributes:
        config: Merged converter configuration
        transformer: Markdown transformer building the content model
        compiler: EPUB compiler assembling and packaging books

    Example:
        converter = Converter(load_config({"author": "Jane Doe"}))
        converter.convert_chapters([Path("01.md"), Path("02.md")], Path("book.epub"))
    """

    def __init__(
        self,
        config: ConverterConfig | None = None,
        transformer: MarkdownTransformer | None = None,
        compiler: EPUBCompiler | None = None,
    ):
        self.config = config or ConverterConfig()
        self.transformer = transformer or MarkdownTransformer()
        self.compiler = compiler or EPUBCompiler()

    def convert(
        self,
        input_paths: list[Path],
        chapters: bool = False,
        recursive: bool = False,
        output_path: Path | None = None,
    ) -> list[Path]:
        """Convert command-line style inputs.

        Args:
            input_paths: Markdown files, or a single directory
            chapters: Combine all inputs into one book
            recursive: Descend into subdirectories of a directory input
            output_path: Explicit output file

        Returns:
            Paths of the EPUB files written

        Raises:
            InputNotFoundError: If an input does not exist
            ConfigurationError: For an invalid combination of inputs and options
        """
        if not input_paths:
            raise ConfigurationError("No input files provided")

        for input_path in input_paths:
            if not input_path.exists():
                raise InputNotFoundError(f"Input not found: {input_path}", path=input_path)

        if len(input_paths) > 1:
            if not chapters:
                raise ConfigurationError(
                    "Multiple inputs require --chapters to combine into a single EPUB"
                )
            for input_path in input_paths:
                if not input_path.is_file() or not is_markdown_file(input_path):
                    raise ConfigurationError(
                        f"All inputs must be markdown files (.md): {input_path}"
                    )
            return [self.convert_chapters(input_paths, output_path)]

        input_path = input_paths[0]
        if input_path.is_dir():
            return self.convert_directory(
                input_path,
                recursive=recursive,
                chapters=chapters,
                output_path=output_path,
            )

        if not is_markdown_file(input_path):
            raise ConfigurationError(
                f"Input file must be a markdown file (.md): {input_path}"
            )
        return [self.convert_file(input_path, output_path)]

    def convert_file(self, input_path: Path, output_path: Path | None = None) -> Path:
        """Convert one markdown file into its own EPUB.

        The book title is the configured title, else the file's first
        top-level heading, else the file name without extension.

        Args:
            input_path: Markdown file
            output_path: Output file (default: <output_dir>/<stem>.epub)

        Returns:
            Path of the written EPUB
        """
        if not input_path.is_file():
            raise InputNotFoundError(f"Input file not found: {input_path}", path=input_path)

        document = self.transformer.transform(input_path)

        final_output_path = output_path or self._default_output_path(input_path.stem)
        title = self.config.title or document.extracted_title or input_path.stem
        metadata = self.build_metadata(title)

        logger.info(f"Generating EPUB: {final_output_path}")
        self.compiler.compile(metadata, document, document.images, final_output_path)

        logger.info(f"Successfully created: {final_output_path}")
        return final_output_path

    def convert_files(self, input_paths: list[Path]) -> list[Path]:
        """Convert each markdown file into its own EPUB.

        Conversions are independent; the first failure stops the run and is
        re-raised after being logged.
        """
        results: list[Path] = []
        for input_path in input_paths:
            try:
                results.append(self.convert_file(input_path))
            except Exception as e:
                logger.error(f"Failed to convert {input_path}: {e}")
                raise
        return results

    def convert_chapters(
        self,
        input_paths: list[Path],
        output_path: Path | None = None,
    ) -> Path:
        """Combine markdown files into one EPUB, one chapter per file.

        Chapters are numbered from 1 in input order. Each chapter title is
        the file's first top-level heading, else its file name. The book
        title is the configured title, else the first file's name.

        Args:
            input_paths: Markdown files in reading order
            output_path: Output file (default: <output_dir>/<book title>.epub)

        Returns:
            Path of the written EPUB
        """
        if not input_paths:
            raise ConfigurationError("No input files provided")

        for input_path in input_paths:
            if not input_path.is_file():
                raise InputNotFoundError(
                    f"Input file not found: {input_path}", path=input_path
                )

        logger.info(f"Converting {len(input_paths)} file(s) into chapters")

        chapters: list[Chapter] = []
        images: list[ImageReference] = []

        for n, input_path in enumerate(input_paths, start=1):
            logger.info(f"Parsing chapter {n}: {input_path.name}")
            document = self.transformer.transform(input_path)
            chapters.append(
                Chapter(
                    title=document.extracted_title or input_path.stem,
                    content_html=document.content_html,
                    chapter_id=f"chapter-{n}",
                    sequence_index=n,
                )
            )
            images.extend(document.images)

        book_title = self.config.title or input_paths[0].stem
        final_output_path = output_path or self._default_output_path(
            _safe_filename(book_title)
        )
        metadata = self.build_metadata(book_title)

        logger.info(
            f"Generating EPUB with {len(chapters)} chapter(s): {final_output_path}"
        )
        self.compiler.compile(metadata, chapters, images, final_output_path)

        logger.info(f"Successfully created: {final_output_path}")
        return final_output_path

    def convert_directory(
        self,
        directory: Path,
        recursive: bool = False,
        chapters: bool = False,
        output_path: Path | None = None,
    ) -> list[Path]:
        """Convert the markdown files found in a directory.

        Args:
            directory: Directory to scan
            recursive: Descend into subdirectories
            chapters: Combine all files into one book instead of one book each
            output_path: Output file for chapter mode

        Returns:
            Paths of the written EPUB files
        """
        markdown_files = find_markdown_files(directory, recursive=recursive)
        if not markdown_files:
            raise ConfigurationError(f"No markdown files found in: {directory}")

        logger.info(f"Found {len(markdown_files)} markdown file(s) in {directory}")
        if chapters:
            return [self.convert_chapters(markdown_files, output_path)]
        return self.convert_files(markdown_files)

    def build_metadata(self, title: str) -> BookMetadata:
        """Build book metadata from the configuration.

        The identifier is generated when not configured and the creation
        date is fixed here, once per book.
        """
        config = self.config
        return BookMetadata(
            title=title,
            author=config.author,
            language=config.language,
            publisher=config.publisher or None,
            description=config.description or None,
            rights=config.rights or None,
            identifier=config.identifier or f"urn:uuid:{uuid.uuid4()}",
            cover_asset_path=config.cover or None,
            creation_date=date.today().isoformat(),
        )

    def _default_output_path(self, name: str) -> Path:
        return Path(self.config.output_dir) / f"{name}{EPUB_SUFFIX}"
