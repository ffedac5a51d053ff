"""Command-line interface for md-to-epub."""

import argparse
import logging
import sys
from pathlib import Path

from md_to_epub.config import load_config
from md_to_epub.converter import Converter
from md_to_epub.exceptions import ConverterError
from schemas.config import DEFAULT_OUTPUT_DIR


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def convert(args: argparse.Namespace) -> int:
    """Execute a conversion.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    input_paths = [path.resolve() for path in args.inputs]
    cover = str(args.cover.resolve()) if args.cover else None

    overrides = {
        "author": args.author,
        "title": args.title,
        "language": args.language,
        "publisher": args.publisher,
        "cover": cover,
        "output_dir": str(args.output_dir) if args.output_dir else None,
        "description": args.description,
        "rights": args.rights,
        "identifier": args.identifier,
    }

    try:
        config = load_config(overrides)
        converter = Converter(config)
        results = converter.convert(
            input_paths,
            chapters=args.chapters,
            recursive=args.recursive,
            output_path=args.output.resolve() if args.output else None,
        )

        logger.info(f"Created {len(results)} EPUB file(s)")
        for result in results:
            logger.info(f"  Output: {result}")

        return 0

    except ConverterError as e:
        logger.error(f"Conversion failed: {e.message}")
        return 1

    except Exception as e:
        logger.error(f"Unexpected error during conversion: {e}")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="md-to-epub",
        description="Convert markdown files into EPUB 3 books",
    )
    parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        metavar="input",
        help="Markdown file(s), or a directory of markdown files",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output EPUB file (single file or chapter mode)",
    )
    parser.add_argument(
        "-d", "--output-dir",
        type=Path,
        default=None,
        help=f"Output directory for EPUB files (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Search a directory input recursively",
    )
    parser.add_argument(
        "--chapters",
        action="store_true",
        help="Combine all inputs into one EPUB, one chapter per file",
    )
    parser.add_argument("-a", "--author", help="Book author")
    parser.add_argument("-t", "--title", help="Book title")
    parser.add_argument("-l", "--language", help="Book language code (default: en)")
    parser.add_argument("-p", "--publisher", help="Book publisher")
    parser.add_argument(
        "-c", "--cover",
        type=Path,
        default=None,
        help="Cover image file",
    )
    parser.add_argument("--description", help="Book description")
    parser.add_argument("--rights", help="Rights statement")
    parser.add_argument("--identifier", help="Unique book identifier (default: urn:uuid)")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0",
    )

    args = parser.parse_args(argv)
    return convert(args)


if __name__ == "__main__":
    sys.exit(main())
