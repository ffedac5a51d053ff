"""Markdown file discovery."""

from pathlib import Path

MARKDOWN_SUFFIX = ".md"


def find_markdown_files(directory: Path, recursive: bool = False) -> list[Path]:
    """Find markdown files in a directory.

    Args:
        directory: Directory to scan
        recursive: Descend into subdirectories

    Returns:
        Sorted list of ``.md`` files (suffix matched case-insensitively)
    """
    pattern = "**/*" if recursive else "*"
    return sorted(
        path
        for path in directory.glob(pattern)
        if path.is_file() and path.suffix.lower() == MARKDOWN_SUFFIX
    )


def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() == MARKDOWN_SUFFIX
