"""Archive packager for sealing a staged tree into an EPUB container."""

import logging
import zipfile
from pathlib import Path

from md_to_epub.exceptions import ArchiveWriteError
from schemas.package import StagedTree

logger = logging.getLogger(__name__)

MIMETYPE = "application/epub+zip"
MIMETYPE_FILENAME = "mimetype"
PACKAGE_DIRECTORIES = ("META-INF", "OEBPS")
PARTIAL_ARCHIVE_NAME = ".archive.part"


class ArchivePackager:
    """Zip a staged EPUB tree into the final container file.

    The ``mimetype`` entry is written first and stored uncompressed; every
    other entry is deflated. The archive is built inside the staging
    directory and moved into place only once complete, so a failed run never
    leaves a partial file at the output path.
    """

    def __init__(self, compresslevel: int = 9):
        self.compresslevel = compresslevel

    def pack(self, tree: StagedTree, output_path: Path) -> Path:
        """Write the container file for a staged tree.

        Args:
            tree: Staged tree produced by the compiler
            output_path: Final .epub path

        Returns:
            The output path

        Raises:
            ArchiveWriteError: If the archive cannot be written
        """
        partial_path = tree.root / PARTIAL_ARCHIVE_NAME

        try:
            mimetype = (tree.root / MIMETYPE_FILENAME).read_bytes()
            with zipfile.ZipFile(partial_path, "w") as zf:
                info = zipfile.ZipInfo(MIMETYPE_FILENAME)
                info.compress_type = zipfile.ZIP_STORED
                zf.writestr(info, mimetype)

                for path in self._package_files(tree.root):
                    arcname = path.relative_to(tree.root).as_posix()
                    zf.write(
                        path,
                        arcname,
                        compress_type=zipfile.ZIP_DEFLATED,
                        compresslevel=self.compresslevel,
                    )
                    logger.debug(f"Added {arcname}")

            partial_path.replace(output_path)
        except (OSError, zipfile.BadZipFile) as e:
            partial_path.unlink(missing_ok=True)
            raise ArchiveWriteError(
                f"Failed to write EPUB archive {output_path}: {e}", path=output_path
            ) from e

        logger.info(f"Wrote EPUB archive {output_path}")
        return output_path

    def _package_files(self, root: Path) -> list[Path]:
        """List staged files below META-INF and OEBPS in a stable order."""
        files: list[Path] = []
        for directory in PACKAGE_DIRECTORIES:
            files.extend(
                sorted(p for p in (root / directory).rglob("*") if p.is_file())
            )
        return files
