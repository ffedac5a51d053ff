"""Asset resolver for materializing images into a staged EPUB tree."""

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import httpx

from md_to_epub.exceptions import AssetCopyError, AssetError, AssetFetchError
from md_to_epub.media import asset_filename, media_type_for
from schemas.document import ImageReference
from schemas.package import AssetOutcome, ResolvedAsset

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "md-to-epub/1.0.0"
COVER_ID = "cover-image"


def deduplicate(images: list[ImageReference]) -> list[ImageReference]:
    """Drop image references whose package file name was already seen.

    The key is the basename of the written reference, the same name the
    transformer rewrote the ``<img>`` tag to. First occurrence wins.

    Args:
        images: Image references aggregated across documents, in order

    Returns:
        Unique references in first-occurrence order
    """
    seen: set[str] = set()
    unique: list[ImageReference] = []
    for image in images:
        key = asset_filename(image.source_ref)
        if key not in seen:
            seen.add(key)
            unique.append(image)
    return unique


class AssetResolver:
    """Copies or downloads images into the staged OEBPS/images directory.

    A failed asset never aborts a conversion: each unique reference yields
    an AssetOutcome carrying either the resolved asset or the error text.

    Example:
        with AssetResolver() as resolver:
            outcomes = resolver.resolve(document.images, staging / "OEBPS" / "images")
            assets = [o.asset for o in outcomes if o.ok]
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_workers: int = 1,
    ):
        """Initialize the asset resolver.

        Args:
            http_client: Optional HTTP client for downloading images.
                         If not provided, one will be created internally.
            timeout: Request timeout in seconds for an owned client
            max_workers: Number of assets resolved concurrently
        """
        self._client = http_client
        self._owns_client = http_client is None
        self.timeout = timeout
        self.max_workers = max(1, max_workers)

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "AssetResolver":
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager."""
        self.close()

    def resolve(
        self,
        images: list[ImageReference],
        images_dir: Path,
    ) -> list[AssetOutcome]:
        """Deduplicate images and place each unique one in images_dir.

        Args:
            images: Possibly duplicate references from one or more documents
            images_dir: Staged OEBPS/images directory

        Returns:
            One AssetOutcome per unique reference, in first-occurrence order
        """
        unique = deduplicate(images)
        if not unique:
            return []

        images_dir.mkdir(parents=True, exist_ok=True)
        indexed = list(enumerate(unique))

        if self.max_workers > 1 and len(unique) > 1:
            # Ensure the shared client exists before worker threads use it
            self._get_client()
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(
                    executor.map(lambda pair: self._resolve_one(*pair, images_dir), indexed)
                )
        else:
            outcomes = [self._resolve_one(idx, image, images_dir) for idx, image in indexed]

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        if failed:
            logger.warning(f"{failed} of {len(outcomes)} image(s) could not be included")
        return outcomes

    def resolve_cover(self, cover_path: Path, images_dir: Path) -> ResolvedAsset | None:
        """Copy the cover image as ``cover<ext>``.

        The cover is not deduplicated against body images.

        Args:
            cover_path: Filesystem path of the cover image
            images_dir: Staged OEBPS/images directory

        Returns:
            ResolvedAsset for the cover, or None if it could not be copied
        """
        filename = f"cover{cover_path.suffix}"
        images_dir.mkdir(parents=True, exist_ok=True)
        try:
            self._copy_file(cover_path, images_dir / filename)
        except AssetCopyError as e:
            logger.warning(f"Could not copy cover image: {e.message}")
            return None

        return ResolvedAsset(
            id=COVER_ID,
            filename=filename,
            media_type=media_type_for(filename),
            source=str(cover_path),
        )

    def _resolve_one(
        self,
        index: int,
        image: ImageReference,
        images_dir: Path,
    ) -> AssetOutcome:
        """Materialize a single image and wrap the result."""
        filename = asset_filename(image.source_ref)
        destination = images_dir / filename

        try:
            if image.is_remote:
                logger.info(f"Downloading image: {image.source_ref}")
                self._download_file(image.resolved_location, destination)
            else:
                self._copy_file(Path(image.resolved_location), destination)
        except AssetError as e:
            logger.warning(f"Could not process image {image.source_ref}: {e.message}")
            return AssetOutcome(reference=image, error=e.message)

        asset = ResolvedAsset(
            id=f"image-{index}",
            filename=filename,
            media_type=image.content_type,
            source=image.resolved_location,
        )
        return AssetOutcome(reference=image, asset=asset)

    def _download_file(self, url: str, destination: Path) -> None:
        """Download a file from URL to local path.

        Redirects are followed by the client; any other non-2xx final
        response is an error.

        Args:
            url: URL to download from
            destination: Local file path to save to

        Raises:
            AssetFetchError: On an error status or a network failure
        """
        client = self._get_client()
        try:
            response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise AssetFetchError(
                f"HTTP {status_code} for {url}", url=url, status_code=status_code
            ) from e
        except httpx.RequestError as e:
            raise AssetFetchError(f"Request failed for {url}: {e}", url=url) from e

        try:
            destination.write_bytes(response.content)
        except OSError as e:
            raise AssetFetchError(f"Cannot write {destination}: {e}", url=url) from e
        logger.debug(f"Downloaded {url} to {destination.name}")

    def _copy_file(self, source: Path, destination: Path) -> None:
        """Copy a local file into the staged tree.

        Raises:
            AssetCopyError: If the source is missing or cannot be copied
        """
        if not source.is_file():
            raise AssetCopyError(f"File not found: {source}", path=source)
        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            raise AssetCopyError(f"Cannot copy {source}: {e}", path=source) from e
        logger.debug(f"Copied {source.name} to {destination.name}")
