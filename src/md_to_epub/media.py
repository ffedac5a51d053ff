"""Helpers shared by the transformer and the asset resolver.

Both sides must agree on the package file name of an image: the transformer
rewrites ``<img src>`` to ``images/<name>`` and the resolver writes the bytes
to the same name.
"""

import posixpath
from urllib.parse import urlsplit

MEDIA_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
}

DEFAULT_IMAGE_TYPE = "image/jpeg"


def is_remote(ref: str) -> bool:
    """Return True for http(s) references."""
    return ref.startswith(("http://", "https://"))


def asset_filename(source_ref: str) -> str:
    """Return the package file name for an image reference.

    Uses the basename of the written path. Query strings and fragments are
    dropped from network references.

    Examples:
        >>> asset_filename("../figures/plot.png")
        'plot.png'
        >>> asset_filename("https://example.com/a/b.jpg?w=300")
        'b.jpg'
    """
    path = urlsplit(source_ref).path if is_remote(source_ref) else source_ref
    name = posixpath.basename(path.replace("\\", "/"))
    return name or "image"


def media_type_for(ref: str) -> str:
    """Get the MIME type for an image path or URL from its extension.

    Args:
        ref: File path, file name or URL

    Returns:
        MIME type string, image/jpeg when the extension is unknown
    """
    name = asset_filename(ref)
    _, dot, extension = name.rpartition(".")
    if not dot:
        return DEFAULT_IMAGE_TYPE
    return MEDIA_TYPES.get(extension.lower(), DEFAULT_IMAGE_TYPE)
