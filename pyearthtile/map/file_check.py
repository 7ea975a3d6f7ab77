"""Downloaded file validity checks.

`is_valid_file` asks a content sniffer for the MIME type of a file and
compares it with the expected kind. When no sniffer is available it can only
look at the file extension.
"""
import logging
import os
from typing import Callable, Iterable, Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Formats a tile server is expected to return
MAP_TILE_FORMATS = ('JPEG', 'PNG', 'GIF')

Sniffer = Callable[[str], Optional[str]]


def sniff_image_mime(path: str) -> Optional[str]:
    """Return the MIME type of an image file, or None when Pillow cannot identify it."""
    try:
        with Image.open(path) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        logger.debug("%s: not an image: %s", path, e)
        return None
    return Image.MIME.get(fmt, f"image/{fmt.lower()}") if fmt else None


def check_extension(path: str, extension: Optional[str]) -> bool:
    """Case-insensitive match of the file suffix, with or without a leading dot."""
    if not extension:
        return False
    suffix = extension if extension.startswith('.') else f".{extension}"
    return path.lower().endswith(suffix.lower())


def is_valid_file(
    path: str,
    expected_kind: str,
    extension: Optional[str] = None,
    sniffer: Optional[Sniffer] = sniff_image_mime
) -> bool:
    """
    Check whether a file is of the expected kind.

    Args:
        path: File to check
        expected_kind: MIME prefix the sniffed type must start with (e.g. 'image/')
        extension: Extension to match when no sniffer is available
        sniffer: Callable returning the MIME type of a file; None disables sniffing

    Returns:
        True if the file matches the requested kind
    """
    if sniffer is None:
        return check_extension(path, extension)

    mime = sniffer(path)
    logger.debug("%s: sniffed type %s", path, mime)
    if mime is None:
        return False
    return mime.lower().startswith(expected_kind.lower())


def check_map_file(path: str, formats: Iterable[str] = MAP_TILE_FORMATS) -> bool:
    """
    Validity policy for raster map tiles.

    Accepts only complete JPEG, PNG or GIF images. Error pages served with a
    200 status (HTML, XML) and truncated transfers are rejected.
    """
    if not os.path.isfile(path) or os.path.getsize(path) == 0:
        return False
    try:
        with Image.open(path) as img:
            fmt = img.format
            img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        logger.warning("Invalid map tile file %s: %s", path, e)
        return False
    if fmt not in formats:
        logger.warning("Map tile %s has unexpected format %s", path, fmt)
        return False
    return True
