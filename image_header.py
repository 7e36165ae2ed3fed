"""
image_header.py - Read pixel dimensions straight from PNG / JPEG headers.

Only the header bytes are inspected; nothing is decoded. Malformed or
truncated input yields None instead of raising.
"""
import logging
import struct
from typing import Optional

from models import ImageDimensions

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG"
JPEG_SOI = 0xFFD8
JPEG_EOI = 0xFFD9

# Start-Of-Frame markers carrying the frame size (C4, C8 and CC are not frames)
_SOF_MARKERS = frozenset(
    list(range(0xFFC0, 0xFFC4))
    + list(range(0xFFC5, 0xFFC8))
    + list(range(0xFFC9, 0xFFCC))
    + list(range(0xFFCD, 0xFFD0))
)

# Markers that stand alone, without a length field
_STANDALONE_MARKERS = frozenset([0xFF01, JPEG_SOI] + list(range(0xFFD0, 0xFFD8)))


def read_image_dimensions(data: bytes, mime_type: str) -> Optional[ImageDimensions]:
    """Return the pixel size of an encoded image, or None if unknown."""
    if not data:
        return None
    if mime_type == "image/png":
        dims = _png_dimensions(data)
    elif mime_type == "image/jpeg":
        dims = _jpeg_dimensions(data)
    else:
        return None

    if dims is None:
        logger.debug("No dimensions found in %d-byte %s header", len(data), mime_type)
        return None
    if dims.width <= 0 or dims.height <= 0:
        logger.debug("Ignoring degenerate %s size %dx%d", mime_type, dims.width, dims.height)
        return None
    return dims


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Guess the MIME type from the leading signature bytes."""
    if data[:4] == PNG_SIGNATURE:
        return "image/png"
    if len(data) >= 2 and struct.unpack_from(">H", data, 0)[0] == JPEG_SOI:
        return "image/jpeg"
    return None


def _png_dimensions(data: bytes) -> Optional[ImageDimensions]:
    if len(data) < 24 or data[:4] != PNG_SIGNATURE:
        return None
    width, height = struct.unpack_from(">II", data, 16)
    return ImageDimensions(width, height)


def _jpeg_dimensions(data: bytes) -> Optional[ImageDimensions]:
    size = len(data)
    if size < 2 or struct.unpack_from(">H", data, 0)[0] != JPEG_SOI:
        return None

    offset = 2
    while offset + 2 <= size:
        (marker,) = struct.unpack_from(">H", data, offset)
        if marker >> 8 != 0xFF:
            return None
        if marker == 0xFFFF:
            # fill byte
            offset += 1
            continue

        if marker in _SOF_MARKERS:
            if offset + 9 > size:
                return None
            height, width = struct.unpack_from(">HH", data, offset + 5)
            return ImageDimensions(width, height)

        if marker == JPEG_EOI:
            return None
        if marker in _STANDALONE_MARKERS:
            offset += 2
            continue

        if offset + 4 > size:
            return None
        (length,) = struct.unpack_from(">H", data, offset + 2)
        if length < 2:
            return None
        offset += 2 + length

    return None
