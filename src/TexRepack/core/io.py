"""Image I/O -- decode sources into RGBA8 buffers and encode PNG output."""

import io
import logging
import os
from pathlib import Path

import numpy as np
from PIL import Image

from .errors import UnreadableSourceError
from .records import AssetContext, ImageBuffer

# Pixel-count validation happens per call in load_image().
Image.MAX_IMAGE_PIXELS = None

logger = logging.getLogger("texrepack.io")


def _to_rgba8(img: Image.Image, path: str) -> np.ndarray:
    """Convert an open Pillow image to an ``(H, W, 4)`` uint8 array."""
    # Integer modes are read as 16-bit data; mode I is how Pillow
    # commonly promotes 16-bit PNG and TIFF grayscale.
    if img.mode in ("I", "I;16", "I;16B", "I;16L", "I;16N"):
        logger.debug("Reducing 16-bit image '%s' (%s) to 8 bits", path, img.mode)
        gray = np.asarray(img, dtype=np.float64) / 65535.0
        gray = np.round(np.clip(gray, 0.0, 1.0) * 255.0).astype(np.uint8)
        alpha = np.full(gray.shape, 255, dtype=np.uint8)
        return np.dstack([gray, gray, gray, alpha])

    if img.mode == "F":
        logger.debug("Clamping float image '%s' to 8 bits", path)
        gray = np.asarray(img, dtype=np.float64)
        gray = np.round(np.clip(gray, 0.0, 1.0) * 255.0).astype(np.uint8)
        alpha = np.full(gray.shape, 255, dtype=np.uint8)
        return np.dstack([gray, gray, gray, alpha])

    if img.mode == "RGBA":
        return np.asarray(img, dtype=np.uint8)

    logger.debug("Converting image '%s' from %s->RGBA", path, img.mode)
    with img.convert("RGBA") as converted:
        return np.asarray(converted, dtype=np.uint8)


def load_image(path: str, max_pixels: int = 0) -> ImageBuffer:
    """Decode an image file into an RGBA8 :class:`ImageBuffer`.

    Raises:
        UnreadableSourceError: if the file is missing, too large, or cannot
            be decoded.

    """
    ext = Path(path).suffix.lower()
    if not os.path.isfile(path):
        raise UnreadableSourceError(f"Image file not found: {path}")
    try:
        with Image.open(path) as img:
            if max_pixels > 0 and img.width * img.height > max_pixels:
                raise UnreadableSourceError(
                    f"Image too large: {img.width}x{img.height} = "
                    f"{img.width * img.height:,} pixels (max {max_pixels:,})"
                )
            arr = _to_rgba8(img, path)
    except UnreadableSourceError:
        raise
    except Exception as e:
        logger.error("Failed to open image '%s' (ext=%s): %s", path, ext, e)
        raise UnreadableSourceError(
            f"Failed to open image: {path} ({ext}): {e}"
        ) from e
    return ImageBuffer(arr)


def encode_png(buffer: ImageBuffer, compress_level: int = 6) -> bytes:
    """Encode a buffer as RGBA PNG bytes.

    No text chunks or timestamps are written, so equal pixels always give
    equal bytes.
    """
    out = io.BytesIO()
    with Image.fromarray(np.ascontiguousarray(buffer.pixels)) as img:
        img.save(out, format="PNG", compress_level=compress_level, optimize=False)
    return out.getvalue()


class PixelReader:
    """Make source textures pixel-accessible.

    Reading is a precondition of conversion: callers obtain buffers here and
    hand them to the conversion functions. Buffers are cached per asset key
    for the lifetime of the reader.
    """

    def __init__(self, max_pixels: int = 0):
        """Initialize reader with an optional pixel-count limit (0 = none)."""
        self.max_pixels = max_pixels
        self._cache = {}

    def read(self, asset: AssetContext) -> ImageBuffer:
        """Return decoded pixels of ``asset`` or raise UnreadableSourceError."""
        key = asset.key
        buf = self._cache.get(key)
        if buf is None:
            buf = load_image(asset.full_path, max_pixels=self.max_pixels)
            logger.debug("Decoded %s (%dx%d)", asset.full_path, buf.width, buf.height)
            self._cache[key] = buf
        return buf

    def clear(self) -> None:
        """Drop every cached buffer."""
        self._cache.clear()
