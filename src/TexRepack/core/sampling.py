"""Nearest-neighbor pixel sampling and luminance helpers."""

import numpy as np

from .records import ImageBuffer

# BT.709 luma weights
_LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)


def _check_dims(src_w: int, src_h: int, dst_w: int, dst_h: int):
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"source size must be positive, got {src_w}x{src_h}")
    if dst_w <= 0 or dst_h <= 0:
        raise ValueError(f"destination size must be positive, got {dst_w}x{dst_h}")


def source_index(src_w: int, src_h: int, x: int, y: int, dst_w: int, dst_h: int) -> int:
    """Map destination ``(x, y)`` to a flat row-major source index.

    The mapping is integer scaling: ``x * src_w // dst_w`` and
    ``y * src_h // dst_h``. For ``0 <= x < dst_w`` and ``0 <= y < dst_h``
    the result is always below ``src_w * src_h``.
    """
    _check_dims(src_w, src_h, dst_w, dst_h)
    xx = x * src_w // dst_w
    yy = y * src_h // dst_h
    return xx + yy * src_w


def sample(pixels, src_w: int, src_h: int, x: int, y: int, dst_w: int, dst_h: int):
    """Return the color at destination ``(x, y)`` of a ``dst_w x dst_h`` grid.

    ``pixels`` is either a flat row-major sequence of colors or an
    ``(src_h, src_w, C)`` array.
    """
    idx = source_index(src_w, src_h, x, y, dst_w, dst_h)
    if isinstance(pixels, np.ndarray) and pixels.ndim == 3:
        return pixels[idx // src_w, idx % src_w]
    return pixels[idx]


def resample(buffer: ImageBuffer, dst_w: int, dst_h: int) -> np.ndarray:
    """Return ``buffer`` pixels on a ``dst_w x dst_h`` grid.

    Uses the same nearest-neighbor integer mapping as :func:`sample`, applied
    to every row and column at once. Equal sizes return the source array.
    """
    src_w, src_h = buffer.width, buffer.height
    _check_dims(src_w, src_h, dst_w, dst_h)
    if (src_w, src_h) == (dst_w, dst_h):
        return buffer.pixels
    xs = np.arange(dst_w, dtype=np.int64) * src_w // dst_w
    ys = np.arange(dst_h, dtype=np.int64) * src_h // dst_h
    return buffer.pixels[ys[:, None], xs[None, :]]


def luminance(color):
    """Compute BT.709 luminance of 8-bit RGB(A) color(s).

    Channels are normalized from 0..255 to 0..1 first. A single color gives a
    float; an ``(..., 3|4)`` array gives an array of the leading shape.
    """
    arr = np.asarray(color, dtype=np.float64)
    if arr.shape[-1] not in (3, 4):
        raise ValueError(f"color must have 3 or 4 channels, got shape {arr.shape}")
    lum = (arr[..., :3] / 255.0) @ _LUMA_WEIGHTS
    if lum.ndim == 0:
        return float(lum)
    return lum
