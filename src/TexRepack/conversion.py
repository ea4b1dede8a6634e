"""Repack source workflow textures into metallic-roughness and base-color maps.

Every conversion resamples its inputs onto one grid sized to the largest
input width and height (nearest neighbor, integer scaling), applies a
per-pixel formula, and returns a new :class:`ImageBuffer`. Float results are
stored as ``round(clamp01(v) * 255)``.

Channel layout of a metallic-roughness output: R = roughness,
G = metalness, B = 0, A = 1.
"""

import logging
from typing import Optional

import numpy as np

from .config import SmoothnessChannel
from .core import ImageBuffer, luminance, resample

logger = logging.getLogger("texrepack.conversion")

_OPAQUE_BLACK = ImageBuffer.filled(1, 1, (0, 0, 0, 255))


def _to_uint8(values: np.ndarray) -> np.ndarray:
    """Quantize float [0, 1] values to 8 bits."""
    return np.round(np.clip(values, 0.0, 1.0) * 255.0).astype(np.uint8)


def _common_size(*buffers: ImageBuffer):
    return (max(b.width for b in buffers), max(b.height for b in buffers))


def _metallic_roughness(roughness: np.ndarray, metalness: np.ndarray) -> ImageBuffer:
    h, w = roughness.shape
    out = np.empty((h, w, 4), dtype=np.uint8)
    out[:, :, 0] = _to_uint8(roughness)
    out[:, :, 1] = _to_uint8(metalness)
    out[:, :, 2] = 0
    out[:, :, 3] = 255
    return ImageBuffer(out)


def convert_diffuse(diffuse: ImageBuffer,
                    specular: Optional[ImageBuffer] = None) -> ImageBuffer:
    """Lighten diffuse color by the specular color.

    RGB is the per-channel sum of diffuse and specular (saturating at 255),
    alpha is the diffuse alpha. A missing specular map counts as opaque black.
    """
    specular = specular if specular is not None else _OPAQUE_BLACK
    width, height = _common_size(diffuse, specular)
    diff = resample(diffuse, width, height).astype(np.uint16)
    spec = resample(specular, width, height).astype(np.uint16)

    out = np.empty((height, width, 4), dtype=np.uint8)
    out[:, :, :3] = np.minimum(diff[:, :, :3] + spec[:, :, :3], 255).astype(np.uint8)
    out[:, :, 3] = diff[:, :, 3]
    logger.debug("Diffuse conversion: %dx%d", width, height)
    return ImageBuffer(out)


def convert_metallic_glossiness(metallic: ImageBuffer,
                                smoothness: Optional[ImageBuffer] = None) -> ImageBuffer:
    """Repack a metallic-gloss map.

    Roughness is ``1 - smoothness alpha``; metalness is the metallic red
    channel, copied unchanged. Without a separate smoothness source the
    metallic map's own alpha is used.
    """
    smoothness = smoothness if smoothness is not None else metallic
    width, height = _common_size(metallic, smoothness)
    metal = resample(metallic, width, height)
    smooth = resample(smoothness, width, height)

    roughness = 1.0 - smooth[:, :, 3].astype(np.float64) / 255.0
    metalness = metal[:, :, 0].astype(np.float64) / 255.0
    logger.debug("Metallic-gloss conversion: %dx%d", width, height)
    return _metallic_roughness(roughness, metalness)


def specular_metalness(specular_lum: np.ndarray, diffuse_lum: np.ndarray,
                       zero_value: float = 0.0) -> np.ndarray:
    """Return ``s / (d + s)``, or ``zero_value`` where ``d + s == 0``."""
    s = np.asarray(specular_lum, dtype=np.float64)
    d = np.asarray(diffuse_lum, dtype=np.float64)
    total = d + s
    out = np.full(np.broadcast(s, d).shape, float(zero_value), dtype=np.float64)
    np.divide(s, total, out=out, where=total > 0)
    return out


def convert_specular_glossiness(specular: ImageBuffer, diffuse: ImageBuffer,
                                channel: SmoothnessChannel = (
                                    SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA),
                                zero_value: float = 0.0) -> ImageBuffer:
    """Repack a specular-gloss map using its diffuse counterpart.

    Smoothness comes from the specular alpha for
    ``METALLIC_OR_SPECULAR_ALPHA`` and from the diffuse alpha otherwise.
    Metalness is ``s / (d + s)`` over the luminances of the specular and
    diffuse colors at the same sampled location.
    """
    if channel is SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA:
        smoothness = specular
    else:
        smoothness = diffuse
    width, height = _common_size(specular, smoothness)
    spec = resample(specular, width, height)
    diff = resample(diffuse, width, height)
    smooth = resample(smoothness, width, height)

    roughness = 1.0 - smooth[:, :, 3].astype(np.float64) / 255.0
    metalness = specular_metalness(luminance(spec), luminance(diff), zero_value)
    logger.debug("Specular-gloss conversion: %dx%d (smoothness from %s)",
                 width, height, channel.value)
    return _metallic_roughness(roughness, metalness)
