"""Asset, reference, and pixel buffer records."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

import numpy as np

from ..config import AssetType, SmoothnessChannel, TextureSemantic


def fix_asset_separator(path: str) -> str:
    """Return ``path`` with Windows separators replaced by '/'."""
    return str(path).replace("\\", "/")


@dataclass(frozen=True)
class AssetKey:
    """Identity of a source asset: container path plus in-container name."""

    container_path: str
    name: str

    @property
    def id(self) -> str:
        return f"{self.container_path}#{self.name}"

    def __str__(self) -> str:
        return self.id


@dataclass
class AssetContext:
    """Single source asset entry handed to exporters."""

    asset_path: str
    output_name: str
    name: str = ""
    full_path: str = ""
    asset_type: AssetType = AssetType.TEXTURE
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize separators and fill defaults derived from asset_path."""
        self.asset_path = fix_asset_separator(self.asset_path)
        if not self.asset_path:
            raise ValueError("AssetContext.asset_path must not be empty")
        self.output_name = fix_asset_separator(self.output_name)
        if not self.output_name or self.output_name.startswith("/"):
            raise ValueError(
                f"AssetContext.output_name must be a relative path, got: {self.output_name!r}"
            )
        if not self.name:
            self.name = PurePosixPath(self.asset_path).stem
        if not self.full_path:
            self.full_path = self.asset_path
        if not isinstance(self.asset_type, AssetType):
            self.asset_type = AssetType(self.asset_type)

    @property
    def key(self) -> AssetKey:
        return AssetKey(self.asset_path, self.name)


@dataclass(frozen=True)
class SemanticReference:
    """One reason a texture takes part in conversion."""

    semantic: TextureSemantic
    smoothness_source: Optional[AssetContext] = None
    smoothness_channel: SmoothnessChannel = SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA


class ImageBuffer:
    """Immutable RGBA8 pixel grid, rows top to bottom.

    ``pixels`` is a read-only ``uint8`` array shaped ``(height, width, 4)``.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray):
        arr = np.asarray(pixels)
        if arr.ndim != 3 or arr.shape[-1] != 4:
            raise ValueError(f"ImageBuffer expects HxWx4 pixels, got shape {arr.shape}")
        if arr.shape[0] < 1 or arr.shape[1] < 1:
            raise ValueError(f"ImageBuffer must be at least 1x1, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            raise ValueError(f"ImageBuffer expects uint8 pixels, got {arr.dtype}")
        arr = np.array(arr, dtype=np.uint8, copy=True)
        arr.setflags(write=False)
        self._pixels = arr

    @classmethod
    def filled(cls, width: int, height: int, color) -> "ImageBuffer":
        """Return a buffer of one RGBA color."""
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[:, :] = np.asarray(color, dtype=np.uint8)
        return cls(arr)

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self):
        return self.width, self.height

    def __eq__(self, other) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    __hash__ = None

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height})"
