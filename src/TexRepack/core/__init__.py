"""Core utilities -- re-exports all public symbols for convenience."""

from .errors import (
    TexRepackError,
    SourceFileMissingError,
    UnreadableSourceError,
)
from .records import (
    AssetContext,
    AssetKey,
    ImageBuffer,
    SemanticReference,
    fix_asset_separator,
)
from .sampling import source_index, sample, resample, luminance
from .io import load_image, encode_png, PixelReader
from .paths import normalize_output_name, replace_extension, get_texture_output_name
from .destination import DestinationFolder
from .logging import setup_logging

__all__ = [
    "TexRepackError", "SourceFileMissingError", "UnreadableSourceError",
    "AssetContext", "AssetKey", "ImageBuffer", "SemanticReference",
    "fix_asset_separator",
    "source_index", "sample", "resample", "luminance",
    "load_image", "encode_png", "PixelReader",
    "normalize_output_name", "replace_extension", "get_texture_output_name",
    "DestinationFolder",
    "setup_logging",
]
