"""Export one texture asset: convert per semantic reference or copy it."""

import logging
import os
from enum import Enum
from typing import Optional

from .config import ExportConfig, TextureSemantic
from .conversion import (
    convert_diffuse,
    convert_metallic_glossiness,
    convert_specular_glossiness,
)
from .core import (
    AssetContext,
    DestinationFolder,
    ImageBuffer,
    PixelReader,
    SemanticReference,
    SourceFileMissingError,
    UnreadableSourceError,
    encode_png,
    get_texture_output_name,
)
from .registry import AssetPathRegistry

logger = logging.getLogger("texrepack.exporter")


class ExportState(Enum):
    """Progress of a single asset export."""

    NOT_STARTED = "not_started"
    FILE_CHECKED = "file_checked"
    SEMANTICS_RESOLVED = "semantics_resolved"
    TRANSFORMED = "transformed"
    PASS_THROUGH_COPIED = "pass_through_copied"
    SKIPPED = "skipped"
    DONE = "done"


def _advance(result: dict, state: ExportState) -> None:
    result["state"] = state
    result["history"].append(state)


def check_source_file(asset: AssetContext) -> None:
    """Raise SourceFileMissingError unless the asset file exists."""
    if not os.path.isfile(asset.full_path):
        raise SourceFileMissingError(f"File {asset.full_path} not found")


class TextureExporter:
    """Export texture assets through their semantic references.

    For each reference the resolver reports, the matching conversion writes a
    PNG named after the asset's output name. References with no special
    semantic (or an empty reference list) copy the source file verbatim, at
    most once per asset. The texture's output name is recorded in the
    registry so later exporters can refer to it.
    """

    def __init__(self, assets: AssetPathRegistry, resolver,
                 destination: DestinationFolder, config: ExportConfig = None):
        """Initialize exporter with its session collaborators."""
        self.assets = assets
        self.resolver = resolver
        self.destination = destination
        self.config = config or ExportConfig()
        self._converters = {
            TextureSemantic.METALLIC_GLOSSINESS: self._transform_metallic_glossiness,
            TextureSemantic.SPECULAR_GLOSSINESS: self._transform_specular_glossiness,
            TextureSemantic.DIFFUSE: self._transform_diffuse,
        }

    def output_name(self, asset: AssetContext, semantic: TextureSemantic) -> str:
        return get_texture_output_name(asset.output_name, semantic, self.config.naming)

    def export_asset(self, asset: AssetContext) -> dict:
        """Export ``asset`` and report what happened.

        ``history`` lists every state the asset passed through; ``state`` is
        the last of them and always ends at ``ExportState.DONE``.
        """
        result = {
            "asset": str(asset.key),
            "state": ExportState.NOT_STARTED,
            "history": [ExportState.NOT_STARTED],
            "outputs": [],
            "copied": False,
            "abandoned": [],
            "error": None,
        }

        try:
            check_source_file(asset)
        except SourceFileMissingError as exc:
            logger.error("%s; skipping export", exc)
            result["error"] = str(exc)
            _advance(result, ExportState.SKIPPED)
            _advance(result, ExportState.DONE)
            return result
        _advance(result, ExportState.FILE_CHECKED)

        if not self.assets.add_texture_path(asset, asset.output_name):
            logger.debug("Texture %s already registered", asset.key)

        references = list(self.resolver.resolve(asset))
        if not references:
            references = [SemanticReference(TextureSemantic.NONE)]
        _advance(result, ExportState.SEMANTICS_RESOLVED)

        reader = PixelReader(self.config.max_image_pixels)
        pending_copy = False
        try:
            for reference in references:
                converter = self._converter_for(reference)
                if converter is None:
                    pending_copy = True
                    continue
                self._convert(asset, reference, converter, reader, result)
        finally:
            reader.clear()

        if pending_copy:
            self._copy(asset, result)

        if not result["outputs"] and not result["copied"]:
            _advance(result, ExportState.SKIPPED)
        logger.info("Exported %s: %d conversion(s)%s", asset.asset_path,
                    len(result["outputs"]), ", copied" if result["copied"] else "")
        _advance(result, ExportState.DONE)
        return result

    def _convert(self, asset, reference, converter, reader, result) -> None:
        """Run one conversion; failures abandon only this reference."""
        semantic = reference.semantic.value
        name = self.output_name(asset, reference.semantic)
        try:
            written = self._write(name, lambda: converter(asset, reference, reader))
        except UnreadableSourceError as exc:
            logger.error("Cannot convert %s as %s: %s", asset.full_path, semantic, exc)
            result["abandoned"].append((semantic, str(exc)))
            return
        except Exception as e:
            logger.error("Export of %s as %s failed: %s", asset.full_path, semantic, e)
            result["abandoned"].append((semantic, str(e)))
            result["error"] = str(e)
            return
        if written:
            result["outputs"].append(name)
            _advance(result, ExportState.TRANSFORMED)

    def _copy(self, asset, result) -> None:
        if asset.output_name in result["outputs"]:
            logger.debug("Copy of %s already produced by a conversion", asset.key)
            return
        try:
            copied = self.destination.copy_file(asset.full_path, asset.output_name)
        except OSError as e:
            logger.error("Copy failed for %s: %s", asset.full_path, e)
            result["error"] = str(e)
            return
        if copied:
            result["copied"] = True
            _advance(result, ExportState.PASS_THROUGH_COPIED)

    def _converter_for(self, reference: SemanticReference):
        semantic = reference.semantic
        if not isinstance(semantic, TextureSemantic):
            logger.warning("Unsupported texture semantic %r; copying texture unchanged",
                           semantic)
            return None
        return self._converters.get(semantic)

    def _write(self, name: str, build) -> bool:
        """Encode ``build()`` into output ``name``; False if the writer declined."""
        stream = self.destination.create(name)
        if stream is None:
            return False
        image = build()
        data = encode_png(image, self.config.png_compress_level)
        with stream:
            stream.write(data)
        return True

    @staticmethod
    def _read_optional(reader: PixelReader,
                       asset: Optional[AssetContext]) -> Optional[ImageBuffer]:
        return reader.read(asset) if asset is not None else None

    def _transform_diffuse(self, asset, reference, reader) -> ImageBuffer:
        diffuse = reader.read(asset)
        specular = self._read_optional(reader, reference.smoothness_source)
        return convert_diffuse(diffuse, specular)

    def _transform_metallic_glossiness(self, asset, reference, reader) -> ImageBuffer:
        metallic = reader.read(asset)
        smoothness = self._read_optional(reader, reference.smoothness_source)
        return convert_metallic_glossiness(metallic, smoothness)

    def _transform_specular_glossiness(self, asset, reference, reader) -> ImageBuffer:
        if reference.smoothness_source is None:
            raise UnreadableSourceError("specular-gloss conversion needs a diffuse texture")
        specular = reader.read(asset)
        diffuse = reader.read(reference.smoothness_source)
        return convert_specular_glossiness(
            specular, diffuse, reference.smoothness_channel,
            zero_value=self.config.zero_luminance_metalness,
        )
