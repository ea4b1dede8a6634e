"""Derive texture semantic references from material descriptors."""

import logging
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional

from .config import AssetType, SmoothnessChannel, TextureSemantic
from .core import AssetContext, AssetKey, SemanticReference

logger = logging.getLogger("texrepack.resolver")


class MaterialTextureResolver:
    """Answer "what role does this texture play?" from material slots.

    Metallic materials repack their ``metallic_gloss`` slot; the smoothness
    source is that texture itself or the ``main`` albedo, depending on the
    material's smoothness channel. Specular materials repack their
    ``specular_gloss`` slot against the ``main`` diffuse, and the diffuse is
    lightened by the specular map. Every other slot is a plain reference.
    A texture no material uses resolves to an empty list.
    """

    def __init__(self, assets: Iterable[AssetContext]):
        """Index texture assets and collect references from materials."""
        assets = list(assets)
        self._textures: Dict[AssetKey, AssetContext] = {}
        self._by_path: Dict[str, AssetContext] = {}
        for asset in assets:
            if asset.asset_type is AssetType.TEXTURE:
                self._textures.setdefault(asset.key, asset)
                self._by_path.setdefault(asset.asset_path, asset)

        self._references: Dict[AssetKey, List[SemanticReference]] = {}
        for asset in assets:
            if asset.asset_type is AssetType.MATERIAL:
                self._collect(asset)

    def find_texture(self, slot: Optional[dict]) -> Optional[AssetContext]:
        """Return the texture asset a material slot points at."""
        if not slot:
            return None
        path = slot["path"]
        name = slot.get("name") or ""
        if name:
            return self._textures.get(AssetKey(path, name))
        found = self._textures.get(AssetKey(path, PurePosixPath(path).stem))
        return found or self._by_path.get(path)

    def _add(self, texture: Optional[AssetContext], reference: SemanticReference):
        if texture is None:
            return
        refs = self._references.setdefault(texture.key, [])
        if reference not in refs:
            refs.append(reference)

    def _collect(self, material: AssetContext):
        props = material.properties
        slots = props.get("textures", {})
        channel = props.get("smoothness_channel",
                            SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA)
        textures = {slot: self.find_texture(value) for slot, value in slots.items()}
        for slot, value in slots.items():
            if textures[slot] is None:
                logger.warning("Material %s: texture %s for slot '%s' is not in the asset list",
                               material.key, value["path"], slot)

        main = textures.get("main")
        handled = set()
        if props.get("workflow") == "specular":
            specular = textures.get("specular_gloss")
            if specular is not None:
                self._add(specular, SemanticReference(
                    TextureSemantic.SPECULAR_GLOSSINESS, main, channel))
                handled.add("specular_gloss")
            if main is not None:
                self._add(main, SemanticReference(
                    TextureSemantic.DIFFUSE, specular, channel))
                handled.add("main")
        else:
            metallic = textures.get("metallic_gloss")
            if metallic is not None:
                if channel is SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA:
                    smoothness = metallic
                else:
                    smoothness = main
                self._add(metallic, SemanticReference(
                    TextureSemantic.METALLIC_GLOSSINESS, smoothness, channel))
                handled.add("metallic_gloss")

        for slot, texture in textures.items():
            if slot not in handled:
                self._add(texture, SemanticReference(TextureSemantic.NONE))

    def resolve(self, texture: AssetContext) -> List[SemanticReference]:
        """Return the references collected for ``texture``."""
        return list(self._references.get(texture.key, ()))
