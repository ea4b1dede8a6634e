"""Session-wide registry of exported asset paths."""

import logging
import threading
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Union

from .config import AssetType
from .core import AssetContext, AssetKey, fix_asset_separator

logger = logging.getLogger("texrepack.registry")


class AssetNamespace(Enum):
    """Independent key spaces of the registry."""

    MESH = "mesh"
    MATERIAL = "material"
    TEXTURE = "texture"


AssetRef = Union[AssetContext, AssetKey, None]


def _key_of(asset: AssetRef) -> Optional[AssetKey]:
    if asset is None:
        return None
    if isinstance(asset, AssetKey):
        return asset
    return asset.key


class AssetPathRegistry:
    """Remember which output path each source asset was given.

    Keys are ``(container path, in-container name)`` pairs, so sub-assets of
    one file stay distinct. Each namespace maps a key to at most one path;
    registering a known key again is a no-op that returns False.

    Construction pre-registers every material asset under its own output
    name. Iterating the registry yields the source assets in input order.
    Writes are serialized by a lock; lookups are plain dict reads.
    """

    def __init__(self, assets: Iterable[AssetContext]):
        """Build the registry and seed material paths from ``assets``."""
        self._assets: List[AssetContext] = list(assets)
        self._paths: Dict[AssetNamespace, Dict[AssetKey, str]] = {
            ns: {} for ns in AssetNamespace
        }
        self._lock = threading.Lock()

        for asset in self.assets_of_type(AssetType.MATERIAL):
            self.add_material_path(asset, asset.output_name)
        logger.debug("Registry seeded with %d material path(s)",
                     len(self._paths[AssetNamespace.MATERIAL]))

    def register_path(self, namespace: AssetNamespace, key: AssetKey, path: str) -> bool:
        """Insert ``key -> path`` unless ``key`` is already registered."""
        values = self._paths[namespace]
        with self._lock:
            if key in values:
                logger.debug("Duplicate %s asset %s", namespace.value, key)
                return False
            values[key] = path
        return True

    def lookup_path(self, namespace: AssetNamespace, asset: AssetRef) -> Optional[str]:
        """Return the path registered for ``asset``, or None."""
        key = _key_of(asset)
        if key is None:
            return None
        return self._paths[namespace].get(key)

    def _add(self, namespace: AssetNamespace, asset: AssetRef, file_name: str) -> bool:
        key = _key_of(asset)
        if key is None:
            raise ValueError(f"Cannot register a {namespace.value} path for no asset")
        return self.register_path(namespace, key, fix_asset_separator(file_name))

    def add_mesh_path(self, mesh: AssetRef, file_name: str) -> bool:
        return self._add(AssetNamespace.MESH, mesh, file_name)

    def add_material_path(self, material: AssetRef, file_name: str) -> bool:
        return self._add(AssetNamespace.MATERIAL, material, file_name)

    def add_texture_path(self, texture: AssetRef, file_name: str) -> bool:
        return self._add(AssetNamespace.TEXTURE, texture, file_name)

    def try_get_mesh_path(self, mesh: AssetRef) -> Optional[str]:
        return self.lookup_path(AssetNamespace.MESH, mesh)

    def try_get_material_path(self, material: AssetRef) -> Optional[str]:
        return self.lookup_path(AssetNamespace.MATERIAL, material)

    def try_get_texture_path(self, texture: AssetRef) -> Optional[str]:
        return self.lookup_path(AssetNamespace.TEXTURE, texture)

    def paths(self, namespace: AssetNamespace) -> Dict[AssetKey, str]:
        """Return a snapshot of one namespace."""
        with self._lock:
            return dict(self._paths[namespace])

    def assets_of_type(self, asset_type: AssetType) -> List[AssetContext]:
        return [a for a in self._assets if a.asset_type is asset_type]

    def __iter__(self) -> Iterator[AssetContext]:
        return iter(self._assets)

    def __len__(self) -> int:
        return len(self._assets)
