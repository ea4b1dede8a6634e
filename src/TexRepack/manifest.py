"""Load asset descriptors from a YAML manifest.

Manifest layout::

    root: ./source            # optional, defaults to the manifest's folder
    assets:
      - path: Assets/Textures/brick_d.tga
        type: texture
        output: Textures/brick_d.tga
      - path: Assets/Materials/Brick.mat
        type: material
        output: Materials/Brick.xml
        workflow: specular            # metallic | specular
        smoothness_channel: albedo_alpha
        textures:
          main: Assets/Textures/brick_d.tga
          specular_gloss: {path: Assets/Textures/atlas.tga, name: brick_spec}

``file`` overrides where an asset lives on disk (relative to ``root``);
otherwise ``root/path`` is used. ``name`` defaults to the file stem.
"""

import logging
import os
from typing import List

import yaml

from .config import AssetType, SmoothnessChannel
from .core import AssetContext

logger = logging.getLogger("texrepack.manifest")

_WORKFLOWS = ("metallic", "specular")


def _parse_texture_slots(slots, where: str) -> dict:
    if slots is None:
        return {}
    if not isinstance(slots, dict):
        raise ValueError(f"{where}: 'textures' must be a mapping of slot -> texture")
    parsed = {}
    for slot, value in slots.items():
        if value is None:
            continue
        if isinstance(value, str):
            parsed[str(slot)] = {"path": value.replace("\\", "/"), "name": ""}
        elif isinstance(value, dict) and isinstance(value.get("path"), str):
            parsed[str(slot)] = {
                "path": value["path"].replace("\\", "/"),
                "name": str(value.get("name") or ""),
            }
        else:
            raise ValueError(f"{where}: invalid texture slot '{slot}': {value!r}")
    return parsed


def _parse_asset(entry, root: str, index: int) -> AssetContext:
    where = f"assets[{index}]"
    if not isinstance(entry, dict):
        raise ValueError(f"{where}: expected a mapping, got {type(entry).__name__}")
    path = entry.get("path")
    output = entry.get("output")
    if not isinstance(path, str) or not path:
        raise ValueError(f"{where}: 'path' is required")
    if not isinstance(output, str) or not output:
        raise ValueError(f"{where}: 'output' is required")
    try:
        asset_type = AssetType(str(entry.get("type", "texture")).lower())
    except ValueError as exc:
        raise ValueError(f"{where}: unknown asset type {entry.get('type')!r}") from exc

    properties = {}
    if asset_type is AssetType.MATERIAL:
        workflow = str(entry.get("workflow", "metallic")).lower()
        if workflow not in _WORKFLOWS:
            raise ValueError(
                f"{where}: workflow must be one of {list(_WORKFLOWS)}, got {workflow!r}"
            )
        try:
            channel = SmoothnessChannel(
                str(entry.get("smoothness_channel",
                              SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA.value)).lower()
            )
        except ValueError as exc:
            raise ValueError(
                f"{where}: unknown smoothness_channel {entry.get('smoothness_channel')!r}"
            ) from exc
        properties = {
            "workflow": workflow,
            "smoothness_channel": channel,
            "textures": _parse_texture_slots(entry.get("textures"), where),
        }

    file_rel = (entry.get("file") or path).replace("\\", "/")
    full_path = os.path.normpath(os.path.join(root, file_rel))
    return AssetContext(
        asset_path=path,
        output_name=output,
        name=str(entry.get("name") or ""),
        full_path=full_path,
        asset_type=asset_type,
        properties=properties,
    )


def parse_manifest(data, root: str = ".") -> List[AssetContext]:
    """Build asset descriptors from already-parsed manifest data."""
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping, got {type(data).__name__}")
    entries = data.get("assets") or []
    if not isinstance(entries, list):
        raise ValueError("Manifest 'assets' must be a list")
    root = os.path.join(root, data.get("root") or "")
    assets = [_parse_asset(entry, root, i) for i, entry in enumerate(entries)]
    logger.debug("Parsed %d asset(s) from manifest", len(assets))
    return assets


def load_manifest(path: str) -> List[AssetContext]:
    """Read a YAML manifest file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse YAML manifest '{path}': {exc}") from exc
    try:
        return parse_manifest(data, root=os.path.dirname(os.path.abspath(path)))
    except ValueError as exc:
        raise ValueError(f"{path}: {exc}") from exc
