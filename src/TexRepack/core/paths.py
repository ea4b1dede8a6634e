"""Output name helpers."""

from pathlib import PurePosixPath

from ..config import NamingConfig, TextureSemantic
from .records import fix_asset_separator


def normalize_output_name(name: str) -> str:
    """Normalize a relative output name to a canonical, traversal-free form."""
    raw = fix_asset_separator(name)
    p = PurePosixPath(raw)
    if p.is_absolute() or (len(raw) >= 2 and raw[1] == ":"):
        raise ValueError(f"Output name must be relative, got absolute path: {name}")

    parts = []
    for part in p.parts:
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            else:
                raise ValueError(f"Output name escapes root via '..': {name}")
            continue
        parts.append(part)

    if not parts:
        raise ValueError(f"Output name is empty after normalization: {name}")
    return "/".join(parts)


def replace_extension(name: str, new_ext: str) -> str:
    """Replace the extension of the last path segment, or append one."""
    last_dot = name.rfind(".")
    last_slash = name.rfind("/")
    if last_dot > last_slash:
        return name[:last_dot] + new_ext
    return name + new_ext


def get_texture_output_name(base_name: str, semantic: TextureSemantic,
                            naming: NamingConfig = None) -> str:
    """Return the output name a texture gets for a given semantic."""
    naming = naming or NamingConfig()
    if semantic in (TextureSemantic.METALLIC_GLOSSINESS,
                    TextureSemantic.SPECULAR_GLOSSINESS):
        return replace_extension(base_name, naming.metallic_roughness_suffix)
    if semantic is TextureSemantic.DIFFUSE:
        return replace_extension(base_name, naming.base_color_suffix)
    return base_name
