"""Define typed configuration models for texture export sessions.

Use `ExportConfig` to load, validate, and persist runtime settings.
"""

import os
import logging
import yaml
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger("texrepack.config")


class TextureSemantic(Enum):
    """Enumerate the roles a texture can play for a material."""

    METALLIC_GLOSSINESS = "metallic_glossiness"
    SPECULAR_GLOSSINESS = "specular_glossiness"
    DIFFUSE = "diffuse"
    NONE = "none"


class SmoothnessChannel(Enum):
    """Enumerate where a material keeps its smoothness value."""

    METALLIC_OR_SPECULAR_ALPHA = "metallic_or_specular_alpha"
    ALBEDO_ALPHA = "albedo_alpha"


class AssetType(Enum):
    """Enumerate source asset categories."""

    TEXTURE = "texture"
    MATERIAL = "material"
    MESH = "mesh"
    OTHER = "other"


@dataclass
class NamingConfig:
    """Output file suffixes for transformed textures."""

    metallic_roughness_suffix: str = ".MetallicRoughness.png"
    base_color_suffix: str = ".BaseColor.png"


_SUPPORTED_CONFIG_VERSION = 1


@dataclass
class ExportConfig:
    """Master export configuration."""

    config_version: int = 1
    manifest_path: str = "./assets/manifest.yaml"
    output_dir: str = "./assets/output"

    max_workers: int = 1
    log_level: str = "INFO"
    dry_run: bool = False
    overwrite: bool = True
    max_image_pixels: int = 67108864  # 8192x8192
    png_compress_level: int = 6
    # Metalness used where diffuse and specular luminance are both zero.
    zero_luminance_metalness: float = 0.0

    naming: NamingConfig = field(default_factory=NamingConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "ExportConfig":
        """Load export configuration from YAML or return defaults."""
        if not os.path.exists(path):
            logger.info("Config file '%s' not found. Using defaults.", path)
            config = cls()
            config.validate()
            return config
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(
                f"Failed to parse YAML config '{path}': {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ValueError(
                f"Config file '{path}' must contain a YAML mapping, "
                f"got {type(data).__name__}"
            )
        yaml_version = data.get("config_version", 1)
        if isinstance(yaml_version, int) and yaml_version > _SUPPORTED_CONFIG_VERSION:
            logger.warning(
                "Config file '%s' has config_version=%d, but this build only "
                "supports up to version %d. Some settings may be ignored.",
                path, yaml_version, _SUPPORTED_CONFIG_VERSION,
            )
        config = cls()
        _merge_dict_to_dataclass(config, data)
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        return config

    def to_yaml(self, path: str):
        """Write export configuration to a YAML file."""
        import dataclasses
        import threading as _th
        data = dataclasses.asdict(self)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        ext = os.path.splitext(path)[1]
        tmp_path = f"{path}.tmp.{os.getpid()}.{_th.get_ident()}{ext}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    def validate(self):
        """Validate configuration values. Raises ValueError on invalid config."""
        errors = []

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"log_level must be one of {sorted(valid_log_levels)}, "
                f"got '{self.log_level}'"
            )

        if self.max_workers < 1:
            errors.append("max_workers must be >= 1")
        if self.max_workers > 128:
            errors.append("max_workers must be <= 128")

        if self.max_image_pixels < 0:
            errors.append("max_image_pixels must be >= 0 (0 = unlimited)")

        if not 0 <= self.png_compress_level <= 9:
            errors.append(
                f"png_compress_level must be in [0, 9], got {self.png_compress_level}"
            )

        if not 0.0 <= self.zero_luminance_metalness <= 1.0:
            errors.append(
                "zero_luminance_metalness must be in [0, 1], "
                f"got {self.zero_luminance_metalness}"
            )

        suffixes = {
            "naming.metallic_roughness_suffix": self.naming.metallic_roughness_suffix,
            "naming.base_color_suffix": self.naming.base_color_suffix,
        }
        for key, suffix in suffixes.items():
            if not suffix.startswith(".") or "/" in suffix or "\\" in suffix:
                errors.append(
                    f"{key} must start with '.' and contain no path separators, "
                    f"got '{suffix}'"
                )
            elif not suffix.lower().endswith(".png"):
                errors.append(f"{key} must end with '.png', got '{suffix}'")
        if (self.naming.metallic_roughness_suffix.lower()
                == self.naming.base_color_suffix.lower()):
            errors.append("naming suffixes must be distinct")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


def _merge_dict_to_dataclass(obj, data: dict, _path: str = ""):
    import dataclasses
    for key, value in data.items():
        if hasattr(obj, key):
            field_val = getattr(obj, key)
            if dataclasses.is_dataclass(field_val) and isinstance(value, dict):
                _merge_dict_to_dataclass(field_val, value, f"{_path}{key}.")
            else:
                full_key = f"{_path}{key}"
                if value is None and field_val is not None:
                    logger.warning(
                        f"Config key '{full_key}' is null but field default is "
                        f"{type(field_val).__name__}. Using default value."
                    )
                    continue
                expected_type = type(field_val)
                # Allow int->float and exact float->int promotion
                if (field_val is not None
                        and not isinstance(value, expected_type)
                        and not (expected_type is float
                                 and isinstance(value, int))
                        and not (expected_type is int
                                 and isinstance(value, float)
                                 and value == int(value))):
                    logger.warning(
                        f"Config type mismatch for '{full_key}': "
                        f"expected {expected_type.__name__}, "
                        f"got {type(value).__name__} ({value!r}). "
                        f"Using default value."
                    )
                    continue
                if (expected_type is int and isinstance(value, float)
                        and value == int(value)):
                    value = int(value)
                if expected_type is float and isinstance(value, int):
                    value = float(value)
                setattr(obj, key, value)
        else:
            full_key = f"{_path}{key}"
            logger.warning(f"Unknown config key ignored: '{full_key}'")
