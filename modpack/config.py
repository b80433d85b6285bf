"""Configuration loading for modpack (.modpack.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".modpack.yml"

KNOWN_RULES = ("syntax", "debugger", "with")
_COMPRESSIONS = ("deflated", "stored")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class MarkerConfig:
    """Glob patterns of the files that mark module roots and bundles."""

    top_config: str = "*/_Config.js"
    sub_config: str = "*/_Config.js"
    bundle_scripts: str = "_Bundle/*.js"


@dataclass
class AssetConfig:
    """Per-module asset classes, relative to the module directory."""

    boot_script: str = "_Boot.js"
    config_script: str = "_Config.js"
    config_scripts: str = "_Config/*.js"
    class_scripts: str = "Class/**/*.js"
    public_assets: str = "Public/**/*"


@dataclass
class VerifierConfig:
    """Script checker settings."""

    enabled: bool = True
    prefix: str = "void"
    rules: List[str] = field(default_factory=lambda: list(KNOWN_RULES))


@dataclass
class ArchiveConfig:
    """Output archive settings."""

    compression: str = "deflated"
    timestamp: Optional[int] = None


@dataclass
class PackConfig:
    """Represents the settings defined in .modpack.yml."""

    root: Path = field(default_factory=Path.cwd)
    markers: MarkerConfig = field(default_factory=MarkerConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> PackConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PackConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    defaults_markers = MarkerConfig()
    markers_data = _as_dict(data.get("markers"))
    markers = MarkerConfig(
        top_config=_as_str(markers_data.get("top_config")) or defaults_markers.top_config,
        sub_config=_as_str(markers_data.get("sub_config")) or defaults_markers.sub_config,
        bundle_scripts=_as_str(markers_data.get("bundle_scripts"))
        or defaults_markers.bundle_scripts,
    )

    defaults_assets = AssetConfig()
    assets_data = _as_dict(data.get("assets"))
    assets = AssetConfig(
        **{
            name: _as_str(assets_data.get(name)) or getattr(defaults_assets, name)
            for name in (
                "boot_script",
                "config_script",
                "config_scripts",
                "class_scripts",
                "public_assets",
            )
        }
    )

    verifier_data = _as_dict(data.get("verifier"))
    verifier = VerifierConfig()
    if verifier_data:
        enabled = _as_bool(verifier_data.get("enabled"))
        if enabled is not None:
            verifier.enabled = enabled
        prefix = _as_str(verifier_data.get("prefix"))
        if prefix is not None:
            verifier.prefix = prefix
        if "rules" in verifier_data:
            verifier.rules = _as_rule_list(verifier_data.get("rules"))

    archive_data = _as_dict(data.get("archive"))
    archive = ArchiveConfig()
    if archive_data:
        compression = _as_str(archive_data.get("compression"))
        if compression is not None:
            compression = compression.lower()
            if compression not in _COMPRESSIONS:
                raise ConfigError(
                    f"Unsupported archive compression '{compression}' "
                    f"(expected one of: {', '.join(_COMPRESSIONS)})"
                )
            archive.compression = compression
        archive.timestamp = _as_int(archive_data.get("timestamp"))

    return PackConfig(
        root=root,
        markers=markers,
        assets=assets,
        verifier=verifier,
        archive=archive,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_rule_list(value: Any) -> List[str]:
    rules = [rule.strip().lower() for rule in _as_str_list(value)]
    unknown = sorted(set(rules) - set(KNOWN_RULES))
    if unknown:
        raise ConfigError(f"Unknown verifier rules: {', '.join(unknown)}")
    return rules


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "ArchiveConfig",
    "AssetConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "KNOWN_RULES",
    "MarkerConfig",
    "PackConfig",
    "VerifierConfig",
    "load_config",
]
