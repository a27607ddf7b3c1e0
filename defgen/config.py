"""Configuration loading for defgen (.defgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import DefgenError

CONFIG_FILENAME = ".defgen.yml"


class ConfigError(DefgenError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RenderConfig:
    """Template rendering settings."""

    template: Optional[Path] = None
    output: Optional[Path] = None
    package: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DefgenConfig:
    """Represents the settings defined in .defgen.yml."""

    root: Path
    exclude: List[str] = field(default_factory=list)
    patterns: List[str] = field(default_factory=list)
    render: RenderConfig = field(default_factory=RenderConfig)


def load_config(config_path: Path) -> DefgenConfig:
    """Load configuration from disk, returning defaults when the file is missing."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DefgenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    render_data = _as_dict(data.get("render"))
    render = RenderConfig()
    if render_data:
        template = _as_str(render_data.get("template"))
        output = _as_str(render_data.get("output"))
        render.template = root / template if template else None
        render.output = root / output if output else None
        render.package = _as_str(render_data.get("package"))
        render.params = _as_dict(render_data.get("params"))

    return DefgenConfig(
        root=root,
        exclude=_as_str_list(data.get("exclude")),
        patterns=_as_str_list(data.get("patterns")),
        render=render,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "DefgenConfig", "RenderConfig", "load_config"]
