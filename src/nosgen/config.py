"""
Configuration management for NosGen.

Loads YAML configuration with defaults matching the editor's initial state.
"""

import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass

import yaml


@dataclass
class AtlasConfig:
    """Grid layout of the atlas."""
    rows: int = 4
    padding: int = 6


@dataclass
class FitConfig:
    """Keyframe auto-fill settings."""
    shape: str = "ellipse"  # ellipse, circle, square, tangent, linear
    sprite_direction: str = "clockwise"
    phase_steps: int = 720


@dataclass
class ExportConfig:
    """Atlas PNG/JSON export settings."""
    name: str = "project"
    scale: float = 1.0
    min_scale: float = 0.5
    max_scale: float = 4.0
    smoothing: bool = False
    pivot: str = "top-left"  # top-left, bottom-left, center
    mode: str = "character"  # character, animation, normal
    size: float = 1.0  # echoed as meta.scale


@dataclass
class AnimationConfig:
    """Animation block written in animation mode."""
    name: str = "animation"
    fps: int = 12
    speed: float = 1.0
    loop: bool = True


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class NosGenConfig:
    """Complete configuration."""
    atlas: AtlasConfig = field(default_factory=AtlasConfig)
    fit: FitConfig = field(default_factory=FitConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


def load_config(config_path=None):
    """
    Load configuration from a YAML file.

    Falls back to defaults for any missing section or key; unknown keys are
    ignored.
    """
    config = NosGenConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML sections into the matching dataclass sections."""
    for section in fields(config):
        values = yaml_data.get(section.name)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section.name)
        if not is_dataclass(target):
            continue
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(NosGenConfig())
    # not useful as a default in a shared file
    yaml_data["tracing"].pop("file_path", None)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
