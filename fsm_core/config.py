"""
Configuration objects for FSM replay.

Exposes the layout, timeline, edge and playback constants as dataclasses so
they can be tuned from a YAML file without editing core logic. Defaults match
the values the rendering surface was designed around.

YAML schema (every section and key optional):

layout:
  min_distance: 250
  max_iterations: 64
  grid_columns: 4
  grid_spacing_x: 220
  grid_spacing_y: 140
timeline:
  origin_key_pattern: '^(\\d{8}_\\d{6})'
  origin_key_format: '%Y%m%d_%H%M%S'
edges:
  step: 0.5
playback:
  scrub_policy: APPEND_ONLY   # or RETRACT
sources:
  observations: data/observations.json
  transitions: data/transitions.json
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import yaml

from .enums import ScrubPolicy
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class LayoutConfig:
    """Repulsion and initial-grid parameters."""

    # Minimum pairwise separation enforced by the repulsion pass
    min_distance: float = 250.0
    # Upper bound on repulsion passes per call
    max_iterations: int = 64

    # Initial placement grid, keyed by the running count of distinct states
    grid_columns: int = 4
    grid_spacing_x: float = 220.0
    grid_spacing_y: float = 140.0


@dataclass
class TimelineConfig:
    """How origin keys are turned into timestamps."""

    origin_key_pattern: str = r"^(\d{8}_\d{6})"
    origin_key_format: str = "%Y%m%d_%H%M%S"


@dataclass
class EdgeConfig:
    # Offset between neighbouring parallel edges, in canvas units
    step: float = 0.5


@dataclass
class PlaybackConfig:
    scrub_policy: ScrubPolicy = ScrubPolicy.APPEND_ONLY


@dataclass
class SourcesConfig:
    """Default locations of the external JSON sources (used by the service and CLI)."""

    observations: Optional[str] = None
    transitions: Optional[str] = None


@dataclass
class ReplayConfig:
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    edges: EdgeConfig = field(default_factory=EdgeConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)


# Numeric keys and the type YAML values are coerced to
_NUMERIC_FIELDS = {
    "min_distance": float,
    "max_iterations": int,
    "grid_columns": int,
    "grid_spacing_x": float,
    "grid_spacing_y": float,
    "step": float,
}

_SECTIONS = {
    "layout": LayoutConfig,
    "timeline": TimelineConfig,
    "edges": EdgeConfig,
    "playback": PlaybackConfig,
    "sources": SourcesConfig,
}


def _build_section(name: str, cls, raw: Any):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"Section '{name}' must be a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {sorted(unknown)}")

    values = dict(raw)
    if cls is PlaybackConfig and "scrub_policy" in values:
        policy = values["scrub_policy"]
        if not isinstance(policy, ScrubPolicy):
            try:
                values["scrub_policy"] = ScrubPolicy[str(policy).upper()]
            except KeyError as exc:
                raise ConfigError(f"Unknown scrub_policy: {policy!r}") from exc
    for key, typ in _NUMERIC_FIELDS.items():
        if key in values:
            value = values[key]
            if isinstance(value, bool):
                raise ConfigError(f"{name}.{key} must be a number, got {value!r}")
            try:
                values[key] = typ(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"{name}.{key} must be a number, got {value!r}") from exc
    try:
        return cls(**values)
    except TypeError as exc:
        raise ConfigError(f"Invalid section '{name}': {exc}") from exc


def config_from_dict(data: Dict[str, Any] | None) -> ReplayConfig:
    """
    Build a `ReplayConfig` from a parsed YAML mapping.

    Args:
        data: Mapping of section name to section mapping

    Returns:
        ReplayConfig with defaults for anything not specified

    Raises:
        ConfigError: On unknown sections/keys or invalid values
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level configuration must be a mapping")

    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {sorted(unknown)}")

    cfg = ReplayConfig(**{name: _build_section(name, cls, data.get(name)) for name, cls in _SECTIONS.items()})
    if cfg.layout.min_distance <= 0:
        raise ConfigError("layout.min_distance must be positive")
    if cfg.layout.max_iterations < 1:
        raise ConfigError("layout.max_iterations must be at least 1")
    if cfg.layout.grid_columns < 1:
        raise ConfigError("layout.grid_columns must be at least 1")
    return cfg


def load_config(path: str | None = None) -> ReplayConfig:
    """Load configuration from a YAML file; a missing or unset path yields defaults."""
    if not path or not os.path.exists(path):
        if path:
            logger.info("Config file %s not found, using defaults", path)
        return ReplayConfig()

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    cfg = config_from_dict(data)
    # Relative source paths are resolved against the config file location
    base = os.path.dirname(os.path.abspath(path))
    for attr in ("observations", "transitions"):
        value = getattr(cfg.sources, attr)
        if value and not os.path.isabs(value):
            setattr(cfg.sources, attr, os.path.join(base, value))
    return cfg
