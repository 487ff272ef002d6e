"""
YAML → Settings loader.

Load order (later overrides earlier):
1. Python defaults from config.py
2. ``<data_dir>/config.yaml``
3. Environment: LIFTLOG_HOME (data directory), LIFTLOG_API_URL

Example config.yaml:

    api_base_url: http://192.168.1.20:8000/api
    api_timeout_seconds: 5
    rest_extension_seconds: 45
    weight_unit: kg

If config.yaml cannot be parsed a warning is emitted and the file is
ignored (no crash).
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .config import (
    CONFIG_FILENAME,
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_DATA_DIR,
    DEFAULT_REST_EXTENSION_SECONDS,
    DEFAULT_WEIGHT_UNIT,
    REST_TICK_SECONDS,
    USER_PROGRAMS_DIRNAME,
    WORKOUT_TICK_SECONDS,
)

ENV_HOME = "LIFTLOG_HOME"
ENV_API_URL = "LIFTLOG_API_URL"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    data_dir: Path = DEFAULT_DATA_DIR
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout_seconds: float = DEFAULT_API_TIMEOUT_SECONDS
    rest_extension_seconds: int = DEFAULT_REST_EXTENSION_SECONDS
    workout_tick_seconds: float = WORKOUT_TICK_SECONDS
    rest_tick_seconds: float = REST_TICK_SECONDS
    weight_unit: str = DEFAULT_WEIGHT_UNIT

    @property
    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME

    @property
    def user_programs_dir(self) -> Path:
        return self.data_dir / USER_PROGRAMS_DIRNAME


# Keys accepted in config.yaml and how to coerce them
_YAML_FIELDS: dict[str, type] = {
    "api_base_url": str,
    "api_timeout_seconds": float,
    "rest_extension_seconds": int,
    "workout_tick_seconds": float,
    "rest_tick_seconds": float,
    "weight_unit": str,
}


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; return {} (with a warning) on any parse error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"liftlog: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _overrides_from_yaml(raw: dict[str, Any]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, caster in _YAML_FIELDS.items():
        if key not in raw or raw[key] is None:
            continue
        try:
            overrides[key] = caster(raw[key])
        except (TypeError, ValueError):
            warnings.warn(f"liftlog: ignoring invalid config value {key}={raw[key]!r}", stacklevel=2)
    return overrides


def load_settings(data_dir: Path | None = None) -> Settings:
    """
    Build Settings from defaults, config.yaml and the environment.

    Args:
        data_dir: Explicit data directory (e.g. --data-dir); beats LIFTLOG_HOME

    Returns:
        Merged Settings
    """
    if data_dir is None:
        env_home = os.environ.get(ENV_HOME)
        data_dir = Path(env_home).expanduser() if env_home else DEFAULT_DATA_DIR
    settings = Settings(data_dir=Path(data_dir))

    if settings.config_path.exists():
        settings = replace(settings, **_overrides_from_yaml(_load_yaml_file(settings.config_path)))

    env_api = os.environ.get(ENV_API_URL)
    if env_api:
        settings = replace(settings, api_base_url=env_api)

    return settings
