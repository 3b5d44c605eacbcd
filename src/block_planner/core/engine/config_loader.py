"""
YAML → typed planner settings.

Loads tunables from planner.yaml (bundled with the package) and optionally
merges user overrides from ~/.block-planner/planner.yaml.

Usage:
    from block_planner.core.engine.config_loader import load_planner_settings
    settings = load_planner_settings()
    changes = generate_or_update_block(..., settings=settings)

The bundled file must parse. If the user override file exists but cannot be
parsed, a warning is issued and the file is ignored.
"""

from __future__ import annotations

import os
import warnings
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from ..config import PlannerSettings
from ..errors import ConfigurationError

SECTIONS = ("planner", "volume", "progression")

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; an empty file yields {}."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a YAML mapping")
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled planner.yaml."""
    return Path(__file__).parent.parent.parent / "planner.yaml"


def get_user_yaml_path() -> Path | None:
    """Return ~/.block-planner/planner.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".block-planner" / "planner.yaml"
    return p if p.exists() else None


def load_planner_config() -> dict[str, Any]:
    """
    Load and merge planner configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/block_planner/planner.yaml
    2. User override at ~/.block-planner/planner.yaml

    Returns:
        Merged dict of config sections
    """
    config = _load_yaml_file(get_bundled_yaml_path())

    user = get_user_yaml_path()
    if user is not None:
        try:
            user_cfg = _load_yaml_file(user)
        except (yaml.YAMLError, ConfigurationError) as e:
            warnings.warn(
                f"block-planner: ignoring user config {user} ({e}); using bundled defaults.",
                stacklevel=2,
            )
        else:
            config = _deep_merge(config, user_cfg)

    return config


def settings_from_config(config: dict[str, Any]) -> PlannerSettings:
    """
    Build PlannerSettings from a merged config dict.

    Keys are looked up in the planner, volume and progression sections;
    unknown keys are ignored and missing keys keep their defaults.

    Raises:
        ConfigurationError: If a value is out of range
    """
    known = {f.name for f in fields(PlannerSettings)}
    values: dict[str, Any] = {}
    for section in SECTIONS:
        for key, value in (config.get(section) or {}).items():
            if key in known:
                values[key] = value

    if "rep_ranges" in values:
        values["rep_ranges"] = {name: tuple(bounds) for name, bounds in values["rep_ranges"].items()}

    try:
        return PlannerSettings(**values)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid planner configuration: {e}") from e


def load_planner_settings() -> PlannerSettings:
    """Load PlannerSettings from the bundled YAML plus any user override."""
    return settings_from_config(load_planner_config())
