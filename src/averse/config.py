"""Settings loading with defaults and CLI override merging."""

from __future__ import annotations

import copy
from pathlib import Path

import yaml

CONFIG_FILENAME = "averse.yaml"

DEFAULTS = {
    "storage": {
        "recipe_dir": "recipes",
        "plan_dir": "plans",
        "write_retries": 3,
    },
    "planning": {
        "days": 7,
        "min_cooldown_days": 3,
        "meals_per_day": 1,
        "required_tags": [],
        "exclude": [],
    },
    "behold": {
        "n_plans": 5,
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(data_dir: Path) -> dict:
    """Load settings from averse.yaml in the data directory, falling back to defaults."""
    config_path = data_dir / CONFIG_FILENAME

    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        return deep_merge(copy.deepcopy(DEFAULTS), user_config)

    return copy.deepcopy(DEFAULTS)


def apply_cli_overrides(config: dict, **overrides: object) -> dict:
    """Apply CLI argument overrides to config.

    Supports flat keys that map into nested config:
      recipe_dir -> storage.recipe_dir
      plan_dir -> storage.plan_dir
      days -> planning.days
      cooldown -> planning.min_cooldown_days
      meals_per_day -> planning.meals_per_day
      tags -> planning.required_tags (appended)
      exclude -> planning.exclude (appended)
      n_plans -> behold.n_plans
    """
    if overrides.get("recipe_dir") is not None:
        config["storage"]["recipe_dir"] = str(overrides["recipe_dir"])
    if overrides.get("plan_dir") is not None:
        config["storage"]["plan_dir"] = str(overrides["plan_dir"])
    if overrides.get("days") is not None:
        config["planning"]["days"] = overrides["days"]
    if overrides.get("cooldown") is not None:
        config["planning"]["min_cooldown_days"] = overrides["cooldown"]
    if overrides.get("meals_per_day") is not None:
        config["planning"]["meals_per_day"] = overrides["meals_per_day"]
    if overrides.get("tags"):
        config["planning"]["required_tags"] = list(config["planning"]["required_tags"]) + [
            str(t).strip() for t in overrides["tags"]  # type: ignore[union-attr]
        ]
    if overrides.get("exclude"):
        config["planning"]["exclude"] = list(config["planning"]["exclude"]) + [
            str(e).strip() for e in overrides["exclude"]  # type: ignore[union-attr]
        ]
    if overrides.get("n_plans") is not None:
        config["behold"]["n_plans"] = overrides["n_plans"]

    return config


def resolve_dir(data_dir: Path, configured: str) -> Path:
    """Configured directories are relative to the data directory unless absolute."""
    path = Path(configured).expanduser()
    return path if path.is_absolute() else data_dir / path
