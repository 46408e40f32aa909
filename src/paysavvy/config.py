"""Configuration loader for PaySavvy."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

# Environment variables that override individual config entries.
_ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "PAYSAVVY_BRANDS_PATH": ("brands_path",),
    "PAYSAVVY_HISTORY_PATH": ("history", "path"),
    "PAYSAVVY_LOG_LEVEL": ("logging", "level"),
}

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "data" / "default.yaml"

# Optional site-local override, relative to the working directory at load time.
LOCAL_CONFIG_PATH = Path("config") / "local.yaml"


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML files.

    Loads the bundled default config, then merges config/local.yaml (if
    present) and finally a user-specified config path.

    Args:
        config_path: Optional path to a config YAML file. If provided,
            it is merged on top of the default config.

    Returns:
        Merged configuration dictionary.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist.
    """
    config = _read_yaml(DEFAULT_CONFIG_PATH)

    local_path = Path.cwd() / LOCAL_CONFIG_PATH
    if local_path.exists():
        config = _deep_merge(config, _read_yaml(local_path))

    if config_path is not None:
        user_path = Path(config_path)
        if not user_path.exists():
            raise FileNotFoundError(f"Config file not found: {user_path}")
        config = _deep_merge(config, _read_yaml(user_path))

    # Environment variables have the highest priority.
    for env_var, keys in _ENV_OVERRIDES.items():
        value = os.getenv(env_var, "")
        if not value:
            continue
        section = config
        for key in keys[:-1]:
            section = section.setdefault(key, {})
        section[keys[-1]] = value

    return config


def get_list(config: dict[str, Any], key: str) -> list[str]:
    """Retrieve a lowercase string list from config, empty if missing.

    Args:
        config: The loaded configuration dictionary.
        key: Top-level config key (e.g. 'url_shorteners').

    Returns:
        The list entries, lowercased, with any leading dot removed.
    """
    return [str(v).lower().lstrip(".") for v in config.get(key, None) or []]
