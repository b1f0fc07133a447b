"""Config loading: YAML file plus environment overlay."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

# Env var -> config key. Values are strings; IrcConfig.from_mapping parses them.
_ENV_OVERLAY = {
    "WOPR_IRC_SERVER": "server",
    "WOPR_IRC_PORT": "port",
    "WOPR_IRC_NICK": "nick",
    "WOPR_IRC_CHANNELS": "channels",
    "WOPR_IRC_PASSWORD": "password",
    "WOPR_IRC_USE_TLS": "useTLS",
}


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str | Path) -> dict[str, Any]:
    """Load config from YAML file. Use SafeLoader. Returns raw dict."""
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise
    if not isinstance(data, dict):
        logger.warning("Config file {} has invalid structure (expected dict)", path)
        return {}
    return data


def env_overrides() -> dict[str, Any]:
    """Config keys set through WOPR_IRC_* environment variables."""
    overrides: dict[str, Any] = {}
    for env_key, config_key in _ENV_OVERLAY.items():
        value = os.environ.get(env_key)
        if not value:
            continue
        if config_key == "channels":
            overrides[config_key] = [c.strip() for c in value.split(",") if c.strip()]
        else:
            overrides[config_key] = value
    return overrides


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load config from YAML and overlay env-derived values."""
    from dotenv import load_dotenv

    load_dotenv()
    overrides = env_overrides()
    if overrides:
        logger.debug("Config env overrides: {}", sorted(overrides))
    return _deep_update(load_config(path), overrides)
