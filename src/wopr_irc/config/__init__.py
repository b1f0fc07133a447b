"""Configuration: YAML loading and the typed IRC config."""

from wopr_irc.config.loader import env_overrides, load_config, load_config_with_env
from wopr_irc.config.schema import CONFIG_SCHEMA, ConfigField, ConfigSchema, IrcConfig

__all__ = [
    "CONFIG_SCHEMA",
    "ConfigField",
    "ConfigSchema",
    "IrcConfig",
    "env_overrides",
    "load_config",
    "load_config_with_env",
]
