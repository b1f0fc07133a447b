"""Core: domain errors and protocol constants."""

from wopr_irc.core.errors import (
    ClientNotInitializedError,
    ConfigurationError,
    ConnectionLostError,
    NotConnectedError,
    PluginError,
)

__all__ = [
    "ClientNotInitializedError",
    "ConfigurationError",
    "ConnectionLostError",
    "NotConnectedError",
    "PluginError",
]
