"""Plugin domain exceptions."""

from __future__ import annotations


class PluginError(Exception):
    """Base for plugin domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class ConfigurationError(PluginError):
    """Config value present but malformed."""


class ClientNotInitializedError(PluginError):
    """Send attempted while no IRC client is attached."""

    def __init__(self, message: str = "IRC client not initialized", **kwargs) -> None:
        super().__init__(message, code="client_not_initialized", **kwargs)


class NotConnectedError(PluginError):
    """Wire write attempted without an open socket."""


class ConnectionLostError(PluginError):
    """Socket closed before the server accepted registration."""
