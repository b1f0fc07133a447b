"""Host runtime interface the plugin talks to, plus a standalone host for the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

if TYPE_CHECKING:
    from wopr_irc.gateway.registry import Command, MessageParser


@dataclass(frozen=True)
class ChannelRef:
    type: str
    id: str
    name: str


@dataclass
class StreamMessage:
    """One piece of a streamed reply. Only ``type == "text"`` is relayed."""

    type: str
    content: str = ""


class ReplySink(Protocol):
    """Where replies to one inbound message go."""

    async def emit(self, text: str) -> None: ...
    async def on_stream(self, message: StreamMessage) -> None: ...


class EventBus(Protocol):
    async def emit(self, name: str, payload: dict[str, Any]) -> None: ...


class ChannelProvider(Protocol):
    """Surface the host and other plugins use to reach IRC."""

    id: str

    async def send(self, channel: str, content: str) -> None: ...
    def get_bot_username(self) -> str: ...
    def register_command(self, command: Command) -> None: ...
    def unregister_command(self, name: str) -> None: ...
    def get_commands(self) -> list[Command]: ...
    def add_message_parser(self, parser: MessageParser) -> None: ...
    def remove_message_parser(self, parser_id: str) -> None: ...
    def get_message_parsers(self) -> list[MessageParser]: ...


class PluginContext(Protocol):
    """Host services handed to the plugin at init."""

    events: EventBus

    def register_config_schema(self, plugin_id: str, schema: Any) -> None: ...
    def unregister_config_schema(self, plugin_id: str) -> None: ...
    def register_channel_provider(self, provider: ChannelProvider) -> None: ...
    def unregister_channel_provider(self, provider_id: str) -> None: ...
    def get_config(self) -> dict[str, Any]: ...
    async def inject(
        self,
        session_id: str,
        text: str,
        *,
        sender: str,
        channel: ChannelRef,
        sink: ReplySink,
    ) -> str | None: ...


class LoggingEventBus:
    """Event bus that only logs."""

    async def emit(self, name: str, payload: dict[str, Any]) -> None:
        logger.debug("Host event {}: {}", name, payload)


@dataclass
class StandaloneHost:
    """Minimal host for running the plugin on its own.

    Keeps registered schemas and providers, logs channel events, and answers
    every inject with None.
    """

    config: dict[str, Any] = field(default_factory=dict)
    events: EventBus = field(default_factory=LoggingEventBus)
    schemas: dict[str, Any] = field(default_factory=dict)
    providers: dict[str, ChannelProvider] = field(default_factory=dict)

    def register_config_schema(self, plugin_id: str, schema: Any) -> None:
        self.schemas[plugin_id] = schema

    def unregister_config_schema(self, plugin_id: str) -> None:
        self.schemas.pop(plugin_id, None)

    def register_channel_provider(self, provider: ChannelProvider) -> None:
        self.providers[provider.id] = provider
        logger.debug("Channel provider registered: {}", provider.id)

    def unregister_channel_provider(self, provider_id: str) -> None:
        self.providers.pop(provider_id, None)

    def get_config(self) -> dict[str, Any]:
        return self.config

    async def inject(
        self,
        session_id: str,
        text: str,
        *,
        sender: str,
        channel: ChannelRef,
        sink: ReplySink,
    ) -> str | None:
        logger.info("[{}] {} in {}: {}", session_id, sender, channel.id, text)
        return None
