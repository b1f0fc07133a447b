"""Connection context and the contexts handed to command and parser handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wopr_irc.core.constants import CHANNEL_TYPE
from wopr_irc.gateway.registry import DispatchRegistry

if TYPE_CHECKING:
    from wopr_irc.adapters.irc.client import IRCClient
    from wopr_irc.adapters.irc.throttle import FloodPacer
    from wopr_irc.config.schema import IrcConfig
    from wopr_irc.host import ReplySink


class ConnectionContext:
    """Current client, pacer and config plus the long-lived dispatch registry.

    Client, pacer and config are set for one connect cycle and reset to None
    by :meth:`detach`. The registry survives detach.
    """

    def __init__(self, registry: DispatchRegistry | None = None) -> None:
        self.registry = registry if registry is not None else DispatchRegistry()
        self.client: IRCClient | None = None
        self.pacer: FloodPacer | None = None
        self.config: IrcConfig | None = None

    def attach(self, client: IRCClient, pacer: FloodPacer | None, config: IrcConfig) -> None:
        self.client = client
        self.pacer = pacer
        self.config = config

    def detach(self) -> None:
        self.client = None
        self.pacer = None
        self.config = None

    def bot_nick(self) -> str:
        """Current nick on the wire, or "unknown" with no client."""
        if self.client is None or not self.client.nick:
            return "unknown"
        return self.client.nick


@dataclass
class CommandContext:
    channel: str
    sender: str
    args: list[str]
    sink: ReplySink = field(repr=False)
    connection: ConnectionContext = field(repr=False)
    channel_type: str = CHANNEL_TYPE

    async def reply(self, text: str) -> None:
        await self.sink.emit(text)

    def get_bot_username(self) -> str:
        return self.connection.bot_nick()


@dataclass
class MessageContext:
    channel: str
    sender: str
    content: str
    sink: ReplySink = field(repr=False)
    connection: ConnectionContext = field(repr=False)
    channel_type: str = CHANNEL_TYPE

    async def reply(self, text: str) -> None:
        await self.sink.emit(text)

    def get_bot_username(self) -> str:
        return self.connection.bot_nick()
