"""Channel provider exposed to the host and other plugins."""

from __future__ import annotations

from wopr_irc.adapters.irc.sender import OutboundSender
from wopr_irc.core.constants import CHANNEL_TYPE
from wopr_irc.gateway.context import ConnectionContext
from wopr_irc.gateway.registry import Command, MessageParser


class IRCChannelProvider:
    """Send to IRC and manage commands and parsers."""

    id = CHANNEL_TYPE

    def __init__(self, context: ConnectionContext, sender: OutboundSender | None = None) -> None:
        self._context = context
        self._sender = sender or OutboundSender(context)

    async def send(self, channel: str, content: str) -> None:
        """Queue ``content`` for ``channel``. Raises ClientNotInitializedError before connect."""
        self._sender.send(channel, content)

    def get_bot_username(self) -> str:
        return self._context.bot_nick()

    def register_command(self, command: Command) -> None:
        self._context.registry.register_command(command)

    def unregister_command(self, name: str) -> None:
        self._context.registry.unregister_command(name)

    def get_commands(self) -> list[Command]:
        return self._context.registry.list_commands()

    def add_message_parser(self, parser: MessageParser) -> None:
        self._context.registry.add_parser(parser)

    def remove_message_parser(self, parser_id: str) -> None:
        self._context.registry.remove_parser(parser_id)

    def get_message_parsers(self) -> list[MessageParser]:
        return self._context.registry.list_parsers()
