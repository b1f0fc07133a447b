"""Inbound pipeline: strip, command, parser, then host event and inject."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from wopr_irc.core.constants import CHANNEL_MESSAGE_EVENT, CHANNEL_TYPE, DEFAULT_SESSION
from wopr_irc.events import PrivMsg
from wopr_irc.formatting import strip_formatting
from wopr_irc.gateway.context import ConnectionContext
from wopr_irc.gateway.dispatch import try_command, try_parsers
from wopr_irc.host import ChannelRef

if TYPE_CHECKING:
    from wopr_irc.host import PluginContext, ReplySink

SinkFactory = Callable[[str], "ReplySink"]


class InboundPipeline:
    """Route one inbound message to a command, a parser, or the host session."""

    def __init__(self, context: ConnectionContext, host: PluginContext, sink_factory: SinkFactory) -> None:
        self._context = context
        self._host = host
        self._sink_factory = sink_factory

    async def handle(self, evt: PrivMsg) -> None:
        config = self._context.config
        if config is None:
            logger.debug("Ignoring message from {}: plugin not configured", evt.nick)
            return

        is_private = evt.target.casefold() == self._context.bot_nick().casefold()
        channel = evt.nick if is_private else evt.target
        sender = evt.nick
        message = strip_formatting(evt.message)
        sink = self._sink_factory(channel)

        logger.debug(
            "Incoming IRC message channel={} sender={} private={} length={}",
            channel,
            sender,
            is_private,
            len(message),
        )

        if await try_command(self._context, channel, sender, message, config.command_prefix, sink):
            return
        if await try_parsers(self._context, channel, sender, message, sink):
            return

        channel_ref = ChannelRef(type=CHANNEL_TYPE, id=channel, name=channel)
        try:
            await self._host.events.emit(
                CHANNEL_MESSAGE_EVENT,
                {
                    "channel": channel_ref,
                    "message": message,
                    "from": sender,
                    "metadata": {"private": is_private, "hostname": evt.hostname},
                },
            )
        except Exception as exc:
            logger.exception("Failed to emit {} event: {}", CHANNEL_MESSAGE_EVENT, exc)

        try:
            response = await self._host.inject(
                DEFAULT_SESSION,
                message,
                sender=sender,
                channel=channel_ref,
                sink=sink,
            )
        except Exception as exc:
            logger.exception("Failed to inject message from {}: {}", sender, exc)
            return

        if isinstance(response, str) and response and not getattr(sink, "streamed", False):
            await sink.emit(response)
