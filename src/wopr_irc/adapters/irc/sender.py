"""Outbound delivery: split, pace, say."""

from __future__ import annotations

from loguru import logger

from wopr_irc.core.constants import DEFAULT_MAX_MESSAGE_LENGTH, PROTOCOL_OVERHEAD
from wopr_irc.core.errors import ClientNotInitializedError
from wopr_irc.formatting import split_message
from wopr_irc.gateway.context import ConnectionContext
from wopr_irc.host import StreamMessage


class OutboundSender:
    """Send text to a channel or nick through the current client and pacer."""

    def __init__(self, context: ConnectionContext) -> None:
        self._context = context

    def budget(self) -> int:
        config = self._context.config
        max_length = config.max_message_length if config else DEFAULT_MAX_MESSAGE_LENGTH
        return max_length - PROTOCOL_OVERHEAD

    def send(self, channel: str, content: str) -> int:
        """Queue ``content`` for ``channel``. Returns the number of chunks queued."""
        if self._context.client is None:
            raise ClientNotInitializedError(details={"channel": channel})

        queued = 0
        pacer = self._context.pacer
        for chunk in split_message(content, self.budget()):
            if not chunk.strip():
                continue
            action = self._say_action(channel, chunk)
            if pacer is not None:
                pacer.enqueue(action)
            else:
                action()
            queued += 1
        return queued

    def _say_action(self, channel: str, chunk: str):
        def say() -> None:
            # Client looked up when the pacer fires, not when queued
            client = self._context.client
            if client is None:
                logger.debug("Dropping queued IRC line for {}: client gone", channel)
                return
            client.say(channel, chunk)

        return say


class ChannelSink:
    """Reply sink bound to one channel (or nick for private messages)."""

    def __init__(self, sender: OutboundSender, channel: str) -> None:
        self._sender = sender
        self.channel = channel
        self.streamed = False

    async def emit(self, text: str) -> None:
        try:
            self._sender.send(self.channel, text)
        except ClientNotInitializedError:
            logger.warning("Reply to {} dropped: IRC client not initialized", self.channel)

    async def on_stream(self, message: StreamMessage) -> None:
        if message.type != "text" or not message.content:
            return
        self.streamed = True
        await self.emit(message.content)
