"""IRC plugin: connection lifecycle and wire-event handling."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Coroutine
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

from wopr_irc import __version__
from wopr_irc.adapters.irc.client import IRCClient
from wopr_irc.adapters.irc.provider import IRCChannelProvider
from wopr_irc.adapters.irc.sender import ChannelSink, OutboundSender
from wopr_irc.adapters.irc.throttle import FloodPacer
from wopr_irc.config.schema import CONFIG_SCHEMA, ConfigSchema, IrcConfig
from wopr_irc.core.constants import (
    CHANNEL_PREFIXES,
    CHANNEL_TYPE,
    KICK_REJOIN_DELAY,
    PACKAGE_NAME,
    PLUGIN_ID,
    QUIT_MESSAGE,
    VERSION_REPLY,
)
from wopr_irc.core.errors import ConfigurationError, PluginError
from wopr_irc.events import (
    Close,
    CtcpRequest,
    Kick,
    NickChange,
    NickInUse,
    PrivMsg,
    Reconnecting,
    Registered,
    SocketError,
    WireEvent,
)
from wopr_irc.gateway.context import ConnectionContext
from wopr_irc.gateway.pipeline import InboundPipeline

if TYPE_CHECKING:
    from wopr_irc.gateway.registry import DispatchRegistry
    from wopr_irc.host import PluginContext


class ConnectionState(Enum):
    UNCONFIGURED = "unconfigured"
    CONNECTING = "connecting"
    REGISTERED = "registered"
    RECONNECTING = "reconnecting"
    SHUT_DOWN = "shut_down"


@dataclass(frozen=True)
class PluginManifest:
    """Static description of the plugin for the host's plugin catalog."""

    name: str
    version: str
    description: str
    capabilities: tuple[str, ...]
    category: str
    tags: tuple[str, ...]
    icon: str
    config_schema: ConfigSchema
    lifecycle: dict[str, Any] = field(default_factory=dict)


MANIFEST = PluginManifest(
    name=PACKAGE_NAME,
    version=__version__,
    description="IRC bot with channel and private message support",
    capabilities=("channel", "commands"),
    category="channel",
    tags=("irc", "chat", "channel", "bot"),
    icon="💬",
    config_schema=CONFIG_SCHEMA,
    lifecycle={"shutdown_behavior": "graceful"},
)


def is_valid_channel(name: str) -> bool:
    """Channel names start with a channel prefix and contain no space, comma or BEL."""
    return (
        len(name) > 1
        and name.startswith(CHANNEL_PREFIXES)
        and not any(c in name for c in (" ", ",", "\x07"))
    )


class IRCPlugin:
    """Connects one IRC network to the host's channel abstraction."""

    name = PLUGIN_ID
    version = __version__
    description = MANIFEST.description
    manifest = MANIFEST

    def __init__(
        self,
        *,
        registry: DispatchRegistry | None = None,
        rejoin_delay: float = KICK_REJOIN_DELAY,
    ) -> None:
        self.context = ConnectionContext(registry)
        self.state = ConnectionState.UNCONFIGURED
        self._rejoin_delay = rejoin_delay
        self._host: PluginContext | None = None
        self._pipeline: InboundPipeline | None = None
        self._sender = OutboundSender(self.context)
        self.provider = IRCChannelProvider(self.context, self._sender)
        self._tasks: set[asyncio.Task] = set()

    @property
    def client(self) -> IRCClient | None:
        return self.context.client

    @property
    def config(self) -> IrcConfig | None:
        return self.context.config

    async def init(self, host: PluginContext) -> None:
        """Register with the host and start connecting if configured."""
        if self._host is not None:
            logger.warning("IRC plugin already initialized")
            return
        self._host = host
        host.register_config_schema(PLUGIN_ID, CONFIG_SCHEMA)
        host.register_channel_provider(self.provider)
        logger.info("Registered IRC channel provider")

        try:
            config = IrcConfig.from_mapping(host.get_config())
        except ConfigurationError as exc:
            logger.error("Invalid IRC config ({}): {} {}", exc.code, exc, exc.details)
            return
        if config is None:
            return

        options = config.connect_options()
        pacer = FloodPacer(config.flood_delay / 1000)
        client = IRCClient(
            options.nick,
            username=options.username,
            realname=options.gecos,
            on_event=self.handle_event,
        )
        self.context.attach(client, pacer, config)
        self._pipeline = InboundPipeline(self.context, host, self._make_sink)

        self.state = ConnectionState.CONNECTING
        client.start(options)
        logger.info(
            "IRC client connecting server={} port={} nick={} tls={}",
            config.server,
            config.port,
            config.nick,
            config.use_tls,
        )

    async def shutdown(self) -> None:
        """Tear down the connection. Safe to call more than once."""
        if self._host is None:
            return
        host, self._host = self._host, None
        client = self.context.client

        if self.context.pacer is not None:
            self.context.pacer.clear()
        self.context.detach()
        self._pipeline = None
        await self._cancel_tasks()

        host.unregister_channel_provider(CHANNEL_TYPE)
        host.unregister_config_schema(PLUGIN_ID)

        if client is not None:
            try:
                await client.quit(QUIT_MESSAGE)
            except (PluginError, OSError) as exc:
                logger.warning("IRC quit failed: {}", exc)
            await client.close()

        self.state = ConnectionState.SHUT_DOWN
        logger.info("IRC plugin shut down")

    def _make_sink(self, channel: str) -> ChannelSink:
        return ChannelSink(self._sender, channel)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _cancel_tasks(self) -> None:
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Wire events
    # ------------------------------------------------------------------

    async def handle_event(self, evt: WireEvent) -> None:
        client = self.context.client
        config = self.context.config
        if client is None or config is None:
            logger.debug("Ignoring {} after shutdown", type(evt).__name__)
            return

        if isinstance(evt, Registered):
            self._on_registered(evt, client, config)
        elif isinstance(evt, PrivMsg):
            if evt.type != "privmsg" or self._pipeline is None:
                logger.debug("Ignoring IRC {} from {}", evt.type, evt.nick)
                return
            self._spawn(self._handle_message(self._pipeline, evt))
        elif isinstance(evt, CtcpRequest):
            self._on_ctcp(evt, client)
        elif isinstance(evt, Kick):
            self._on_kick(evt, client)
        elif isinstance(evt, NickInUse):
            new_nick = f"{config.nick}_{random.randint(0, 999)}"
            logger.warning("Nick in use, trying alternative: {} -> {}", client.nick, new_nick)
            client.change_nick(new_nick)
        elif isinstance(evt, NickChange):
            self._on_nick_change(evt, client, config)
        elif isinstance(evt, Reconnecting):
            self.state = ConnectionState.RECONNECTING
            logger.info("Reconnecting to IRC (attempt {})", evt.attempt)
        elif isinstance(evt, Close):
            logger.info("IRC connection closed")
        elif isinstance(evt, SocketError):
            logger.error("IRC socket error: {}", evt.error)

    def _on_registered(self, evt: Registered, client: IRCClient, config: IrcConfig) -> None:
        self.state = ConnectionState.REGISTERED
        logger.info("Connected to IRC as {}", evt.nick)
        for channel in config.channels:
            if not is_valid_channel(channel):
                logger.warning("Skipping invalid channel name: {!r}", channel)
                continue
            client.join_channel(channel)
            logger.info("Joining channel {}", channel)

    async def _handle_message(self, pipeline: InboundPipeline, evt: PrivMsg) -> None:
        try:
            await pipeline.handle(evt)
        except Exception as exc:
            logger.exception("Message handling failed: {}", exc)

    def _on_ctcp(self, evt: CtcpRequest, client: IRCClient) -> None:
        ctcp_type = evt.type.upper()
        if ctcp_type == "VERSION":
            client.ctcp_response(evt.nick, "VERSION", VERSION_REPLY)
            logger.debug("CTCP VERSION response sent to {}", evt.nick)
        elif ctcp_type == "PING":
            client.ctcp_response(evt.nick, "PING", evt.message)
            logger.debug("CTCP PING response sent to {}", evt.nick)
        else:
            logger.debug("Ignoring CTCP {} from {}", ctcp_type, evt.nick)

    def _on_kick(self, evt: Kick, client: IRCClient) -> None:
        if evt.kicked.casefold() != client.nick.casefold():
            return
        logger.warning("Kicked from {} by {}, rejoining in {}s", evt.channel, evt.nick, self._rejoin_delay)
        self._spawn(self._rejoin(evt.channel))

    async def _rejoin(self, channel: str) -> None:
        await asyncio.sleep(self._rejoin_delay)
        client = self.context.client
        if client is None:
            return
        try:
            client.join_channel(channel)
        except PluginError as exc:
            logger.warning("Rejoin of {} after KICK failed: {}", channel, exc)
            return
        logger.info("Rejoined {} after KICK", channel)

    def _on_nick_change(self, evt: NickChange, client: IRCClient, config: IrcConfig) -> None:
        # Only when someone else just released the configured nick
        desired = config.nick.casefold()
        if evt.nick.casefold() != desired or client.nick.casefold() == desired:
            return
        logger.info("Attempting to reclaim nick {}", config.nick)
        client.change_nick(config.nick)
