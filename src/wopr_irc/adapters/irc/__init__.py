"""IRC adapter package: wire client, flood pacer, sender, provider, plugin."""

from wopr_irc.adapters.irc.adapter import MANIFEST, ConnectionState, IRCPlugin, PluginManifest
from wopr_irc.adapters.irc.client import ConnectOptions, IRCClient
from wopr_irc.adapters.irc.provider import IRCChannelProvider
from wopr_irc.adapters.irc.sender import ChannelSink, OutboundSender
from wopr_irc.adapters.irc.throttle import FloodPacer

__all__ = [
    "MANIFEST",
    "ChannelSink",
    "ConnectOptions",
    "ConnectionState",
    "FloodPacer",
    "IRCChannelProvider",
    "IRCClient",
    "IRCPlugin",
    "OutboundSender",
    "PluginManifest",
]
