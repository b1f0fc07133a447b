"""Protocol and plugin constants."""

from __future__ import annotations

from typing import Final

PLUGIN_ID: Final = "wopr-plugin-irc"
PACKAGE_NAME: Final = "@wopr-network/wopr-plugin-irc"
CHANNEL_TYPE: Final = "irc"

VERSION_REPLY: Final = "WOPR IRC Plugin 1.0.0"
QUIT_MESSAGE: Final = "WOPR shutting down"

# Host-side names
DEFAULT_SESSION: Final = "default"
CHANNEL_MESSAGE_EVENT: Final = "channel:message"

# IRC line is 512 bytes; the wire layer adds "PRIVMSG <target> :", prefix and CRLF
DEFAULT_MAX_MESSAGE_LENGTH: Final = 512
PROTOCOL_OVERHEAD: Final = 100

DEFAULT_PORT: Final = 6697
DEFAULT_FLOOD_DELAY_MS: Final = 500
DEFAULT_COMMAND_PREFIX: Final = "!"
DEFAULT_REALNAME: Final = "WOPR Bot"

KICK_REJOIN_DELAY: Final = 2.0

RECONNECT_MAX_WAIT: Final = 30.0
RECONNECT_MAX_RETRIES: Final = 10

CHANNEL_PREFIXES: Final = ("#", "&", "+", "!")
