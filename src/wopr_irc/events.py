"""Wire event types emitted by the IRC client.

One dataclass per connection-lifecycle or chat event. The set is closed:
handlers switch on ``isinstance`` over :data:`WireEvent`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union, get_args


@dataclass
class Registered:
    """Server accepted registration (RPL_WELCOME)."""

    nick: str


@dataclass
class PrivMsg:
    """Channel or private message."""

    nick: str
    ident: str
    hostname: str
    target: str
    message: str
    tags: dict[str, str] = field(default_factory=dict)
    type: str = "privmsg"  # "privmsg" | "action"


@dataclass
class CtcpRequest:
    """CTCP query other than ACTION (VERSION, PING, ...)."""

    nick: str
    target: str
    type: str
    message: str = ""


@dataclass
class Kick:
    """Someone (``nick``) kicked ``kicked`` from ``channel``."""

    kicked: str
    nick: str
    channel: str
    message: str = ""


@dataclass
class NickInUse:
    """ERR_NICKNAMEINUSE for the nick we asked for."""


@dataclass
class NickChange:
    """A user changed nick from ``nick`` to ``new_nick``."""

    nick: str
    new_nick: str


@dataclass
class Reconnecting:
    """Client is about to wait ``delay`` seconds before connect attempt ``attempt``."""

    attempt: int = 0
    delay: float = 0.0


@dataclass
class Close:
    """Socket closed."""


@dataclass
class SocketError:
    """Socket-level failure."""

    error: BaseException


WireEvent = Union[
    Registered,
    PrivMsg,
    CtcpRequest,
    Kick,
    NickInUse,
    NickChange,
    Reconnecting,
    Close,
    SocketError,
]

WIRE_EVENT_TYPES: tuple[type, ...] = get_args(WireEvent)
