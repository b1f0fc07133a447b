"""IRC wire client: pydle with its hooks mapped to wire events."""

from __future__ import annotations

import asyncio
import contextlib
import random
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any

import pydle
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from wopr_irc.core.constants import RECONNECT_MAX_RETRIES, RECONNECT_MAX_WAIT
from wopr_irc.core.errors import ConnectionLostError, NotConnectedError
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

EventHandler = Callable[[WireEvent], Awaitable[None]]

# Pause after a registered session drops, before reconnecting: 2s with jitter
_RECONNECT_PAUSE = 2


@dataclass
class ConnectOptions:
    """Everything the client needs to open and register a connection."""

    host: str
    port: int
    nick: str
    username: str
    gecos: str
    tls: bool = True
    password: str | None = None
    auto_reconnect: bool = True
    auto_reconnect_max_wait: float = RECONNECT_MAX_WAIT
    auto_reconnect_max_retries: int = RECONNECT_MAX_RETRIES


class IRCClient(pydle.Client):
    """Pydle client that reports registration, chat and connection changes as wire events.

    The write helpers (``say``, ``join_channel``, ``change_nick``,
    ``ctcp_response``) are synchronous: they check the connection and schedule
    the pydle coroutine, so callers like the flood pacer never await the socket.
    """

    # start() owns reconnects
    RECONNECT_ON_ERROR = False

    def __init__(self, nick: str, on_event: EventHandler | None = None, **kwargs: Any) -> None:
        super().__init__(nick, **kwargs)
        self._on_event = on_event
        self._task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._closing = False
        self._session_registered = False
        self._session_ended: asyncio.Event | None = None
        self._message_tags: dict[str, str | bool] = {}

    @property
    def nick(self) -> str:
        return self.nickname

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def start(self, options: ConnectOptions) -> asyncio.Task:
        """Start the connect/reconnect loop in the background."""
        if self._task and not self._task.done():
            logger.warning("IRC client already connecting to {}", options.host)
            return self._task
        self._closing = False
        self._task = asyncio.create_task(self._run(options))
        return self._task

    async def _run(self, options: ConnectOptions) -> None:
        try:
            while True:
                await self._connect_with_backoff(options)
                if self._closing or not options.auto_reconnect:
                    return
                wait = _RECONNECT_PAUSE * random.uniform(0.5, 1.5)
                logger.info("IRC disconnected, reconnecting in {:.1f}s", wait)
                await self._dispatch(Reconnecting(attempt=1, delay=wait))
                await asyncio.sleep(wait)
        except (OSError, ConnectionLostError) as exc:
            logger.error(
                "IRC connect to {}:{} failed after {} attempts: {}",
                options.host,
                options.port,
                options.auto_reconnect_max_retries,
                exc,
            )

    async def _connect_with_backoff(self, options: ConnectOptions) -> None:
        """Run sessions until one registers and then ends; retry failures with backoff."""
        attempts = max(1, options.auto_reconnect_max_retries) if options.auto_reconnect else 1
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_random_exponential(multiplier=1, max=options.auto_reconnect_max_wait),
            retry=retry_if_exception_type((OSError, ConnectionLostError)),
            before_sleep=self._before_sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._session(options)

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "IRC connect failed (attempt {}): {}, retrying in {:.1f}s",
            retry_state.attempt_number,
            exc,
            delay,
        )
        self._spawn(self._dispatch(Reconnecting(attempt=retry_state.attempt_number, delay=delay)))

    async def _session(self, options: ConnectOptions) -> None:
        """One connection from connect to disconnect."""
        self._session_ended = asyncio.Event()
        self._session_registered = False
        try:
            await self.connect(
                hostname=options.host,
                port=options.port,
                password=options.password,
                tls=options.tls,
                tls_verify=options.tls,
            )
        except OSError as exc:
            await self._dispatch(SocketError(error=exc))
            raise

        await self._session_ended.wait()
        if not self._session_registered and not self._closing:
            raise ConnectionLostError(
                "Connection closed before registration",
                code="closed_before_registration",
                details={"host": options.host, "port": options.port},
            )

    async def handle_forever(self) -> None:
        """pydle read loop; socket errors become SocketError and end the session."""
        try:
            await super().handle_forever()
        except OSError as exc:
            await self._dispatch(SocketError(error=exc))
            if self.connected:
                await self.disconnect(expected=False)
        if self._session_ended is not None:
            self._session_ended.set()

    async def quit(self, message: str | None = None) -> None:
        """Send QUIT and stop reconnecting. No-op on the wire when already disconnected."""
        self._closing = True
        if self.connected:
            await super().quit(message)

    async def close(self) -> None:
        """Drop the connection and stop the reconnect loop."""
        self._closing = True
        if self.connected:
            await self.disconnect(expected=True)
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        for task in list(self._background):
            task.cancel()

    # ------------------------------------------------------------------
    # pydle hooks
    # ------------------------------------------------------------------

    async def on_connect(self) -> None:
        await super().on_connect()
        self._session_registered = True
        logger.info("IRC registered as {}", self.nickname)
        await self._dispatch(Registered(nick=self.nickname))

    async def on_disconnect(self, expected: bool) -> None:
        if not expected:
            logger.warning("IRC connection lost")
        await self._dispatch(Close())
        if self._session_ended is not None:
            self._session_ended.set()

    async def on_raw_privmsg(self, message) -> None:
        """Keep IRCv3 tags for on_message / on_ctcp_action."""
        self._message_tags = getattr(message, "tags", None) or {}
        try:
            await super().on_raw_privmsg(message)
        finally:
            self._message_tags = {}

    async def on_raw_433(self, message) -> None:
        """ERR_NICKNAMEINUSE. The plugin picks the alternative nick."""
        await self._dispatch(NickInUse())

    async def on_message(self, target, source, message):
        await super().on_message(target, source, message)
        if self._is_self(source):
            # pydle echoes our own sends here
            return
        await self._dispatch(self._privmsg(target, source, message, "privmsg"))

    async def on_ctcp_action(self, by, target, message):
        if self._is_self(by):
            return
        await self._dispatch(self._privmsg(target, by, message or "", "action"))

    async def on_ctcp(self, by, target, what, contents):
        await super().on_ctcp(by, target, what, contents)
        ctcp_type = what.upper()
        if ctcp_type == "ACTION" or self._is_self(by):
            return
        await self._dispatch(CtcpRequest(nick=by, target=target, type=ctcp_type, message=contents or ""))

    async def on_ctcp_version(self, by, target, contents):
        """Answered by the plugin, not with pydle's own version string."""

    async def on_kick(self, channel, target, by, reason=None):
        await super().on_kick(channel, target, by, reason)
        await self._dispatch(Kick(kicked=target, nick=by, channel=channel, message=reason or ""))

    async def on_nick_change(self, old, new):
        await super().on_nick_change(old, new)
        if old == pydle.client.DEFAULT_NICKNAME:
            # First nick assigned at registration
            return
        await self._dispatch(NickChange(nick=old, new_nick=new))

    def _is_self(self, nick: str) -> bool:
        return self.is_same_nick(nick, self.nickname)

    def _privmsg(self, target: str, by: str, text: str, kind: str) -> PrivMsg:
        user = self.users.get(by) or {}
        tags = {key: "" if value is True else str(value) for key, value in self._message_tags.items()}
        return PrivMsg(
            nick=by,
            ident=user.get("username") or "",
            hostname=user.get("hostname") or "",
            target=target,
            message=text,
            tags=tags,
            type=kind,
        )

    async def _dispatch(self, evt: WireEvent) -> None:
        if self._on_event is None:
            return
        try:
            await self._on_event(evt)
        except Exception as exc:
            logger.exception("IRC event handler failed for {}: {}", type(evt).__name__, exc)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("IRC write failed: {}", exc)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _require_connection(self) -> None:
        if not self.connected:
            raise NotConnectedError("Not connected to IRC server", code="not_connected")

    def say(self, target: str, text: str) -> None:
        self._require_connection()
        self._spawn(self.message(target, text))

    def join_channel(self, channel: str) -> None:
        self._require_connection()
        if self.in_channel(channel):
            logger.debug("Already in {}", channel)
            return
        self._spawn(self.join(channel))

    def change_nick(self, nick: str) -> None:
        self._require_connection()
        self._spawn(self.set_nickname(nick))

    def ctcp_response(self, target: str, ctcp_type: str, *params: str) -> None:
        self._require_connection()
        self._spawn(self.ctcp_reply(target, ctcp_type, " ".join(params)))
