"""Command and message-parser dispatch."""

from __future__ import annotations

import inspect
import re
from typing import TYPE_CHECKING, Any

from loguru import logger

from wopr_irc.gateway.context import CommandContext, ConnectionContext, MessageContext

if TYPE_CHECKING:
    from wopr_irc.host import ReplySink

_WHITESPACE = re.compile(r"\s+")


async def _invoke(handler: Any, ctx: Any) -> None:
    result = handler(ctx)
    if inspect.isawaitable(result):
        await result


async def try_command(
    context: ConnectionContext,
    channel: str,
    sender: str,
    raw_text: str,
    prefix: str,
    sink: ReplySink,
) -> bool:
    """Run a registered command if ``raw_text`` invokes one.

    Returns True when a command was found, whether or not it succeeded. A
    failing handler is logged and reported back through ``sink``.
    """
    text = raw_text.strip()
    if not text.startswith(prefix):
        return False

    tokens = _WHITESPACE.split(text[len(prefix) :])
    name = tokens[0].casefold()
    if not name:
        return False
    command = context.registry.get_command(name)
    if command is None:
        return False

    ctx = CommandContext(
        channel=channel,
        sender=sender,
        args=[t for t in tokens[1:] if t],
        sink=sink,
        connection=context,
    )
    try:
        await _invoke(command.handler, ctx)
    except Exception as exc:
        logger.exception("IRC command {}{} failed: {}", prefix, name, exc)
        await sink.emit(f"Error executing {prefix}{name}: {exc}")
    return True


async def try_parsers(
    context: ConnectionContext,
    channel: str,
    sender: str,
    text: str,
    sink: ReplySink,
) -> bool:
    """Offer ``text`` to parsers in registration order; the first match handles it.

    A failing parser handler is logged and the message counts as unhandled.
    """
    for parser in context.registry.list_parsers():
        try:
            matched = parser.matches(text)
        except Exception as exc:
            logger.exception("IRC message parser {} predicate failed: {}", parser.id, exc)
            continue
        if not matched:
            continue

        ctx = MessageContext(channel=channel, sender=sender, content=text, sink=sink, connection=context)
        try:
            await _invoke(parser.handler, ctx)
        except Exception as exc:
            logger.exception("IRC message parser {} failed: {}", parser.id, exc)
            return False
        return True
    return False
