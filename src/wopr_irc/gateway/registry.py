"""Command and message-parser registry shared by every connection cycle."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from loguru import logger

if TYPE_CHECKING:
    from wopr_irc.gateway.context import CommandContext, MessageContext

CommandHandler = Callable[["CommandContext"], Union[Awaitable[Any], Any]]
ParserHandler = Callable[["MessageContext"], Union[Awaitable[Any], Any]]
Pattern = Union[re.Pattern[str], str, Callable[[str], bool]]


@dataclass
class Command:
    """Named command invoked as ``<prefix><name> args...``."""

    name: str
    handler: CommandHandler
    description: str = ""


@dataclass
class MessageParser:
    """Free-text handler selected by regex or predicate."""

    id: str
    pattern: Pattern
    handler: ParserHandler
    _compiled: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.pattern, str):
            self._compiled = re.compile(self.pattern)
        elif isinstance(self.pattern, re.Pattern):
            self._compiled = self.pattern

    def matches(self, text: str) -> bool:
        """Regex search or predicate call. A raising predicate propagates."""
        if self._compiled is not None:
            return self._compiled.search(text) is not None
        return bool(self.pattern(text))


class DispatchRegistry:
    """Commands keyed by case-folded name; parsers in insertion order keyed by id."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}
        self._parsers: dict[str, MessageParser] = {}

    def register_command(self, command: Command) -> None:
        """Add or replace a command (names are case-insensitive)."""
        key = command.name.casefold()
        if key != command.name:
            command = Command(name=key, handler=command.handler, description=command.description)
        replaced = key in self._commands
        self._commands[key] = command
        logger.info("{} IRC command: {}", "Replaced" if replaced else "Registered", key)

    def unregister_command(self, name: str) -> None:
        if self._commands.pop(name.casefold(), None) is not None:
            logger.info("Unregistered IRC command: {}", name.casefold())

    def get_command(self, name: str) -> Command | None:
        return self._commands.get(name.casefold())

    def list_commands(self) -> list[Command]:
        return list(self._commands.values())

    def add_parser(self, parser: MessageParser) -> None:
        """Add or replace a parser. Replacing keeps the parser's original position."""
        replaced = parser.id in self._parsers
        self._parsers[parser.id] = parser
        logger.info("{} IRC message parser: {}", "Replaced" if replaced else "Added", parser.id)

    def remove_parser(self, parser_id: str) -> None:
        if self._parsers.pop(parser_id, None) is not None:
            logger.info("Removed IRC message parser: {}", parser_id)

    def list_parsers(self) -> list[MessageParser]:
        return list(self._parsers.values())

    def clear(self) -> None:
        """Drop every command and parser."""
        self._commands.clear()
        self._parsers.clear()
        logger.debug("IRC dispatch registry cleared")
