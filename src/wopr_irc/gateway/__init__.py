"""Gateway: dispatch registry, handler contexts, and the inbound pipeline."""

from wopr_irc.gateway.context import CommandContext, ConnectionContext, MessageContext
from wopr_irc.gateway.dispatch import try_command, try_parsers
from wopr_irc.gateway.pipeline import InboundPipeline
from wopr_irc.gateway.registry import Command, DispatchRegistry, MessageParser

__all__ = [
    "Command",
    "CommandContext",
    "ConnectionContext",
    "DispatchRegistry",
    "InboundPipeline",
    "MessageContext",
    "MessageParser",
    "try_command",
    "try_parsers",
]
