"""Protocol adapters. IRC is the only one."""

from wopr_irc.adapters.irc import IRCPlugin

__all__ = ["IRCPlugin"]
