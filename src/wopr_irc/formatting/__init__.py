"""IRC formatting removal and outbound message splitting."""

from wopr_irc.formatting.irc_message_split import split_message
from wopr_irc.formatting.strip import strip_formatting

__all__ = ["split_message", "strip_formatting"]
