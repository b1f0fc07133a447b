"""Strip IRC in-band formatting codes from inbound text."""

from __future__ import annotations

import re

# IRC control codes
BOLD = "\x02"
COLOR = "\x03"
RESET = "\x0F"
MONOSPACE = "\x11"
REVERSE = "\x16"
ITALIC = "\x1D"
STRIKETHROUGH = "\x1E"
UNDERLINE = "\x1F"

# Color takes an optional 1-2 digit foreground and optional ",NN" background
_FORMAT_PATTERN = re.compile(
    "|".join(
        [
            re.escape(BOLD),
            re.escape(ITALIC),
            re.escape(UNDERLINE),
            re.escape(STRIKETHROUGH),
            re.escape(MONOSPACE),
            re.escape(COLOR) + r"(?:\d{1,2}(?:,\d{1,2})?)?",
            re.escape(REVERSE),
            re.escape(RESET),
        ]
    )
)


def strip_formatting(content: str) -> str:
    """Remove bold/italic/underline/strikethrough/monospace/reverse/reset and color codes."""
    if not content:
        return content
    return _FORMAT_PATTERN.sub("", content)
