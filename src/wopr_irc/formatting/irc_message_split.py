"""Split long messages for IRC (512 byte line limit) at word boundaries."""

from __future__ import annotations

import re

_LINE_BREAK = re.compile(r"\r?\n")


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _byte_safe_index(text: str, max_bytes: int) -> int:
    """Return the number of characters of text that fit in max_bytes (at least 1).

    Truncating the encoded prefix and decoding with errors="ignore" drops a
    trailing partial sequence, so the cut always lands on a code point boundary.
    """
    prefix = text.encode("utf-8")[:max_bytes]
    return max(1, len(prefix.decode("utf-8", errors="ignore")))


def _find_split_point(text: str, max_bytes: int) -> int:
    """Best split index within max_bytes, preferring the last space past the halfway mark."""
    end = len(text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore"))
    if end == 0:
        # First character alone is wider than the budget
        return 1

    last_space = text.rfind(" ", 0, end)
    if last_space > end * 0.5:
        return last_space + 1
    return end


def split_message(content: str, max_bytes: int) -> list[str]:
    """Split content into chunks of at most max_bytes UTF-8 bytes.

    Each input line is split separately; CR/LF separators are dropped. Cuts
    prefer word boundaries and never fall inside a multi-byte character.
    Whitespace at a cut is trimmed and empty chunks are dropped. A budget of
    zero or less disables splitting.
    """
    if not content:
        return []
    if max_bytes <= 0:
        return [content]

    chunks: list[str] = []
    for line in _LINE_BREAK.split(content):
        remaining = line
        while remaining:
            if _byte_len(remaining) <= max_bytes:
                chunks.append(remaining)
                break

            split_at = _find_split_point(remaining, max_bytes)
            head = remaining[:split_at].rstrip()
            rest = remaining[split_at:].lstrip()

            if len(rest) >= len(remaining):
                # No progress: hard cut at the byte-safe boundary
                split_at = _byte_safe_index(remaining, max_bytes)
                head = remaining[:split_at]
                rest = remaining[split_at:]

            chunks.append(head)
            remaining = rest

    return [chunk for chunk in chunks if chunk]
