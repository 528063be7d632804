"""Text helpers shared across modules."""
from __future__ import annotations

import regex

_WHITESPACE = regex.compile(r"\s+")

KIB = 1024
MIB = 1024 * 1024
GIB = 1024 * 1024 * 1024


def to_text(data: str | bytes) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="surrogatepass")
    return data


def utf8_size(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogatepass"))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def context_window(text: str, index: int, before: int = 50, after: int = 100) -> str:
    """Return the display snippet around ``index``.

    The window runs from ``before`` characters ahead of the match start to
    ``after`` characters past it.
    """

    start = max(0, index - before)
    end = min(len(text), index + after)
    return collapse_whitespace(text[start:end])


def format_bytes(size: int) -> str:
    if size == 0:
        return "0 B"
    if size < KIB:
        return f"{size} B"
    if size < MIB:
        return f"{size / KIB:.1f} KB"
    if size < GIB:
        return f"{size / MIB:.1f} MB"
    return f"{size / GIB:.1f} GB"


__all__ = [
    "KIB",
    "MIB",
    "GIB",
    "to_text",
    "utf8_size",
    "collapse_whitespace",
    "context_window",
    "format_bytes",
]
