"""String sanitising helpers used by request input filtering."""

from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)
_SLASH_RE = re.compile(r"\\(.?)", re.DOTALL)

# Removed outright by strip_data
_UNSAFE_CHARS = "'\"`\t\n\r,/;:@[]{}=)(*&^%$<>?!"
_UNSAFE_TABLE = str.maketrans("", "", _UNSAFE_CHARS)


def strip_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


def strip_slashes(text: str) -> str:
    """Un-quote a backslash-escaped string (``\\'`` -> ``'``, ``\\\\`` -> ``\\``)."""
    return _SLASH_RE.sub(r"\1", text)


def escape_html(text: str) -> str:
    """HTML-escape with both quote styles, single quotes as ``&#039;``."""
    return html.escape(text, quote=True).replace("&#x27;", "&#039;")


def text_filter(text: str, max_length: int = 25000, strip: bool = False) -> str:
    """Make user input safe to echo into HTML.

    The text is truncated to ``max_length`` characters, optionally stripped of
    tags, trimmed, un-slashed and escaped; newlines then become ``<br>``.
    """
    text = text[:max_length]
    # "0" counts as empty input
    if not text or text == "0":
        return ""
    if strip:
        text = strip_tags(text)
    text = strip_slashes(text.strip())
    text = escape_html(text)
    return text.replace("\r\n", "<br>").replace("\n", "<br>")


def strip_data(text: str) -> str:
    """Reduce free text to a search-safe token string.

    Tags and slashes are stripped, punctuation that could break a query is
    dropped and ``-``, ``+`` and ``#`` are backslash-escaped.
    """
    text = strip_tags(strip_slashes(text)).strip()
    text = text.translate(_UNSAFE_TABLE)
    for char in "-+#":
        text = text.replace(char, "\\" + char)
    return text
