"""Normalisation helpers applied to comment text before it is sent for scoring.

Comprehend rejects any document larger than 5000 bytes of UTF-8. Emoji and
non-Latin scripts take several bytes per character, so the limit has to be
enforced on the encoded form rather than on ``len(text)``.
"""

from __future__ import annotations

MAX_TEXT_BYTES = 5000


def byte_length(text: str) -> int:
    """Return the UTF-8 encoded size of ``text``."""
    return len(text.encode("utf-8", errors="surrogatepass"))


def is_empty(text: str | None) -> bool:
    return not text or not text.strip()


def preprocess_comment(text: str | None, max_bytes: int = MAX_TEXT_BYTES) -> str:
    """Strip surrounding whitespace and truncate to ``max_bytes`` of UTF-8.

    Whitespace-only input collapses to ``""``, which callers treat as "skip".
    Characters are dropped from the end one at a time, so a multi-byte
    character is never split.
    """
    if is_empty(text):
        return ""

    trimmed = text.strip()
    size = byte_length(trimmed)
    if size <= max_bytes:
        return trimmed

    end = len(trimmed)
    while size > max_bytes and end > 0:
        end -= 1
        size -= byte_length(trimmed[end])
    return trimmed[:end]
