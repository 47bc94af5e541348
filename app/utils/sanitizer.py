"""Text cleanup helpers for search input and stored records.

Provides:
- strip_html(): Remove HTML tags from stored overviews.
- clean_search_text(): Normalize user search text before it reaches a backend.
"""
from __future__ import annotations

import re

MAX_SEARCH_LENGTH = 200


def strip_html(text: str | None) -> str:
    """Remove all HTML tags from a string.

    Some ingested overviews carry markup copied from upstream sites.

    Args:
        text: Raw string potentially containing HTML tags.

    Returns:
        Clean text with all HTML tags removed and whitespace normalized.

    Examples:
        >>> strip_html("<p>First <b>love</b></p>")
        'First love'
        >>> strip_html(None)
        ''
    """
    if not text:
        return ""
    clean = re.sub(r"<[^>]+>", "", text)
    clean = re.sub(r"\s+", " ", clean)
    return clean.strip()


def clean_search_text(text: str | None) -> str | None:
    """Normalize free-text search input.

    Collapses internal whitespace, strips the ends and truncates to
    MAX_SEARCH_LENGTH characters.

    Args:
        text: Raw query-string value.

    Returns:
        The cleaned text, or None when nothing meaningful remains.
    """
    if text is None:
        return None
    clean = re.sub(r"\s+", " ", str(text)).strip()
    if not clean:
        return None
    return clean[:MAX_SEARCH_LENGTH]
