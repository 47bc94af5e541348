"""Accessors for raw catalog records.

Catalog rows come from several ingestion generations with different field
names (``rating`` vs ``vote_average``, ``poster`` vs ``poster_path``) and
different shapes (genres as an array or a comma-joined string). Everything
that reads a raw record goes through these helpers so the fallbacks live in
one place.
"""
from __future__ import annotations

import re
from typing import Any, Iterable

_YEAR_RE = re.compile(r"^(\d{4})")

RATING_FIELDS = ("rating", "vote_average")
YEAR_FIELDS = ("year", "release_year")
DATE_FIELDS = ("release_date", "first_air_date")
GENRE_FIELDS = ("genres", "genre")


def first_present(record: dict[str, Any], *fields: str, default: Any = None) -> Any:
    """Return the first field value that is neither missing, None nor empty."""
    for field in fields:
        value = record.get(field)
        if value is None or value == "" or value == [] or value == {}:
            continue
        return value
    return default


def split_genres(value: Any) -> list[str]:
    """Canonicalize a stored genre value into a list of trimmed names.

    Accepts a native list (elements may be strings or ``{"name": ...}``
    objects) or a comma-joined string. Order is preserved and blanks
    are dropped.

    Examples:
        >>> split_genres("Romance, Drama")
        ['Romance', 'Drama']
        >>> split_genres(["Romance", {"id": 18, "name": "Drama"}])
        ['Romance', 'Drama']
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        parts = value
    else:
        return []

    genres = []
    for part in parts:
        if isinstance(part, dict):
            part = part.get("name")
        if part is None:
            continue
        name = str(part).strip()
        if name:
            genres.append(name)
    return genres


def record_genres(record: dict[str, Any]) -> list[str]:
    return split_genres(first_present(record, *GENRE_FIELDS))


def to_float(value: Any, default: float | None = None) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_int(value: Any, default: int | None = None) -> int | None:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        number = to_float(value)
        return int(number) if number is not None else default


def record_rating(record: dict[str, Any]) -> float | None:
    """Stored rating in the source scale, or None when absent."""
    return to_float(first_present(record, *RATING_FIELDS))


def record_year(record: dict[str, Any]) -> int | None:
    """Release year, falling back to the prefix of a release date."""
    year = to_int(first_present(record, *YEAR_FIELDS))
    if year:
        return year
    date = first_present(record, *DATE_FIELDS)
    if isinstance(date, str):
        match = _YEAR_RE.match(date)
        if match:
            return int(match.group(1))
    return None


def record_id(record: dict[str, Any]) -> str:
    value = record.get("id")
    return "" if value is None else str(value)


def record_text(record: dict[str, Any], field: str) -> str:
    value = record.get(field)
    return "" if value is None else str(value)


def unwrap_results(value: Any, *keys: str) -> list[Any]:
    """Return a list whether stored plainly or wrapped as ``{"results": [...]}``."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for key in keys or ("results",):
            inner = value.get(key)
            if isinstance(inner, list):
                return inner
    return []
