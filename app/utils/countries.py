"""Canonical alias table for country filters.

Stored records spell countries either as ISO-ish codes ("KR", "kr") or as
display names ("South Korea"). A country filter must match both spellings,
so every filter value is expanded to its full alias group before it reaches
a backend.
"""
from __future__ import annotations

# code → every accepted spelling (display name first)
COUNTRY_ALIASES: dict[str, tuple[str, ...]] = {
    "kr": ("South Korea", "Korea", "Republic of Korea", "Korea, Republic of"),
    "jp": ("Japan",),
    "cn": ("China", "People's Republic of China"),
    "tw": ("Taiwan",),
    "hk": ("Hong Kong",),
    "th": ("Thailand",),
    "ph": ("Philippines",),
    "us": ("United States", "United States of America", "USA"),
}

_GROUPS: dict[str, frozenset[str]] = {}
for _code, _names in COUNTRY_ALIASES.items():
    _group = frozenset({_code, _code.upper(), *_names})
    for _spelling in _group:
        _GROUPS[_spelling.casefold()] = _group


def country_aliases(value: str) -> frozenset[str]:
    """Return every spelling equivalent to ``value``.

    Unknown countries map to a group containing only the stripped value.

    Examples:
        >>> sorted(country_aliases("kr"))[:3]
        ['KR', 'Korea', 'Korea, Republic of']
    """
    key = value.strip()
    return _GROUPS.get(key.casefold(), frozenset({key}))


def display_country(value: str) -> str:
    """Return the display name for a code, or ``value`` unchanged."""
    names = COUNTRY_ALIASES.get(value.strip().lower())
    return names[0] if names else value
