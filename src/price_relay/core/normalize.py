"""Query normalization and name matching."""

from __future__ import annotations


def normalize(text: str) -> str:
    """Lower-case ``text`` and drop everything that is not a letter or digit.

    >>> normalize("Portal 2!!")
    'portal2'
    """
    return "".join(ch for ch in text.lower() if ch.isalnum())


def starts_with_query(name: str, query: str) -> bool:
    """Case-insensitive raw prefix test used when picking a candidate."""
    return name.strip().casefold().startswith(query.strip().casefold())


def normalized_prefix_match(name: str, key: str) -> bool:
    """True when the normalized ``name`` starts with the normalized query ``key``."""
    return normalize(name).startswith(key)
