"""
Synonym based query expansion applied before a query is embedded.

Only the semantic branch sees the expanded text; keyword matching and the
fusion bonuses always use the raw query.
"""

from __future__ import annotations

from typing import Mapping

from .config import SYNONYM_MAP


def enhance_query(query: str, synonyms: Mapping[str, str] = SYNONYM_MAP) -> str:
    """
    Lower-case ``query`` and append the expansion of every synonym key found in it.

    Keys are checked in table order against the text built so far, so an
    expansion can switch on a later key:
      'google' -> 'google Google tech company software engineer
                   software development programming coding'
    Expansions are appended verbatim and never removed.
    """
    enhanced = (query or "").lower()
    for key, expansion in synonyms.items():
        if key.lower() in enhanced:
            enhanced += " " + expansion
    return enhanced
