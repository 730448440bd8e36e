from typing import List, Optional


def contains_ci(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test; a missing haystack never matches."""
    if not haystack:
        return False
    return needle.lower() in haystack.lower()


def count_occurrences(text: str, needle: str) -> int:
    """
    Count non-overlapping, case-insensitive occurrences of ``needle``.
    The needle is matched literally, so 'c++' or '.net' are safe queries.
      count_occurrences('Google, google', 'GOOGLE') -> 2
    """
    if not text or not needle:
        return 0
    return text.lower().count(needle.lower())


def query_tokens(query: str, min_len: int = 1) -> List[str]:
    """Lower-cased whitespace tokens of ``query`` at least ``min_len`` chars long."""
    return [t for t in (query or "").lower().split() if len(t) >= min_len]
