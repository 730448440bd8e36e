# student_search/utils/text_clean.py
from __future__ import annotations

from typing import Optional

from ..config import MAX_QUERY_CHARS


def clean_query_text(q: Optional[str], max_len: int = MAX_QUERY_CHARS) -> str:
    """
    Boundary clean for user supplied queries (API + CLI):
    - None -> ''
    - strip surrounding whitespace (inner spacing is kept, it matters for substring matches)
    - hard cap on length
    """
    q = "" if q is None else str(q)
    q = q.strip()
    if len(q) > max_len:
        q = q[:max_len].rstrip()
    return q
