from __future__ import annotations
"""
Fusion of semantic and keyword candidates into one ranked list.

Dedup is by profile id with semantic hits inserted first, so a profile found
by both branches keeps its semantic fields.  Each branch is normalised onto
the hybrid scale separately:

  semantic: 0.6 * similarity + exact-match bonuses (content/placements/name)
  keyword:  0.7 * min(score / 10, 1) + 0.1 per query token in content (max 0.3)

Hybrid scores are not bounded to [0, 1].
"""

from typing import Dict, Iterable, List

from .config import (
    KEYWORD_NORMALIZER,
    KEYWORD_TOKEN_BONUS,
    KEYWORD_TOKEN_BONUS_CAP,
    KEYWORD_TOKEN_MIN_LEN,
    KEYWORD_WEIGHT,
    PLACEMENTS_FIELD,
    SEMANTIC_CONTENT_BONUS,
    SEMANTIC_NAME_BONUS,
    SEMANTIC_PLACEMENTS_BONUS,
    SEMANTIC_WEIGHT,
)
from .pipeline_types import SEMANTIC, Candidate, RankedResult
from .text_utils import contains_ci, query_tokens


def dedupe_candidates(
    semantic: Iterable[Candidate],
    keyword: Iterable[Candidate],
) -> List[Candidate]:
    """Merge both branches by id; first occurrence wins, semantic goes first."""
    merged: Dict[str, Candidate] = {}
    for c in semantic:
        merged.setdefault(c.id, c)
    for c in keyword:
        merged.setdefault(c.id, c)
    return list(merged.values())


def _semantic_hybrid(c: Candidate, query: str) -> float:
    score = SEMANTIC_WEIGHT * (c.semantic_similarity or 0.0)
    if contains_ci(c.content, query):
        score += SEMANTIC_CONTENT_BONUS
    if contains_ci(c.metadata.get(PLACEMENTS_FIELD), query):
        score += SEMANTIC_PLACEMENTS_BONUS
    if contains_ci(c.metadata.get("name"), query):
        score += SEMANTIC_NAME_BONUS
    return score


def _keyword_hybrid(c: Candidate, query: str) -> float:
    normalized = min((c.keyword_score or 0.0) / KEYWORD_NORMALIZER, 1.0)
    score = KEYWORD_WEIGHT * normalized
    content = c.content.lower()
    token_bonus = sum(
        KEYWORD_TOKEN_BONUS
        for tok in query_tokens(query, min_len=KEYWORD_TOKEN_MIN_LEN)
        if tok in content
    )
    return score + min(token_bonus, KEYWORD_TOKEN_BONUS_CAP)


def hybrid_score(c: Candidate, query: str) -> float:
    if c.origin == SEMANTIC:
        return _semantic_hybrid(c, query)
    return _keyword_hybrid(c, query)


def is_exact_match(c: Candidate, query: str) -> bool:
    return contains_ci(c.content, query) or contains_ci(c.metadata.get(PLACEMENTS_FIELD), query)


def fuse_results(
    semantic: Iterable[Candidate],
    keyword: Iterable[Candidate],
    query: str,
    limit: int,
) -> List[RankedResult]:
    """Dedup, score, stable-sort descending and truncate to ``limit``."""
    merged = dedupe_candidates(semantic, keyword)
    scored = [
        RankedResult(candidate=c, hybrid_score=hybrid_score(c, query), exact_match=is_exact_match(c, query))
        for c in merged
    ]
    scored = sorted(scored, key=lambda r: -r.hybrid_score)
    return scored[: max(limit, 0)]
