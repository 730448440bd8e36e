from __future__ import annotations
"""
Retrieval branches for student search.

Two independent retrievers feed the fuser:
- semantic: synonym-expanded query -> embedding -> nearest neighbours in Chroma
- keyword: exhaustive substring scan over a bounded snapshot of the collection

Both return a BranchResult.  Any SearchError raised by a collaborator is
logged and turned into an empty branch; it never escapes a retriever.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
from loguru import logger

from .config import (
    KEYWORD_FETCH_LIMIT,
    KW_CONTENT_WEIGHT,
    KW_NAME_WEIGHT,
    KW_OCCURRENCE_CAP,
    KW_OCCURRENCE_WEIGHT,
    KW_PLACEMENTS_WEIGHT,
    NOT_AVAILABLE,
    PLACEMENTS_FIELD,
    SYNONYM_MAP,
    UNKNOWN_NAME,
)
from .embedding import Embedder
from .errors import SearchError
from .pipeline_types import KEYWORD, SEMANTIC, BranchResult, Candidate
from .query_enhance import enhance_query
from .text_utils import contains_ci, count_occurrences
from .vector_client import VectorIndex


# =============================================================================
# Scoring primitives
# =============================================================================

def distance_to_similarity(distance: float) -> float:
    """
    Map a cosine-style distance to a similarity with 1 - d^2/2.

    Not clamped: d=0 -> 1.0, d=2 -> -1.0.
    """
    return 1.0 - (distance * distance) / 2.0


def distances_to_similarities(distances: Sequence[float]) -> np.ndarray:
    arr = np.asarray(distances, dtype="float64")
    return 1.0 - np.square(arr) / 2.0


def keyword_score(query: str, content: str, metadata: Mapping[str, str]) -> float:
    """
    Additive lexical score of one record for ``query``.

    +2.0 query in content, plus 0.5 per occurrence (capped at 2.0)
    +3.0 query in placements
    +4.0 query in name
    """
    score = 0.0
    if contains_ci(content, query):
        score += KW_CONTENT_WEIGHT
        occurrences = count_occurrences(content, query)
        score += min(occurrences * KW_OCCURRENCE_WEIGHT, KW_OCCURRENCE_CAP)
    if contains_ci(metadata.get(PLACEMENTS_FIELD), query):
        score += KW_PLACEMENTS_WEIGHT
    if contains_ci(metadata.get("name"), query):
        score += KW_NAME_WEIGHT
    return score


# =============================================================================
# Record -> Candidate
# =============================================================================

def _metadata_dict(raw: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not raw:
        return {}
    return {str(k): str(v) for k, v in raw.items() if v is not None}


def build_candidate(
    record_id: str,
    document: Optional[str],
    raw_metadata: Optional[Mapping[str, Any]],
    origin: str,
    **scores: Optional[float],
) -> Candidate:
    """
    Populate a Candidate from index fields, defaulting absent ones to sentinels.
    Metadata is wrapped read-only so the candidate stays immutable.
    """
    metadata = _metadata_dict(raw_metadata)
    return Candidate(
        id=str(record_id),
        name=metadata.get("name") or UNKNOWN_NAME,
        city=metadata.get("city") or NOT_AVAILABLE,
        country=metadata.get("country") or NOT_AVAILABLE,
        placements=metadata.get(PLACEMENTS_FIELD) or NOT_AVAILABLE,
        content=document or "",
        metadata=MappingProxyType(metadata),
        origin=origin,  # type: ignore[arg-type]
        **scores,
    )


# =============================================================================
# Retrievers
# =============================================================================

class SemanticRetriever:
    def __init__(
        self,
        index: VectorIndex,
        embedder: Embedder,
        synonyms: Mapping[str, str] = SYNONYM_MAP,
    ) -> None:
        self.index = index
        self.embedder = embedder
        self.synonyms = synonyms

    def retrieve(self, query: str, collection: str, k: int) -> BranchResult:
        if k < 1:
            return BranchResult(branch=SEMANTIC)
        try:
            # resolve the collection before touching the model
            info = self.index.get_collection(collection)
            enhanced = enhance_query(query, self.synonyms)
            vector = self.embedder.embed(enhanced)
            res = self.index.query(info.id, vector, k)
        except SearchError as e:
            logger.warning("Semantic search error: {}", e)
            return BranchResult.failed(SEMANTIC, e)

        out: List[Candidate] = []
        for rid, dist, doc, meta in zip(res.ids, res.distances, res.documents, res.metadatas):
            out.append(
                build_candidate(
                    rid,
                    doc,
                    meta,
                    SEMANTIC,
                    semantic_similarity=distance_to_similarity(dist),
                    distance=float(dist),
                )
            )
        logger.debug("semantic: enhanced='{}' -> {} hits", enhanced, len(out))
        return BranchResult(branch=SEMANTIC, candidates=out)


class KeywordRetriever:
    def __init__(self, index: VectorIndex, fetch_limit: int = KEYWORD_FETCH_LIMIT) -> None:
        self.index = index
        self.fetch_limit = fetch_limit

    def retrieve(self, query: str, collection: str, k: int) -> BranchResult:
        if k < 1:
            return BranchResult(branch=KEYWORD)
        try:
            info = self.index.get_collection(collection)
            snap = self.index.get_all(info.id, self.fetch_limit)
        except SearchError as e:
            logger.warning("Keyword search error: {}", e)
            return BranchResult.failed(KEYWORD, e)

        if len(snap) >= self.fetch_limit:
            logger.info("Keyword scan hit the fetch ceiling ({} records); later records are not searched", self.fetch_limit)

        scored: List[Candidate] = []
        for i, rid in enumerate(snap.ids):
            content = snap.documents[i] or ""
            metadata = _metadata_dict(snap.metadatas[i])
            score = keyword_score(query, content, metadata)
            if score > 0:
                scored.append(build_candidate(rid, content, metadata, KEYWORD, keyword_score=score))

        # sorted() is stable: equal scores keep snapshot order
        scored = sorted(scored, key=lambda c: -(c.keyword_score or 0.0))
        return BranchResult(branch=KEYWORD, candidates=scored[:k])


# =============================================================================
# Functional entry points
# =============================================================================

def semantic_search(
    query: str,
    collection: str,
    k: int,
    index: VectorIndex,
    embedder: Embedder,
) -> List[Candidate]:
    """Semantic hits for ``query``; empty on any branch failure."""
    return SemanticRetriever(index, embedder).retrieve(query, collection, k).candidates


def keyword_search(query: str, collection: str, k: int, index: VectorIndex) -> List[Candidate]:
    """Keyword hits sorted by score, truncated to ``k``; empty on any branch failure."""
    return KeywordRetriever(index).retrieve(query, collection, k).candidates
