from __future__ import annotations
"""
Mapping utilities to convert ranked results into API responses and tables.

Keeps the pydantic schema (SearchHit / SearchResponse) and the pandas export
used by batch mode in one place so both surfaces expose the same fields.
"""

from typing import List, Sequence

import pandas as pd
from loguru import logger

from .config import SearchHit, SearchResponse
from .formatting import build_snippet
from .pipeline_types import RankedResult

EXPORT_COLUMNS = [
    "query",
    "rank",
    "id",
    "name",
    "city",
    "country",
    "placements",
    "origin",
    "hybrid_score",
    "semantic_similarity",
    "keyword_score",
    "exact_match",
]


def to_search_hit(result: RankedResult, query: str) -> SearchHit:
    c = result.candidate
    return SearchHit(
        id=c.id,
        name=c.name,
        city=c.city,
        country=c.country,
        placements=c.placements,
        origin=c.origin,
        hybrid_score=float(result.hybrid_score),
        semantic_similarity=c.semantic_similarity,
        keyword_score=c.keyword_score,
        exact_match=bool(result.exact_match),
        snippet=build_snippet(c.content, query),
    )


def map_results_to_response(
    results: Sequence[RankedResult],
    query: str,
    collection: str,
) -> SearchResponse:
    """Convert ranked results into a SearchResponse, keeping rank order."""
    hits: List[SearchHit] = [to_search_hit(r, query) for r in results]
    logger.info("Mapped {} results into API schema", len(hits))
    return SearchResponse(query=query, collection=collection, results=hits)


def results_to_frame(results: Sequence[RankedResult], query: str) -> pd.DataFrame:
    """One row per result (rank starts at 1); columns as EXPORT_COLUMNS."""
    rows = []
    for rank, r in enumerate(results, start=1):
        c = r.candidate
        rows.append(
            {
                "query": query,
                "rank": rank,
                "id": c.id,
                "name": c.name,
                "city": c.city,
                "country": c.country,
                "placements": c.placements,
                "origin": c.origin,
                "hybrid_score": r.hybrid_score,
                "semantic_similarity": c.semantic_similarity,
                "keyword_score": c.keyword_score,
                "exact_match": r.exact_match,
            }
        )
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)
