from __future__ import annotations
"""
Hybrid search entry point.

raw query -> {semantic branch, keyword branch} in parallel -> fuse -> top ``limit``

The branches are forked onto a two-worker thread pool and joined before
fusion.  A failing branch contributes an empty list; it never cancels the
other one.  The only error that reaches the caller is CollectionNotFound,
and only when both branches report it.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Mapping, Optional, Tuple

from loguru import logger

from .config import (
    DEFAULT_COLLECTION,
    DEFAULT_LIMIT,
    KEYWORD_FETCH_LIMIT,
    OVERFETCH_FACTOR,
    SYNONYM_MAP,
)
from .embedding import Embedder
from .errors import CollectionNotFound, ProviderUnavailable
from .fusion import fuse_results
from .pipeline_types import KEYWORD, SEMANTIC, BranchResult, RankedResult
from .retrieval import KeywordRetriever, SemanticRetriever
from .vector_client import VectorIndex


def _join(branch: str, future: "Future[BranchResult]") -> BranchResult:
    try:
        return future.result()
    except Exception as e:
        logger.exception("{} branch crashed: {}", branch, e)
        return BranchResult.failed(branch, ProviderUnavailable(str(e)))  # type: ignore[arg-type]


class HybridSearcher:
    """Owns the two retrievers; every ``search`` call keeps its own state."""

    def __init__(
        self,
        index: VectorIndex,
        embedder: Embedder,
        synonyms: Mapping[str, str] = SYNONYM_MAP,
        fetch_limit: int = KEYWORD_FETCH_LIMIT,
        overfetch: int = OVERFETCH_FACTOR,
    ) -> None:
        self.semantic = SemanticRetriever(index, embedder, synonyms)
        self.keyword = KeywordRetriever(index, fetch_limit)
        self.overfetch = overfetch

    def run_branches(self, query: str, collection: str, k: int) -> Tuple[BranchResult, BranchResult]:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="hybrid") as executor:
            sem_future = executor.submit(self.semantic.retrieve, query, collection, k)
            kw_future = executor.submit(self.keyword.retrieve, query, collection, k)
            return _join(SEMANTIC, sem_future), _join(KEYWORD, kw_future)

    def search(
        self,
        query: str,
        collection: str = DEFAULT_COLLECTION,
        limit: int = DEFAULT_LIMIT,
    ) -> List[RankedResult]:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if not query or not query.strip():
            return []

        sem, kw = self.run_branches(query, collection, limit * self.overfetch)
        logger.info(
            "hybrid_search: query='{}' collection='{}' semanticN={} keywordN={}",
            query, collection, len(sem.candidates), len(kw.candidates),
        )

        if isinstance(sem.error, CollectionNotFound) and isinstance(kw.error, CollectionNotFound):
            raise CollectionNotFound(collection)

        fused = fuse_results(sem.candidates, kw.candidates, query, limit)
        logger.info("hybrid_search: {} fused results", len(fused))
        return fused


def hybrid_search(
    query: str,
    collection: str = DEFAULT_COLLECTION,
    limit: int = DEFAULT_LIMIT,
    searcher: Optional[HybridSearcher] = None,
) -> List[RankedResult]:
    """Run a hybrid query with the process-wide searcher unless one is given."""
    if searcher is None:
        from ._singletons import get_searcher
        searcher = get_searcher()
    return searcher.search(query, collection, limit)
