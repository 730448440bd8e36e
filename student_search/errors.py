"""Exception hierarchy for the search pipeline.

Branch-level failures are caught by the retrievers and reported through
``BranchResult``; only ``CollectionNotFound`` on both branches reaches the
caller of ``hybrid_search``.
"""

from __future__ import annotations

__all__ = [
    "SearchError",
    "CollectionNotFound",
    "ProviderUnavailable",
    "MalformedResponse",
]


class SearchError(RuntimeError):
    """Base exception for retrieval failures."""


class CollectionNotFound(SearchError):
    """Raised when the named collection is absent from the vector index."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Collection "{name}" not found.')
        self.name = name


class ProviderUnavailable(SearchError):
    """Raised when the embedding model or the vector index cannot be reached."""


class MalformedResponse(SearchError):
    """Raised when an index response lacks the expected arrays or fields."""
