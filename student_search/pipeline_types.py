"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Mapping, Optional

from .errors import SearchError

SEMANTIC = "semantic"
KEYWORD = "keyword"

Origin = Literal["semantic", "keyword"]


@dataclass(frozen=True)
class Candidate:
    """A student profile surfaced by one retrieval branch.

    ``semantic_similarity``/``distance`` are set for semantic hits,
    ``keyword_score`` for keyword hits.
    """

    id: str
    name: str
    city: str
    country: str
    placements: str
    content: str
    metadata: Mapping[str, str]  # read-only view, see retrieval.build_candidate
    origin: Origin
    semantic_similarity: Optional[float] = None
    distance: Optional[float] = None
    keyword_score: Optional[float] = None


@dataclass(frozen=True)
class RankedResult:
    """A fused candidate with its final ranking key."""

    candidate: Candidate
    hybrid_score: float
    exact_match: bool

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def origin(self) -> Origin:
        return self.candidate.origin

    @property
    def semantic_similarity(self) -> Optional[float]:
        return self.candidate.semantic_similarity

    @property
    def keyword_score(self) -> Optional[float]:
        return self.candidate.keyword_score


@dataclass
class BranchResult:
    """Outcome of one retrieval branch: candidates, or the error that emptied it."""

    branch: Origin
    candidates: List[Candidate] = field(default_factory=list)
    error: Optional[SearchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, branch: Origin, error: SearchError) -> "BranchResult":
        return cls(branch=branch, candidates=[], error=error)
