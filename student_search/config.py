from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

LOG_DIR = PROJECT_ROOT / "logs"
MODELS_DIR = PROJECT_ROOT / "models"  # for HF cache if you want to mount it


# ---------------------------
# Vector store (Chroma HTTP API v2)
# ---------------------------

CHROMA_HOST = os.getenv("CHROMA_HOST", "http://localhost:8000")
CHROMA_TENANT = os.getenv("CHROMA_TENANT", "default_tenant")
CHROMA_DATABASE = os.getenv("CHROMA_DATABASE", "default_database")
DEFAULT_COLLECTION = os.getenv("CHROMA_COLLECTION", "dtu-students-proper")

HTTP_CONNECT_TIMEOUT = float(os.getenv("CHROMA_CONNECT_TIMEOUT", "5.0"))
HTTP_READ_TIMEOUT = float(os.getenv("CHROMA_READ_TIMEOUT", "30.0"))
HTTP_USER_AGENT = "student-search/1.0"


# ---------------------------
# Model names (pinned)
# ---------------------------

# Must match the model the collection was ingested with
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-mpnet-base-v2")

# HF_HUB_OFFLINE can be set to "1" by the runtime after the first pull
HF_ENV_VARS = {
    "TRANSFORMERS_CACHE": str(MODELS_DIR),
}


# ---------------------------
# Retrieval settings
# ---------------------------

DEFAULT_LIMIT = 10
OVERFETCH_FACTOR = 2          # each branch asks for limit * factor
KEYWORD_FETCH_LIMIT = 1000    # exhaustive keyword scan ceiling

MAX_QUERY_CHARS = 2_000


# ---------------------------
# Keyword scoring
# ---------------------------

KW_CONTENT_WEIGHT = 2.0
KW_OCCURRENCE_WEIGHT = 0.5
KW_OCCURRENCE_CAP = 2.0
KW_PLACEMENTS_WEIGHT = 3.0
KW_NAME_WEIGHT = 4.0


# ---------------------------
# Hybrid fusion
# ---------------------------

SEMANTIC_WEIGHT = 0.6
SEMANTIC_CONTENT_BONUS = 0.3
SEMANTIC_PLACEMENTS_BONUS = 0.4
SEMANTIC_NAME_BONUS = 0.5

KEYWORD_WEIGHT = 0.7
KEYWORD_NORMALIZER = 10.0
KEYWORD_TOKEN_BONUS = 0.1
KEYWORD_TOKEN_BONUS_CAP = 0.3
KEYWORD_TOKEN_MIN_LEN = 3     # tokens must be longer than two chars


# ---------------------------
# Metadata sentinels
# ---------------------------

NOT_AVAILABLE = "N/A"
UNKNOWN_NAME = "Unknown"
PLACEMENTS_FIELD = "placements"


# ---------------------------
# Query enhancement
# ---------------------------

# Evaluated in insertion order; an expansion may trigger a later key.
SYNONYM_MAP: Mapping[str, str] = MappingProxyType({
    "google": "Google tech company software engineer",
    "microsoft": "Microsoft tech software company",
    "amazon": "Amazon ecommerce tech company",
    "bangalore": "Bangalore Bengaluru city India",
    "data scientist": "data science machine learning AI",
    "product manager": "product management business strategy",
    "software engineer": "software development programming coding",
    "developer": "software development programming",
    "internship": "intern work experience training",
    "ciena": "Ciena networking telecommunications",
})


# ---------------------------
# Batch mode
# ---------------------------

BATCH_TEST_QUERIES: List[str] = [
    "Google",
    "Microsoft",
    "software engineer",
    "data scientist",
    "Bangalore",
    "Policybazaar",
    "ciena",
    "product manager",
    "internship",
    "Amazon",
]
BATCH_LIMIT = 5
BATCH_DELAY_SECONDS = 1.0

# `diagnose` command: one raw (unexpanded) query against the embedding space
DIAGNOSE_QUERY = "software engineer"
DIAGNOSE_TOP_K = 3
DIAGNOSE_SAMPLE_VALUES = 5


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class SearchRequest(BaseModel):
    """
    Request body for POST /search.
    """

    query: str = Field(..., min_length=1, max_length=MAX_QUERY_CHARS)
    collection: Optional[str] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=100)


class SearchHit(BaseModel):
    """
    One ranked student profile as exposed by the API.
    """

    id: str
    name: str
    city: str
    country: str
    placements: str
    origin: str  # "semantic" / "keyword"
    hybrid_score: float
    semantic_similarity: Optional[float] = None
    keyword_score: Optional[float] = None
    exact_match: bool
    snippet: str


class SearchResponse(BaseModel):
    """
    Response body for POST /search.
    """

    query: str
    collection: str
    results: List[SearchHit]


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
