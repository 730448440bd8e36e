from __future__ import annotations

"""
FastAPI application for student search.

- POST /search runs one hybrid query and returns results in rank order
- 404 when the collection is missing from the vector index
- degraded branches are not errors; they only shrink the result list
"""

from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import DEFAULT_COLLECTION, HealthResponse, SearchRequest, SearchResponse
from .errors import CollectionNotFound, SearchError
from .mapping import map_results_to_response
from .pipeline_types import RankedResult
from .search import hybrid_search
from .utils.text_clean import clean_query_text


def run_search(query: str, collection: str, limit: int) -> List[RankedResult]:
    return hybrid_search(query, collection, limit)


# -----------------------
# FastAPI app + startup
# -----------------------

app = FastAPI(title="student-search")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("Starting app warmup...")
    from ._singletons import get_embedder, get_vector_client

    try:
        get_embedder().model
    except SearchError as e:
        logger.warning("Embedding model not loaded; semantic branch will be empty: {}", e)
    if not get_vector_client().heartbeat():
        logger.warning("Vector index unreachable at startup")
    logger.info("Warmup complete.")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.post("/search", response_model=SearchResponse)
def search(req: SearchRequest) -> SearchResponse:
    query = clean_query_text(req.query)
    if not query:
        raise HTTPException(status_code=422, detail="Query must be non-empty")
    collection = req.collection or DEFAULT_COLLECTION
    try:
        results = run_search(query, collection, req.limit)
    except CollectionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return map_results_to_response(results, query, collection)
