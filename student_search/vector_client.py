from __future__ import annotations

"""
Thin client for the Chroma HTTP API (v2) used as the vector index and as the
document-store snapshot for keyword scanning.

Only the handful of endpoints the search pipeline needs are wrapped:

* list collections / resolve a collection by name
* nearest-neighbour query with distances, documents and metadatas
* bulk get (bounded) of ids, documents and metadatas
* count and heartbeat for the ``verify`` command

Transport problems surface as ``ProviderUnavailable`` and unexpected payload
shapes as ``MalformedResponse``.  No retries are attempted here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from loguru import logger

from .config import (
    CHROMA_DATABASE,
    CHROMA_HOST,
    CHROMA_TENANT,
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
    KEYWORD_FETCH_LIMIT,
)
from .errors import CollectionNotFound, MalformedResponse, ProviderUnavailable


# -------------------------------------------------------------------
# Response containers
# -------------------------------------------------------------------

@dataclass(frozen=True)
class CollectionInfo:
    id: str
    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QueryResult:
    """Parallel arrays for a single query vector."""

    ids: List[str]
    distances: List[float]
    documents: List[Optional[str]]
    metadatas: List[Optional[Dict[str, Any]]]

    def __len__(self) -> int:
        return len(self.ids)


@dataclass
class Snapshot:
    """Parallel arrays returned by a bulk get."""

    ids: List[str]
    documents: List[Optional[str]]
    metadatas: List[Optional[Dict[str, Any]]]

    def __len__(self) -> int:
        return len(self.ids)


class VectorIndex(Protocol):
    def get_collection(self, name: str) -> CollectionInfo: ...

    def query(self, collection_id: str, vector: Sequence[float], k: int) -> QueryResult: ...

    def get_all(self, collection_id: str, limit: int = KEYWORD_FETCH_LIMIT) -> Snapshot: ...


# -------------------------------------------------------------------
# Payload parsing
# -------------------------------------------------------------------

def _column(data: Dict[str, Any], key: str, n: int, required: bool, nested: bool) -> List[Any]:
    """
    Pull one parallel array out of a Chroma payload.

    Query responses nest every array one level deeper (one row per query
    vector); ``nested`` unwraps the first row.  Optional columns that are
    missing or null are filled with ``None``.
    """
    col = data.get(key)
    if col is None:
        if required:
            raise MalformedResponse(f"response is missing '{key}'")
        return [None] * n
    if not isinstance(col, list):
        raise MalformedResponse(f"'{key}' is not a list")
    if nested:
        if not col:
            col = []
        elif not isinstance(col[0], list):
            raise MalformedResponse(f"'{key}' is not a list of lists")
        else:
            col = col[0]
    if n >= 0 and len(col) != n:
        raise MalformedResponse(f"'{key}' has {len(col)} entries, expected {n}")
    return list(col)


def parse_query_response(data: Any) -> QueryResult:
    if not isinstance(data, dict):
        raise MalformedResponse("query response is not an object")
    ids = _column(data, "ids", -1, required=True, nested=True)
    n = len(ids)
    distances = _column(data, "distances", n, required=True, nested=True)
    try:
        distances = [float(d) for d in distances]
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"non-numeric distance: {e}") from e
    documents = _column(data, "documents", n, required=False, nested=True)
    metadatas = _column(data, "metadatas", n, required=False, nested=True)
    return QueryResult([str(i) for i in ids], distances, documents, metadatas)


def parse_get_response(data: Any) -> Snapshot:
    if not isinstance(data, dict):
        raise MalformedResponse("get response is not an object")
    ids = _column(data, "ids", -1, required=True, nested=False)
    n = len(ids)
    documents = _column(data, "documents", n, required=False, nested=False)
    metadatas = _column(data, "metadatas", n, required=False, nested=False)
    return Snapshot([str(i) for i in ids], documents, metadatas)


# -------------------------------------------------------------------
# HTTP client
# -------------------------------------------------------------------

class ChromaHttpClient:
    """
    Synchronous Chroma v2 client.  Safe to share between the two retrieval
    threads of a query (``httpx.Client`` is thread-safe).
    """

    def __init__(
        self,
        host: str = CHROMA_HOST,
        tenant: str = CHROMA_TENANT,
        database: str = CHROMA_DATABASE,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.host = host.rstrip("/")
        self.tenant = tenant
        self.database = database
        self._client = httpx.Client(
            base_url=self.host,
            timeout=timeout or httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
            headers={"User-Agent": HTTP_USER_AGENT},
            transport=transport,
        )

    # --- plumbing ---

    @property
    def collections_path(self) -> str:
        return f"/api/v2/tenants/{self.tenant}/databases/{self.database}/collections"

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            r = self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"{method} {path} failed: {e}") from e
        if r.status_code >= 400:
            raise ProviderUnavailable(f"{method} {path} returned HTTP {r.status_code}")
        try:
            return r.json()
        except ValueError as e:
            raise MalformedResponse(f"{method} {path} returned invalid JSON") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ChromaHttpClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- endpoints ---

    def heartbeat(self) -> bool:
        try:
            self._request("GET", "/api/v2/heartbeat")
            return True
        except (ProviderUnavailable, MalformedResponse) as e:
            logger.warning("Chroma heartbeat failed: {}", e)
            return False

    def list_collections(self) -> List[CollectionInfo]:
        data = self._request("GET", self.collections_path)
        if not isinstance(data, list):
            raise MalformedResponse("collection listing is not a list")
        out: List[CollectionInfo] = []
        for c in data:
            if not isinstance(c, dict) or "id" not in c or "name" not in c:
                raise MalformedResponse(f"unexpected collection entry: {c!r}")
            out.append(CollectionInfo(id=str(c["id"]), name=str(c["name"]), metadata=c.get("metadata") or {}))
        return out

    def get_collection(self, name: str) -> CollectionInfo:
        for c in self.list_collections():
            if c.name == name:
                return c
        raise CollectionNotFound(name)

    def query(self, collection_id: str, vector: Sequence[float], k: int) -> QueryResult:
        payload = {
            "query_embeddings": [[float(x) for x in vector]],
            "n_results": int(k),
            "include": ["metadatas", "documents", "distances"],
        }
        data = self._request("POST", f"{self.collections_path}/{collection_id}/query", payload)
        return parse_query_response(data)

    def get_all(self, collection_id: str, limit: int = KEYWORD_FETCH_LIMIT) -> Snapshot:
        payload = {"include": ["metadatas", "documents"], "limit": int(limit)}
        data = self._request("POST", f"{self.collections_path}/{collection_id}/get", payload)
        return parse_get_response(data)

    def count(self, collection_id: str) -> int:
        data = self._request("GET", f"{self.collections_path}/{collection_id}/count")
        try:
            return int(data)
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"count is not an integer: {data!r}") from e
