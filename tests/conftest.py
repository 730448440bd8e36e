import threading
from typing import Dict, List, Optional, Tuple

import numpy as np
import pytest

from student_search.errors import CollectionNotFound, SearchError
from student_search.vector_client import CollectionInfo, QueryResult, Snapshot


class FakeIndex:
    """
    In-memory stand-in for the Chroma client.

    query_rows: [(id, distance, document, metadata), ...] in nearest-first order
    records:    [(id, document, metadata), ...] in snapshot order
    """

    def __init__(
        self,
        query_rows: Optional[List[Tuple]] = None,
        records: Optional[List[Tuple]] = None,
        collections: Optional[Dict[str, str]] = None,
        query_error: Optional[Exception] = None,
        get_error: Optional[Exception] = None,
        barrier: Optional[threading.Barrier] = None,
    ):
        self.query_rows = query_rows or []
        self.records = records or []
        self.collections = collections if collections is not None else {"students": "col-1"}
        self.query_error = query_error
        self.get_error = get_error
        self.barrier = barrier
        self.query_calls: List[Tuple[str, int]] = []
        self.get_calls: List[Tuple[str, int]] = []

    def get_collection(self, name: str) -> CollectionInfo:
        if name not in self.collections:
            raise CollectionNotFound(name)
        return CollectionInfo(id=self.collections[name], name=name)

    def query(self, collection_id, vector, k) -> QueryResult:
        self.query_calls.append((collection_id, k))
        if self.query_error is not None:
            raise self.query_error
        rows = self.query_rows[:k]
        return QueryResult(
            ids=[r[0] for r in rows],
            distances=[r[1] for r in rows],
            documents=[r[2] for r in rows],
            metadatas=[r[3] for r in rows],
        )

    def get_all(self, collection_id, limit=1000) -> Snapshot:
        self.get_calls.append((collection_id, limit))
        if self.barrier is not None:
            self.barrier.wait()
        if self.get_error is not None:
            raise self.get_error
        recs = self.records[:limit]
        return Snapshot(
            ids=[r[0] for r in recs],
            documents=[r[1] for r in recs],
            metadatas=[r[2] for r in recs],
        )


class DummyEmbedder:
    """Records every text it embeds; returns a constant unit vector."""

    def __init__(self, error: Optional[SearchError] = None, barrier: Optional[threading.Barrier] = None):
        self.error = error
        self.barrier = barrier
        self.texts: List[str] = []

    def embed(self, text: str) -> np.ndarray:
        self.texts.append(text)
        if self.barrier is not None:
            self.barrier.wait()
        if self.error is not None:
            raise self.error
        return np.array([0.5, 0.5, 0.5, 0.5], dtype="float32")


@pytest.fixture
def fake_index():
    return FakeIndex


@pytest.fixture
def dummy_embedder():
    return DummyEmbedder
