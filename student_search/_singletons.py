# student_search/_singletons.py
from functools import lru_cache

from .embedding import SentenceTransformerEmbedder
from .search import HybridSearcher
from .vector_client import ChromaHttpClient


@lru_cache(maxsize=1)
def get_vector_client() -> ChromaHttpClient:
    return ChromaHttpClient()


@lru_cache(maxsize=1)
def get_embedder() -> SentenceTransformerEmbedder:
    return SentenceTransformerEmbedder()


@lru_cache(maxsize=1)
def get_searcher() -> HybridSearcher:
    return HybridSearcher(get_vector_client(), get_embedder())
