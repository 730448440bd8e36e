from __future__ import annotations

"""
Query embedding for the semantic branch.

Collections are ingested with a mean-pooled, L2-normalised sentence
transformer; queries must be embedded with the same model or distances are
meaningless.  The model is loaded lazily on first use and cached for the
lifetime of the process.
"""

import os
import threading
from typing import Dict, Optional, Protocol

import numpy as np
from loguru import logger

from .config import EMBEDDING_MODEL, HF_ENV_VARS
from .errors import ProviderUnavailable


class Embedder(Protocol):
    def embed(self, text: str) -> np.ndarray: ...


def _ensure_hf_env() -> None:
    """Set HuggingFace cache hints unless the user already set them."""
    for key, val in HF_ENV_VARS.items():
        if key not in os.environ:
            os.environ[key] = val


# -------------------------------------------------------------------
# Process-wide model cache
# -------------------------------------------------------------------
_MODEL_CACHE: Dict[str, object] = {}
_MODEL_LOCK = threading.Lock()


def load_sentence_model(model_name: str = EMBEDDING_MODEL):
    """
    Load (once) and return a SentenceTransformer.
    Raises ProviderUnavailable if the library or the weights are unavailable.
    """
    with _MODEL_LOCK:
        if model_name in _MODEL_CACHE:
            return _MODEL_CACHE[model_name]
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ProviderUnavailable(f"sentence_transformers is not installed: {e}") from e

        _ensure_hf_env()
        logger.info("Loading embedding model: {}", model_name)
        try:
            model = SentenceTransformer(model_name)
        except Exception as e:
            raise ProviderUnavailable(f"failed to load embedding model '{model_name}': {e}") from e
        _MODEL_CACHE[model_name] = model
        return model


class SentenceTransformerEmbedder:
    """Embedding provider backed by sentence-transformers."""

    def __init__(self, model_name: str = EMBEDDING_MODEL, model: Optional[object] = None) -> None:
        self.model_name = model_name
        self._model = model

    @property
    def model(self):
        if self._model is None:
            self._model = load_sentence_model(self.model_name)
        return self._model

    @property
    def dimension(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def embed(self, text: str) -> np.ndarray:
        model = self.model
        try:
            vec = model.encode([text], convert_to_numpy=True, normalize_embeddings=True)[0]
        except Exception as e:
            raise ProviderUnavailable(f"embedding failed: {e}") from e
        return np.asarray(vec, dtype="float32")
