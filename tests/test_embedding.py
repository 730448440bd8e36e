import sys

import numpy as np
import pytest

from student_search import embedding
from student_search.embedding import SentenceTransformerEmbedder, load_sentence_model
from student_search.errors import ProviderUnavailable


class DummyModel:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def encode(self, texts, convert_to_numpy=True, normalize_embeddings=False):
        self.calls.append((list(texts), normalize_embeddings))
        if self.fail:
            raise RuntimeError("CUDA out of memory")
        return np.array([[3.0, 4.0]], dtype="float64") / 5.0

    def get_sentence_embedding_dimension(self):
        return 2


def test_embed_returns_normalized_float32_vector():
    model = DummyModel()
    emb = SentenceTransformerEmbedder(model_name="dummy", model=model)
    vec = emb.embed("google")
    assert vec.dtype == np.float32
    assert np.allclose(vec, [0.6, 0.8])
    assert model.calls == [(["google"], True)]
    assert emb.dimension == 2


def test_embed_failure_is_provider_unavailable():
    emb = SentenceTransformerEmbedder(model_name="dummy", model=DummyModel(fail=True))
    with pytest.raises(ProviderUnavailable):
        emb.embed("google")


def test_missing_library_is_provider_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "sentence_transformers", None)
    monkeypatch.setattr(embedding, "_MODEL_CACHE", {})
    with pytest.raises(ProviderUnavailable):
        load_sentence_model("not-cached-model")


def test_model_is_cached_per_name(monkeypatch):
    cached = DummyModel()
    monkeypatch.setattr(embedding, "_MODEL_CACHE", {"cached-model": cached})
    assert load_sentence_model("cached-model") is cached
    assert SentenceTransformerEmbedder("cached-model").model is cached
