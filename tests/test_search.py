import threading

import pytest

from student_search.errors import CollectionNotFound, ProviderUnavailable
from student_search.search import HybridSearcher, hybrid_search


def _scenario_index(fake_index, **kwargs):
    # Doc A: close semantic neighbour, content mentions the query once
    # Doc B: not a semantic neighbour, content twice + placements
    # Doc C: found by both branches
    query_rows = [
        ("A", 0.2, "Summer intern at Ciena labs", {"name": "Doc A", "placements": "Intern at Nokia"}),
        ("C", 0.9, "Ciena graduate", {"name": "Doc C"}),
    ]
    records = [
        ("A", "Summer intern at Ciena labs", {"name": "Doc A", "placements": "Intern at Nokia"}),
        ("B", "Ciena SDE, then Ciena lead", {"name": "Doc B", "placements": "SDE at Ciena"}),
        ("C", "Ciena graduate", {"name": "Doc C"}),
        ("D", "Amazon only", {"name": "Doc D"}),
    ]
    return fake_index(query_rows=query_rows, records=records, **kwargs)


def test_hybrid_search_end_to_end(fake_index, dummy_embedder):
    searcher = HybridSearcher(_scenario_index(fake_index), dummy_embedder())
    results = searcher.search("ciena", "students", limit=10)

    ids = [r.id for r in results]
    assert sorted(ids) == ["A", "B", "C"]
    assert len(ids) == len(set(ids))

    by_id = {r.id: r for r in results}
    assert by_id["A"].origin == "semantic"
    assert by_id["A"].semantic_similarity == pytest.approx(0.98)
    assert by_id["A"].hybrid_score == pytest.approx(0.888)
    assert by_id["B"].origin == "keyword"
    assert by_id["B"].keyword_score == pytest.approx(6.0)
    assert by_id["B"].hybrid_score == pytest.approx(0.7 * 0.6 + 0.1)
    assert by_id["C"].origin == "semantic"
    assert by_id["C"].keyword_score is None

    scores = [r.hybrid_score for r in results]
    assert scores == sorted(scores, reverse=True)
    assert ids[0] == "A"


def test_hybrid_search_overfetches_and_respects_limit(fake_index, dummy_embedder):
    index = _scenario_index(fake_index)
    results = HybridSearcher(index, dummy_embedder()).search("ciena", "students", limit=1)
    assert len(results) == 1
    assert index.query_calls == [("col-1", 2)]


def test_branches_run_concurrently(fake_index, dummy_embedder):
    # Each branch blocks until the other one arrives; a sequential run would break the barrier.
    barrier = threading.Barrier(2, timeout=5)
    index = _scenario_index(fake_index, barrier=barrier)
    searcher = HybridSearcher(index, dummy_embedder(barrier=barrier))
    results = searcher.search("ciena", "students", limit=10)
    assert {r.origin for r in results} == {"semantic", "keyword"}


def test_semantic_failure_degrades_to_keyword_only(fake_index, dummy_embedder):
    searcher = HybridSearcher(_scenario_index(fake_index), dummy_embedder(error=ProviderUnavailable("no model")))
    results = searcher.search("ciena", "students", limit=10)
    assert results
    assert all(r.origin == "keyword" for r in results)


def test_keyword_failure_degrades_to_semantic_only(fake_index, dummy_embedder):
    index = _scenario_index(fake_index, get_error=ProviderUnavailable("timeout"))
    results = HybridSearcher(index, dummy_embedder()).search("ciena", "students", limit=10)
    assert [r.id for r in results] == ["A", "C"]


def test_unexpected_branch_crash_does_not_cancel_other(fake_index, dummy_embedder):
    index = _scenario_index(fake_index, get_error=KeyError("boom"))
    results = HybridSearcher(index, dummy_embedder()).search("ciena", "students", limit=10)
    assert all(r.origin == "semantic" for r in results)


def test_missing_collection_on_both_branches_raises(fake_index, dummy_embedder):
    searcher = HybridSearcher(_scenario_index(fake_index, collections={}), dummy_embedder())
    with pytest.raises(CollectionNotFound):
        searcher.search("ciena", "students", limit=5)


def test_both_branches_down_returns_empty(fake_index, dummy_embedder):
    index = _scenario_index(fake_index, get_error=ProviderUnavailable("down"))
    searcher = HybridSearcher(index, dummy_embedder(error=ProviderUnavailable("down")))
    assert searcher.search("ciena", "students", limit=5) == []


def test_blank_query_short_circuits(fake_index, dummy_embedder):
    index = _scenario_index(fake_index)
    emb = dummy_embedder()
    assert HybridSearcher(index, emb).search("   ", "students") == []
    assert emb.texts == [] and index.get_calls == []


def test_invalid_limit_raises(fake_index, dummy_embedder):
    with pytest.raises(ValueError):
        HybridSearcher(_scenario_index(fake_index), dummy_embedder()).search("x", "students", limit=0)


def test_hybrid_search_uses_given_searcher(fake_index, dummy_embedder):
    searcher = HybridSearcher(_scenario_index(fake_index), dummy_embedder())
    results = hybrid_search("amazon", "students", 5, searcher=searcher)
    assert [r.id for r in results] == ["A", "C", "D"]
    assert results[-1].origin == "keyword"


def test_missing_collection_wins_over_unavailable_model(fake_index, dummy_embedder):
    searcher = HybridSearcher(_scenario_index(fake_index, collections={}), dummy_embedder(error=ProviderUnavailable("no model")))
    with pytest.raises(CollectionNotFound):
        searcher.search("ciena", "students", limit=5)


def test_missing_collection_skips_embedding(fake_index, dummy_embedder):
    emb = dummy_embedder()
    searcher = HybridSearcher(_scenario_index(fake_index, collections={}), emb)
    with pytest.raises(CollectionNotFound):
        searcher.search("ciena", "students", limit=5)
    assert emb.texts == []
