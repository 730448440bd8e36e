from student_search.config import SearchResponse
from student_search.mapping import EXPORT_COLUMNS, map_results_to_response, results_to_frame
from student_search.pipeline_types import Candidate, RankedResult


def _ranked(rid, origin, score, **kw):
    c = Candidate(
        id=rid,
        name="Unknown",
        city="N/A",
        country="N/A",
        placements="N/A",
        content="Worked on Ciena optical networks",
        metadata={},
        origin=origin,
        **kw,
    )
    return RankedResult(candidate=c, hybrid_score=score, exact_match=False)


def test_map_results_to_response_keeps_order():
    results = [_ranked("b", "semantic", 0.9, semantic_similarity=0.8), _ranked("a", "keyword", 0.3, keyword_score=2.5)]
    resp = map_results_to_response(results, "ciena", "students")
    assert isinstance(resp, SearchResponse)
    assert [h.id for h in resp.results] == ["b", "a"]
    assert resp.results[0].semantic_similarity == 0.8
    assert resp.results[1].keyword_score == 2.5
    assert resp.results[1].snippet.startswith("Worked on Ciena")


def test_results_to_frame_columns_and_rank():
    results = [_ranked("b", "semantic", 0.9, semantic_similarity=0.8), _ranked("a", "keyword", 0.3, keyword_score=2.5)]
    df = results_to_frame(results, "ciena")
    assert list(df.columns) == EXPORT_COLUMNS
    assert df["rank"].tolist() == [1, 2]
    assert df["id"].tolist() == ["b", "a"]
    assert (df["query"] == "ciena").all()


def test_results_to_frame_empty():
    df = results_to_frame([], "zzz")
    assert df.empty
    assert list(df.columns) == EXPORT_COLUMNS
