"""
Plain-text rendering of ranked results for the CLI.

Everything here only reads RankedResult objects; order is preserved.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from .pipeline_types import KEYWORD, SEMANTIC, RankedResult

SNIPPET_HEAD_CHARS = 120
SNIPPET_BEFORE = 40
SNIPPET_AFTER = 60
PLACEMENTS_PREVIEW = 80


def build_snippet(content: str, query: str) -> str:
    """
    Most relevant slice of ``content``: a window around the first match of
    ``query`` (40 chars before, 60 after), else the first 120 chars.
    """
    content = content or ""
    pos = content.lower().find((query or "").lower()) if query else -1
    if pos < 0:
        return content[:SNIPPET_HEAD_CHARS]
    start = max(0, pos - SNIPPET_BEFORE)
    end = min(len(content), pos + len(query) + SNIPPET_AFTER)
    snippet = content[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet = snippet + "..."
    return snippet


def _preview(text: str, width: int = PLACEMENTS_PREVIEW) -> str:
    return text[:width] + ("..." if len(text) > width else "")


def format_result(rank: int, result: RankedResult, query: str) -> str:
    c = result.candidate
    lines = [
        f"{rank}. {c.name}",
        f"   Location: {c.city}, {c.country}",
        f"   Placements: {_preview(c.placements)}",
        f"   Type: {c.origin.upper()}",
        f"   Hybrid Score: {result.hybrid_score:.4f}",
    ]
    if c.origin == SEMANTIC and c.semantic_similarity is not None:
        lines.append(f"   Semantic: {c.semantic_similarity:.4f}")
    elif c.keyword_score is not None:
        lines.append(f"   Keyword: {c.keyword_score:.1f}")
    if result.exact_match:
        lines.append("   Exact match found")
    lines.append(f"   Student ID: {c.id}")
    lines.append("-" * 80)
    lines.append(f"   {build_snippet(c.content, query)}")
    return "\n".join(lines)


def summarize(results: Sequence[RankedResult]) -> Dict[str, float]:
    n = len(results)
    return {
        "semantic": sum(1 for r in results if r.origin == SEMANTIC),
        "keyword": sum(1 for r in results if r.origin == KEYWORD),
        "avg_score": (sum(r.hybrid_score for r in results) / n) if n else 0.0,
    }


def format_results(results: Sequence[RankedResult], query: str) -> str:
    out: List[str] = [
        "=" * 100,
        f'HYBRID SEARCH RESULTS FOR: "{query}"',
        f"Found {len(results)} matches",
        "=" * 100,
    ]
    if not results:
        out.append("No results found. Try a different search term.")
        out.append("Try searching for: company names, roles, cities, or skills")
        return "\n".join(out)

    for i, r in enumerate(results, start=1):
        out.append("")
        out.append(format_result(i, r, query))

    s = summarize(results)
    out.append("")
    out.append(
        f"Summary: {s['semantic']} semantic + {s['keyword']} keyword results, "
        f"Avg score: {s['avg_score']:.4f}"
    )
    return "\n".join(out)
