# student_search/cli.py
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd
from loguru import logger

from . import config
from .embedding import SentenceTransformerEmbedder
from .errors import CollectionNotFound, SearchError
from .formatting import format_results
from .mapping import EXPORT_COLUMNS, results_to_frame
from .retrieval import distances_to_similarities
from .search import HybridSearcher
from .utils.text_clean import clean_query_text
from .vector_client import ChromaHttpClient

# ---------- logging ----------

def configure_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="INFO", rotation="10 MB", retention=5)

# ---------- batch mode ----------

def run_batch(
    searcher: HybridSearcher,
    queries: Sequence[str],
    collection: str = config.DEFAULT_COLLECTION,
    limit: int = config.BATCH_LIMIT,
    delay: float = config.BATCH_DELAY_SECONDS,
    echo: Callable[[str], None] = print,
    sleep: Callable[[float], None] = time.sleep,
) -> pd.DataFrame:
    """
    Issue ``queries`` one after another, pausing ``delay`` seconds after each.
    A failing query is logged and skipped; the rest still run.
    Returns every result row (see mapping.EXPORT_COLUMNS).
    """
    frames: List[pd.DataFrame] = []
    for q in queries:
        query = clean_query_text(q)
        if not query:
            continue
        echo(f'\nTesting: "{query}"')
        try:
            results = searcher.search(query, collection, limit)
        except SearchError as e:
            logger.error("Error searching for '{}': {}", query, e)
        else:
            echo(format_results(results, query))
            frames.append(results_to_frame(results, query))
        if delay > 0:
            sleep(delay)
    non_empty = [f for f in frames if not f.empty]
    if not non_empty:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    return pd.concat(non_empty, ignore_index=True)

# ---------- verify ----------

def verify_collection(client: ChromaHttpClient, name: str, sample: int = 2) -> Dict[str, object]:
    """Collection id, metadata, document count and the first ``sample`` documents."""
    info = client.get_collection(name)
    count = client.count(info.id)
    snap = client.get_all(info.id, limit=sample)
    docs = [(rid, (doc or "")[:80]) for rid, doc in zip(snap.ids, snap.documents)]
    return {"id": info.id, "name": info.name, "metadata": info.metadata, "count": count, "sample": docs}

# ---------- diagnose ----------

def diagnose_embeddings(
    client: ChromaHttpClient,
    embedder: SentenceTransformerEmbedder,
    name: str,
    query: str = config.DIAGNOSE_QUERY,
    k: int = config.DIAGNOSE_TOP_K,
) -> Dict[str, object]:
    """
    Check that the query embedding and the collection live in the same space:
    every collection with its metadata, the query vector's dimension and first
    values, and the raw top-``k`` distances for ``query``.
    ``target`` is None (and nothing is embedded) when ``name`` is missing.
    """
    collections = client.list_collections()
    report: Dict[str, object] = {
        "collections": [(c.name, c.id, c.metadata) for c in collections],
        "target": None,
    }
    target = next((c for c in collections if c.name == name), None)
    if target is None:
        return report

    vec = embedder.embed(query)
    res = client.query(target.id, vec, k)
    sims = distances_to_similarities(res.distances)
    top = None
    if len(res):
        top = (res.ids[0], res.distances[0], (res.documents[0] or "")[:100])
    report.update(
        target=target,
        query=query,
        dimension=embedder.dimension,
        sample=[float(x) for x in vec[: config.DIAGNOSE_SAMPLE_VALUES]],
        distances=list(res.distances),
        similarities=[float(s) for s in sims],
        top=top,
    )
    return report


def _print_diagnosis(report: Dict[str, object], name: str) -> int:
    print("Available collections:")
    for cname, cid, meta in report["collections"]:
        print(f"   - {cname} (ID: {cid})")
        if meta:
            print(f"     Metadata: {meta}")
    target = report["target"]
    if target is None:
        print(f"Collection '{name}' not found!")
        return 1
    print(f"\nFound target collection: {target.name}")
    print(f"\nQuery results for \"{report['query']}\":")
    print(f"   Query embedding dimensions: {report['dimension']}")
    print(f"   Query embedding sample: {report['sample']}")
    print(f"   Distances: {', '.join(f'{d:.4f}' for d in report['distances'])}")
    print(f"   Similarities: {', '.join(f'{s:.4f}' for s in report['similarities'])}")
    if report["top"] is not None:
        rid, dist, snippet = report["top"]
        print(f"   Top result: {rid} (distance: {dist:.4f})")
        print(f"   Document snippet: {snippet}...")
    return 0

# ---------- CLI ----------

def _build_searcher() -> HybridSearcher:
    from ._singletons import get_searcher
    return get_searcher()


def _build_embedder() -> SentenceTransformerEmbedder:
    from ._singletons import get_embedder
    return get_embedder()


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="student-search", description="Hybrid search over student profiles")
    ap.add_argument("--collection", default=config.DEFAULT_COLLECTION)
    ap.add_argument("--verbose", action="store_true")
    ap.add_argument("--log_file", type=Path, default=None,
                    help=f"Also write INFO logs here (e.g. {config.LOG_DIR / 'search.log'})")
    sub = ap.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Run a single query")
    p_search.add_argument("query")
    p_search.add_argument("--limit", type=int, default=config.DEFAULT_LIMIT)

    p_batch = sub.add_parser("batch", help="Run the fixed test query list")
    p_batch.add_argument("--limit", type=int, default=config.BATCH_LIMIT)
    p_batch.add_argument("--delay", type=float, default=config.BATCH_DELAY_SECONDS)
    p_batch.add_argument("--output_csv", type=Path, default=None)

    sub.add_parser("verify", help="Show collection id, count and sample documents")
    p_diag = sub.add_parser("diagnose", help="List collections and test the embedding space with a fixed query")
    p_diag.add_argument("--query", default=config.DIAGNOSE_QUERY)

    args = ap.parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    if args.command == "diagnose":
        with ChromaHttpClient() as client:
            try:
                report = diagnose_embeddings(client, _build_embedder(), args.collection, args.query)
            except SearchError as e:
                print(f"Diagnosis error: {e}")
                return 1
        return _print_diagnosis(report, args.collection)

    if args.command == "verify":
        with ChromaHttpClient() as client:
            try:
                report = verify_collection(client, args.collection)
            except SearchError as e:
                print(f"Verification error: {e}")
                return 1
        print(f"Collection found: {report['name']} (ID: {report['id']})")
        print(f"Metadata: {report['metadata']}")
        print(f"Document count: {report['count']}")
        for rid, snippet in report["sample"]:
            print(f"  {rid}: {snippet}...")
        return 0

    searcher = _build_searcher()

    if args.command == "search":
        query = clean_query_text(args.query)
        if not query:
            print("Please enter a search query.")
            return 2
        try:
            results = searcher.search(query, args.collection, args.limit)
        except CollectionNotFound as e:
            print(f"Search failed: {e}")
            return 1
        print(format_results(results, query))
        return 0

    df = run_batch(searcher, config.BATCH_TEST_QUERIES, args.collection, args.limit, args.delay)
    if args.output_csv is not None:
        args.output_csv.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.output_csv, index=False, encoding="utf-8")
        print(f"Wrote {len(df)} rows to {args.output_csv}")
    print("\nAll hybrid tests completed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
