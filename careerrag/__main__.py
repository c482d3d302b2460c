"""
Command line entry point.

  python -m careerrag ask --chunks data/chunks.yaml "I love maths, what should I study?"
  python -m careerrag ask --db data/kb.sqlite --faiss data/kb.faiss --profile '{"grade": 11}' "..."
  python -m careerrag index --chunks data/chunks.yaml --db data/kb.sqlite --faiss data/kb.faiss
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from typing import List, Optional

from careerrag.errors import CareerRagError
from careerrag.log import configure_logging
from careerrag.search import InMemoryKnowledgeStore, build_embedder


def _parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="careerrag", description="Career guidance RAG over a local knowledge base.")
    p.add_argument("--log-level", default=None, help="Override LOG_LEVEL from settings")
    sub = p.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Answer one question")
    ask.add_argument("query")
    ask.add_argument("--chunks", help="Chunk records (.json, .jsonl or .yaml) for an in-memory store")
    ask.add_argument("--db", help="SQLite database built by `index`")
    ask.add_argument("--faiss", help="FAISS index built by `index`")
    ask.add_argument("--profile", default=None, help="Structured profile fields as JSON")
    ask.add_argument("--json", action="store_true", help="Print the full result as JSON")

    idx = sub.add_parser("index", help="Embed chunk records into SQLite FTS5 + FAISS")
    idx.add_argument("--chunks", required=True)
    idx.add_argument("--db", required=True)
    idx.add_argument("--faiss", required=True)
    return p.parse_args(argv)


def _open_store(args, embedder):
    if args.db and args.faiss:
        from careerrag.search.sqlite_store import SQLiteFaissStore

        return SQLiteFaissStore(args.db, args.faiss)
    if args.chunks:
        return InMemoryKnowledgeStore.from_file(args.chunks, embedder=embedder)
    raise SystemExit("ask needs either --chunks or both --db and --faiss")


def _index(args, settings) -> int:
    from careerrag.search.sqlite_store import build_index

    embedder = build_embedder(settings)
    store = InMemoryKnowledgeStore.from_file(args.chunks, embedder=embedder)
    n = build_index(store.chunks, args.db, args.faiss)
    print(f"Indexed {n} chunks")
    return 0


def _ask(args, settings) -> int:
    from careerrag.pipeline import CareerGuidancePipeline

    profile = json.loads(args.profile) if args.profile else None
    pipeline = CareerGuidancePipeline.from_settings(
        _open_store(args, build_embedder(settings)), settings=settings
    )
    result = pipeline.evaluate(args.query, profile)

    if args.json:
        out = asdict(result)
        out["states"] = [s.value for s in result.states]
        print(json.dumps(out, indent=2, ensure_ascii=False, default=str))
    else:
        print(result.response if result.response else f"[generation failed] {result.error}")
        print()
        print(f"success={result.success} retries={result.retry_count} footer={result.footer_present} model={result.model}")
        if result.bias_report is not None and result.bias_report.has_bias:
            print(f"bias: severity={result.bias_report.severity:.2f} dominant={result.bias_report.dominant_category}")
    print(f"bias stats: {json.dumps(pipeline.get_bias_stats())}")
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    from careerrag.settings import settings

    args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level or ("DEBUG" if settings.DEBUG else settings.LOG_LEVEL))
    try:
        if args.command == "index":
            return _index(args, settings)
        return _ask(args, settings)
    except CareerRagError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
