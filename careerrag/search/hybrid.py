# Hybrid retrieval: vector similarity + keyword overlap merged into one list.
#
# Both sub-queries hit the store independently and are joined before the
# merge. A chunk found by only one of them scores 0 on the other side.

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List

import numpy as np

from careerrag.search.text import keyword_overlap, query_terms
from careerrag.search.types import KnowledgeChunk, RankedCandidate, assign_ranks, rank_key

logger = logging.getLogger(__name__)


def cosine_score(query_vec: np.ndarray, chunk: KnowledgeChunk) -> float:
    """Cosine similarity clamped to [0, 1]; 0 when the chunk has no embedding."""
    if chunk.embedding is None:
        return 0.0
    v = np.asarray(chunk.embedding, dtype=np.float32).reshape(-1)
    q = np.asarray(query_vec, dtype=np.float32).reshape(-1)
    if v.shape != q.shape:
        return 0.0
    denom = float(np.linalg.norm(q)) * float(np.linalg.norm(v))
    if denom == 0.0:
        return 0.0
    return min(1.0, max(0.0, float(q @ v) / denom))


def merge_and_rank(
    vec_hits: List[KnowledgeChunk],
    lex_hits: List[KnowledgeChunk],
    query: str,
    embedding: np.ndarray,
    vector_weight: float = 0.7,
    keyword_weight: float = 0.3,
    limit: int = 25,
) -> List[RankedCandidate]:
    terms = query_terms(query)
    total = vector_weight + keyword_weight
    wv, wk = (vector_weight / total, keyword_weight / total) if total > 0 else (0.5, 0.5)

    combined: Dict[str, RankedCandidate] = {}
    for c in vec_hits:
        if c.id not in combined:
            combined[c.id] = RankedCandidate(chunk=c, vector_score=cosine_score(embedding, c))

    # keyword hits: score lexically; fill in the lexical side of vector hits too
    for c in lex_hits:
        if c.id not in combined:
            combined[c.id] = RankedCandidate(chunk=c)
        combined[c.id].keyword_score = keyword_overlap(terms, combined[c.id].chunk)

    for cand in combined.values():
        cand.combined_score = min(1.0, max(0.0, wv * cand.vector_score + wk * cand.keyword_score))

    ranked = sorted(combined.values(), key=rank_key)
    return assign_ranks(ranked[:limit])


class HybridSearch:
    def __init__(self, store, vector_weight: float = 0.7, keyword_weight: float = 0.3, parallel: bool = True):
        if vector_weight < 0 or keyword_weight < 0:
            raise ValueError("search weights must be non-negative")
        self.store = store
        self.vector_weight = vector_weight
        self.keyword_weight = keyword_weight
        self.parallel = parallel

    def search(self, query: str, embedding: np.ndarray, limit: int = 25) -> List[RankedCandidate]:
        if limit <= 0:
            return []
        if self.parallel:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="hybrid") as pool:
                vec_f = pool.submit(self.store.vector_search, embedding, limit)
                lex_f = pool.submit(self.store.keyword_search, query, limit)
                # .result() re-raises store errors in the caller
                vec_hits, lex_hits = vec_f.result(), lex_f.result()
        else:
            vec_hits = self.store.vector_search(embedding, limit)
            lex_hits = self.store.keyword_search(query, limit)

        ranked = merge_and_rank(
            vec_hits,
            lex_hits,
            query=query,
            embedding=embedding,
            vector_weight=self.vector_weight,
            keyword_weight=self.keyword_weight,
            limit=limit,
        )
        logger.info(f"Hybrid search: {len(vec_hits)} vector + {len(lex_hits)} keyword -> {len(ranked)} candidates")
        return ranked
