"""
Knowledge store interface and an in-memory implementation.

The pipeline only needs two read-only queries from a store:

    vector_search(embedding, limit) -> list[KnowledgeChunk]   (nearest first)
    keyword_search(query, limit)    -> list[KnowledgeChunk]   (best match first)

Scoring of the returned chunks happens in HybridSearch, so stores only have
to return the right records in a sensible order.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np
import yaml

from careerrag.search.text import keyword_overlap, query_terms
from careerrag.search.types import KnowledgeChunk

logger = logging.getLogger(__name__)


class KnowledgeStore(ABC):
    """Read-only source of pre-chunked, pre-embedded knowledge."""

    @abstractmethod
    def vector_search(self, embedding: np.ndarray, limit: int) -> List[KnowledgeChunk]:
        ...

    @abstractmethod
    def keyword_search(self, query: str, limit: int) -> List[KnowledgeChunk]:
        ...


class InMemoryKnowledgeStore(KnowledgeStore):
    def __init__(self, chunks: Iterable[KnowledgeChunk] = (), min_similarity: float = 0.0):
        self.chunks: List[KnowledgeChunk] = list(chunks)
        self.min_similarity = min_similarity
        self._matrix: Optional[np.ndarray] = None
        self._matrix_ids: List[int] = []

    def __len__(self) -> int:
        return len(self.chunks)

    def add(self, chunk: KnowledgeChunk) -> None:
        self.chunks.append(chunk)
        self._matrix = None

    def _load_matrix(self) -> Optional[np.ndarray]:
        """Stack normalized embeddings of every chunk that has one."""
        if self._matrix is None:
            rows, idx = [], []
            for i, c in enumerate(self.chunks):
                if c.embedding is None:
                    continue
                v = np.asarray(c.embedding, dtype=np.float32)
                n = float(np.linalg.norm(v))
                rows.append(v / n if n else v)
                idx.append(i)
            self._matrix_ids = idx
            self._matrix = np.vstack(rows) if rows else None
        return self._matrix

    def vector_search(self, embedding: np.ndarray, limit: int) -> List[KnowledgeChunk]:
        mat = self._load_matrix()
        if mat is None or limit <= 0:
            return []
        q = np.asarray(embedding, dtype=np.float32).reshape(-1)
        n = float(np.linalg.norm(q))
        if n:
            q = q / n
        sims = mat @ q
        order = sorted(range(len(sims)), key=lambda k: (-float(sims[k]), self.chunks[self._matrix_ids[k]].id))
        out = []
        for k in order:
            if float(sims[k]) < self.min_similarity:
                continue
            out.append(self.chunks[self._matrix_ids[k]])
            if len(out) >= limit:
                break
        return out

    def keyword_search(self, query: str, limit: int) -> List[KnowledgeChunk]:
        terms = query_terms(query)
        if not terms or limit <= 0:
            return []
        scored = []
        for c in self.chunks:
            s = keyword_overlap(terms, c)
            if s > 0:
                scored.append((s, c))
        scored.sort(key=lambda t: (-t[0], t[1].id))
        return [c for _, c in scored[:limit]]

    # -------------------------
    # Loaders
    # -------------------------
    @classmethod
    def from_records(cls, records: Iterable[dict], embedder=None, **kwargs) -> "InMemoryKnowledgeStore":
        chunks = []
        for r in records:
            chunk = KnowledgeChunk.from_record(r)
            if chunk.embedding is None and embedder is not None:
                chunk.embedding = embedder.embed(chunk.text)
            chunks.append(chunk)
        return cls(chunks, **kwargs)

    @classmethod
    def from_file(cls, path: str, embedder=None, **kwargs) -> "InMemoryKnowledgeStore":
        """Load chunk records from a .json, .jsonl or .yaml file."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"chunk file not found: {p}")
        with p.open("r", encoding="utf-8") as f:
            if p.suffix == ".jsonl":
                records = [json.loads(line) for line in f if line.strip()]
            elif p.suffix in (".yaml", ".yml"):
                records = yaml.safe_load(f) or []
            else:
                records = json.load(f)
        store = cls.from_records(records, embedder=embedder, **kwargs)
        logger.info(f"Loaded {len(store)} chunks from {p}")
        return store
