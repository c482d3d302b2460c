# Data models for the retrieval layer.
# Chunks are owned by the knowledge store; candidates and bundles live for
# one request only.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

import numpy as np

from careerrag.errors import BudgetExceededError


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters, rounded up."""
    return math.ceil(len(text or "") / 4)


@dataclass
class KnowledgeChunk:
    """A retrievable unit of knowledge text with its embedding and metadata."""
    id: str
    text: str
    embedding: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "KnowledgeChunk":
        emb = record.get("embedding")
        return cls(
            id=str(record["id"]),
            text=record.get("text") or "",
            embedding=None if emb is None else np.asarray(emb, dtype=np.float32),
            metadata=dict(record.get("metadata") or {}),
        )

    @property
    def category(self) -> Optional[str]:
        return self.metadata.get("category")

    @property
    def tags(self) -> List[str]:
        tags = self.metadata.get("curriculum_tags") or self.metadata.get("tags") or []
        if isinstance(tags, str):
            return [tags]
        return [str(t) for t in tags]


@dataclass
class RankedCandidate:
    """A chunk plus the scores gathered while ranking it."""
    chunk: KnowledgeChunk
    vector_score: float = 0.0
    keyword_score: float = 0.0
    combined_score: float = 0.0
    profile_relevance_score: float = 0.0
    final_rank: int = 0

    @property
    def id(self) -> str:
        return self.chunk.id

    @property
    def text(self) -> str:
        return self.chunk.text


def rank_key(c: RankedCandidate):
    """Sort key: best combined score first, ties broken by chunk id."""
    return (-c.combined_score, c.id)


def assign_ranks(candidates: List[RankedCandidate]) -> List[RankedCandidate]:
    for i, c in enumerate(candidates, start=1):
        c.final_rank = i
    return candidates


@dataclass
class Framework:
    """A named decision-making framework spotted in the retained context."""
    name: str
    chunk_id: str
    source: str


@dataclass
class ContextBundle:
    """Token-budgeted, rank-ordered context handed to the generator."""
    max_tokens: int
    candidates: List[RankedCandidate] = field(default_factory=list)
    token_count: int = 0
    truncated_ids: Set[str] = field(default_factory=set)
    frameworks: List[Framework] = field(default_factory=list)
    total_input: int = 0

    def add(self, candidate: RankedCandidate, tokens: int, truncated: bool = False) -> None:
        if self.token_count + tokens > self.max_tokens:
            raise BudgetExceededError(
                f"adding {candidate.id} ({tokens} tokens) would exceed "
                f"{self.max_tokens} (currently {self.token_count})"
            )
        self.candidates.append(candidate)
        self.token_count += tokens
        if truncated:
            self.truncated_ids.add(candidate.id)

    def __len__(self) -> int:
        return len(self.candidates)

    def is_empty(self) -> bool:
        return not self.candidates

    @property
    def ids(self) -> List[str]:
        return [c.id for c in self.candidates]

    @property
    def sources(self) -> List[str]:
        seen = []
        for c in self.candidates:
            src = c.chunk.metadata.get("source")
            if src and src not in seen:
                seen.append(src)
        return seen

    def render(self) -> str:
        parts = []
        for c in self.candidates:
            meta = c.chunk.metadata
            source = meta.get("source", "unknown")
            module = meta.get("module", "general")
            parts.append(f"[{c.id}] [Source: {source} | Module: {module}]\n{c.text}")
        return "\n\n---\n\n".join(parts)
