# Data models for bias analysis. All results are immutable and advisory.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class RecommendedItem:
    """One recommendation as seen by the bias detector."""
    title: str
    description: str = ""
    category: Optional[str] = None
    similarity: float = 0.0
    confidence: float = 1.0

    @classmethod
    def from_candidate(cls, cand) -> "RecommendedItem":
        meta = cand.chunk.metadata
        title = meta.get("career_name") or meta.get("title") or cand.text.strip().split("\n", 1)[0][:80]
        return cls(
            title=str(title),
            description=cand.text,
            category=cand.chunk.category,
            similarity=cand.combined_score,
        )


@dataclass(frozen=True)
class TeachingBiasResult:
    has_bias: bool
    severity: float
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CategoryDistribution:
    categories: Tuple[str, ...] = ()
    dominant_category: Optional[str] = None
    dominance_percentage: int = 0
    dominance_share: float = 0.0
    diversity: int = 0
    has_dominance: bool = False
    distribution: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class BiasReport:
    has_bias: bool
    severity: float
    teaching: TeachingBiasResult
    distribution: CategoryDistribution
    stem_profile: bool = False
    source: str = "response"  # response | context

    @property
    def dominant_category(self) -> Optional[str]:
        return self.distribution.dominant_category
