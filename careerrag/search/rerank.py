"""
Profile-aware reranking.

Each candidate gets a profile relevance score in [0, 1] built from:

  subjects     +subject_match per profile subject found in text/tags
  interests    +interest_match per interest found in text/tags
  weaknesses   -weakness_penalty per weak subject the chunk leans on
  grade        +grade_match when grade/curriculum tags include the learner's grade
  constraints  +constraint_match per budget/location tag agreeing with the profile,
               +funding_match for bursary content when budget is low/medium
  modules      +module_priority * (5 - position) for priority knowledge modules

The ranking score becomes

  combined = retrieval_weight * combined + profile_weight * relevance

and the list is re-sorted (ties by chunk id) with fresh ranks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List

from careerrag.profile.types import StudentProfile
from careerrag.search.text import mentions
from careerrag.search.types import RankedCandidate, assign_ranks, rank_key

logger = logging.getLogger(__name__)

_FUNDING_RE = re.compile(r"\b(bursar(?:y|ies)|scholarships?|funding|nsfas)\b", re.IGNORECASE)


@dataclass(frozen=True)
class RerankWeights:
    subject_match: float = 0.10
    interest_match: float = 0.08
    weakness_penalty: float = 0.05
    grade_match: float = 0.20
    constraint_match: float = 0.15
    funding_match: float = 0.15
    module_priority: float = 0.05


def _grade_tags(meta: dict) -> set:
    found = set()
    grades = meta.get("grades", meta.get("grade"))
    if grades is not None:
        if not isinstance(grades, (list, tuple, set)):
            grades = [grades]
        for g in grades:
            m = re.search(r"\d+", str(g))
            if m:
                found.add(int(m.group(0)))
    for tag in meta.get("curriculum_tags") or []:
        m = re.search(r"grade[\s_-]*(\d+)", str(tag), re.IGNORECASE)
        if m:
            found.add(int(m.group(1)))
    return found


def _norm(value) -> str:
    return str(value).strip().lower() if value is not None else ""


class Reranker:
    def __init__(self, weights: RerankWeights = RerankWeights(), retrieval_weight: float = 0.6, profile_weight: float = 0.4):
        self.weights = weights
        self.retrieval_weight = retrieval_weight
        self.profile_weight = profile_weight

    def profile_relevance(self, cand: RankedCandidate, profile: StudentProfile) -> float:
        w = self.weights
        chunk = cand.chunk
        meta = chunk.metadata
        haystack = " ".join([chunk.text, *chunk.tags, _norm(meta.get("career_name"))])
        score = 0.0

        for subject in sorted(profile.subjects):
            if mentions(haystack, subject):
                score += w.subject_match
        for interest in sorted(profile.interests):
            if mentions(haystack, interest):
                score += w.interest_match
        for weak in sorted(profile.weaknesses):
            if mentions(haystack, weak):
                score -= w.weakness_penalty

        if profile.grade is not None and profile.grade in _grade_tags(meta):
            score += w.grade_match

        c = profile.constraints
        if c.budget and _norm(meta.get("budget")) == c.budget:
            score += w.constraint_match
        if c.location and _norm(meta.get("location")) == _norm(c.location):
            score += w.constraint_match
        if c.budget in ("low", "medium") and _FUNDING_RE.search(chunk.text):
            score += w.funding_match

        module = meta.get("module")
        if module and module in profile.priority_modules:
            pos = profile.priority_modules.index(module)
            score += max(0, 5 - pos) * w.module_priority

        return min(1.0, max(0.0, score))

    def rerank(self, candidates: List[RankedCandidate], profile: StudentProfile) -> List[RankedCandidate]:
        if not candidates:
            return []
        for cand in candidates:
            rel = self.profile_relevance(cand, profile)
            cand.profile_relevance_score = rel
            blended = self.retrieval_weight * cand.combined_score + self.profile_weight * rel
            cand.combined_score = min(1.0, max(0.0, blended))
        ranked = sorted(candidates, key=rank_key)
        assign_ranks(ranked)
        logger.info(f"Reranked {len(ranked)} candidates; top={ranked[0].id} ({ranked[0].combined_score:.3f})")
        return ranked
