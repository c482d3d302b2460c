"""
Context assembly.

Walks the deduplicated candidates in rank order and appends each one while
the running token estimate stays within max_tokens. The first chunk that does
not fit ends the walk; no repacking is attempted. If the very first chunk is
too large on its own, its text is cut to fit and the candidate is flagged as
truncated, so a non-empty input never produces an empty bundle.

Token cost is estimate_tokens(text) == ceil(len(text) / 4) on the chunk text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import List, Optional

from careerrag.errors import InputError
from careerrag.profile.types import StudentProfile
from careerrag.search.types import ContextBundle, Framework, RankedCandidate, estimate_tokens

logger = logging.getLogger(__name__)

# Decision-making frameworks worth telling the generator about by name.
FRAMEWORK_PATTERNS = {
    "V.I.S. Model": re.compile(r"V\.I\.S\.|Values.*Interest.*Skills|Values, Interests, Skills", re.IGNORECASE),
    "Career Choice Matrix": re.compile(r"career choice matrix|decision matrix", re.IGNORECASE),
    "Passion vs Pay": re.compile(r"passion vs\.? pay|passion versus pay", re.IGNORECASE),
    "70/30 Rule": re.compile(r"70/30|seventy.*thirty", re.IGNORECASE),
    "AI Augmentation": re.compile(r"AI.*augment|human.*AI collaboration", re.IGNORECASE),
    "5 Reality Check Questions": re.compile(r"5.*reality check|Monday Morning Test", re.IGNORECASE),
    "Gut Check Method": re.compile(r"gut check", re.IGNORECASE),
    "Risk Tolerance Assessment": re.compile(r"risk tolerance", re.IGNORECASE),
}


def extract_frameworks(candidates: List[RankedCandidate]) -> List[Framework]:
    found: List[Framework] = []
    for cand in candidates:
        for name, pattern in FRAMEWORK_PATTERNS.items():
            if pattern.search(cand.text) and not any(f.name == name for f in found):
                found.append(
                    Framework(
                        name=name,
                        chunk_id=cand.id,
                        source=cand.chunk.metadata.get("module") or cand.chunk.metadata.get("source") or "unknown",
                    )
                )
    return found


def _truncate(cand: RankedCandidate, max_tokens: int) -> RankedCandidate:
    """Copy of cand whose text fits in max_tokens (the store's chunk is untouched)."""
    short = replace(cand.chunk, text=cand.chunk.text[: max_tokens * 4])
    return replace(cand, chunk=short)


class ContextAssembler:
    def __init__(self, max_tokens: int = 3000):
        self.max_tokens = max_tokens

    def assemble(self, deduplicated: List[RankedCandidate], profile: StudentProfile, max_tokens: Optional[int] = None) -> ContextBundle:
        budget = self.max_tokens if max_tokens is None else max_tokens
        if budget < 1:
            raise InputError(f"max_tokens must be positive, got {budget}")

        bundle = ContextBundle(max_tokens=budget, total_input=len(deduplicated))
        for i, cand in enumerate(deduplicated):
            tokens = estimate_tokens(cand.text)
            if bundle.token_count + tokens <= budget:
                bundle.add(cand, tokens)
                continue
            if i == 0:
                cut = _truncate(cand, budget)
                bundle.add(cut, estimate_tokens(cut.text), truncated=True)
                logger.warning(f"First chunk {cand.id} ({tokens} tokens) truncated to fit {budget}")
            else:
                logger.warning(f"Token limit reached. Included {len(bundle)}/{len(deduplicated)} chunks")
            break

        bundle.frameworks = extract_frameworks(bundle.candidates)
        logger.info(
            f"Context: {len(bundle)} chunks, {bundle.token_count}/{budget} tokens"
            f" (grade={profile.grade}, frameworks={[f.name for f in bundle.frameworks]})"
        )
        return bundle
