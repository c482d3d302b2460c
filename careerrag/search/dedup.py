# Embedding-based near-duplicate removal over a ranked candidate list.
#
# Greedy and order-preserving: walk candidates in rank order and keep one
# only if its cosine similarity to every kept candidate stays below the
# threshold. The earlier (higher-ranked) copy always wins. O(N^2), fine for
# the few hundred candidates a search returns.

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from careerrag.search.types import RankedCandidate

logger = logging.getLogger(__name__)


def _unit(vec) -> np.ndarray:
    v = np.asarray(vec, dtype=np.float32).reshape(-1)
    n = float(np.linalg.norm(v))
    return v / n if n else v


class Deduplicator:
    def __init__(self, similarity_threshold: float = 0.9):
        self.similarity_threshold = similarity_threshold

    def deduplicate(self, ranked: List[RankedCandidate], similarity_threshold: Optional[float] = None) -> List[RankedCandidate]:
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold
        # cosine never exceeds 1.0, so a threshold of 1.0 keeps everything
        if threshold >= 1.0 or len(ranked) < 2:
            return list(ranked)

        keep: List[RankedCandidate] = []
        kept_vecs: List[np.ndarray] = []

        for cand in ranked:
            emb = cand.chunk.embedding
            if emb is None:
                # nothing to compare against; never a duplicate
                keep.append(cand)
                continue
            v = _unit(emb)
            same_dim = [k for k in kept_vecs if k.shape == v.shape]
            if same_dim:
                sims = np.vstack(same_dim) @ v
                if np.any(sims >= threshold):
                    logger.debug(f"Dropping near-duplicate {cand.id} (max sim {float(sims.max()):.3f})")
                    continue
            keep.append(cand)
            kept_vecs.append(v)

        dropped = len(ranked) - len(keep)
        if dropped:
            logger.info(f"Dedup: dropped {dropped}/{len(ranked)} near-duplicates (threshold={threshold})")
        return keep
