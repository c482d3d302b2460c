# ===============================================
# tests/test_dedup.py
# Greedy near-duplicate removal.
# ===============================================

import itertools

import numpy as np
import pytest

from careerrag.search import Deduplicator

from conftest import DIM, make_candidate


def _vec(cos_with_axis0, axis=1):
    """Unit vector with the given cosine to e0, tilted towards e_axis."""
    v = np.zeros(DIM, dtype=np.float32)
    v[0] = cos_with_axis0
    v[axis] = np.sqrt(1 - cos_with_axis0 ** 2)
    return v


def _cos(a, b):
    return float(a @ b / (np.linalg.norm(a) * np.linalg.norm(b)))


def test_higher_ranked_copy_wins():
    first = make_candidate("first", embedding=_vec(1.0), score=0.9)
    second = make_candidate("second", embedding=_vec(0.95), score=0.8)
    out = Deduplicator(0.9).deduplicate([first, second])
    assert [c.id for c in out] == ["first"]


def test_threshold_one_is_identity():
    same = [make_candidate(f"c{i}", embedding=_vec(1.0)) for i in range(4)]
    out = Deduplicator().deduplicate(same, similarity_threshold=1.0)
    assert [c.id for c in out] == [c.id for c in same]


def test_pairwise_bound_and_order():
    rng = np.random.default_rng(7)
    base = rng.normal(size=DIM).astype(np.float32)
    cands = []
    for i in range(12):
        noise = rng.normal(size=DIM).astype(np.float32) * (0.05 if i % 3 else 1.0)
        cands.append(make_candidate(f"c{i:02d}", embedding=base + noise))

    out = Deduplicator(0.9).deduplicate(cands)

    kept = [c.id for c in out]
    assert kept == [c.id for c in cands if c.id in kept]  # input order preserved
    for a, b in itertools.combinations(out, 2):
        assert _cos(a.chunk.embedding, b.chunk.embedding) < 0.9


def test_missing_embeddings_are_kept():
    a = make_candidate("a", embedding=_vec(1.0))
    b = make_candidate("b")
    c = make_candidate("c")
    assert [x.id for x in Deduplicator().deduplicate([a, b, c])] == ["a", "b", "c"]


@pytest.mark.parametrize("n", [0, 1])
def test_tiny_inputs(n):
    cands = [make_candidate("only", embedding=_vec(1.0))][:n]
    assert Deduplicator().deduplicate(cands) == cands
