# ===============================================
# tests/conftest.py
# Shared fakes: scripted generation client, fake
# clock, hashing embedder and a small knowledge base.
# ===============================================

import numpy as np
import pytest

from careerrag.search import Embedder, HashingEmbeddingProvider, InMemoryKnowledgeStore, KnowledgeChunk
from careerrag.search.types import RankedCandidate

DIM = 64

FOOTER = "⚠️ **Verify before you decide:** check with your school counselor."


class ScriptedClient:
    """Replays a script of replies; Exception entries are raised instead."""

    def __init__(self, script, model="scripted"):
        self.script = list(script)
        self.model = model
        self.prompts = []

    def complete(self, prompt, timeout_ms, params=None):
        self.prompts.append(prompt)
        step = self.script.pop(0) if self.script else ""
        if isinstance(step, BaseException):
            raise step
        return step


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_chunk(cid, text, embedding=None, **metadata):
    emb = None if embedding is None else np.asarray(embedding, dtype=np.float32)
    return KnowledgeChunk(id=cid, text=text, embedding=emb, metadata=metadata)


def make_candidate(cid, text="", embedding=None, score=0.5, **metadata):
    return RankedCandidate(chunk=make_chunk(cid, text, embedding, **metadata), combined_score=score)


KNOWLEDGE = [
    {
        "id": "eng-1",
        "text": "Mechanical engineering suits learners who are good at mathematics and physics. "
        "Universities ask for an APS of 30 or more.",
        "metadata": {"category": "Engineering", "module": "careers", "source": "careers.md",
                     "career_name": "Mechanical Engineer", "curriculum_tags": ["grade 12", "mathematics"]},
    },
    {
        "id": "it-1",
        "text": "Software developers write code for apps and websites. Mathematics and information "
        "technology are useful subjects.",
        "metadata": {"category": "Technology", "module": "4ir_emerging_jobs", "source": "4ir.md",
                     "career_name": "Software Developer", "grades": [11, 12]},
    },
    {
        "id": "bur-1",
        "text": "NSFAS bursaries cover tuition and accommodation for learners from low income homes.",
        "metadata": {"category": "Funding", "module": "bursaries", "source": "bursaries.md"},
    },
    {
        "id": "nurse-1",
        "text": "Nursing needs life sciences and moderate mathematics for dosage calculations.",
        "metadata": {"category": "Healthcare", "module": "careers", "source": "careers.md",
                     "career_name": "Nurse"},
    },
    {
        "id": "acc-1",
        "text": "Chartered accountants need strong mathematics and accounting marks.",
        "metadata": {"category": "Business & Finance", "module": "careers", "source": "careers.md",
                     "career_name": "Chartered Accountant"},
    },
]


@pytest.fixture
def embedder():
    return Embedder(HashingEmbeddingProvider(DIM), DIM)


@pytest.fixture
def store(embedder):
    return InMemoryKnowledgeStore.from_records(KNOWLEDGE, embedder=embedder)


@pytest.fixture
def clock():
    return FakeClock()
