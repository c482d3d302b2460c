# Makes the folder importable as a package.
# Exports the retrieval stages and their data types for convenience.

from .context import ContextAssembler
from .dedup import Deduplicator
from .embedder import Embedder, HashingEmbeddingProvider, build_embedder
from .hybrid import HybridSearch
from .rerank import Reranker, RerankWeights
from .store import InMemoryKnowledgeStore, KnowledgeStore
from .types import ContextBundle, KnowledgeChunk, RankedCandidate, estimate_tokens

__all__ = [
    "ContextAssembler",
    "Deduplicator",
    "Embedder",
    "HashingEmbeddingProvider",
    "build_embedder",
    "HybridSearch",
    "Reranker",
    "RerankWeights",
    "InMemoryKnowledgeStore",
    "KnowledgeStore",
    "ContextBundle",
    "KnowledgeChunk",
    "RankedCandidate",
    "estimate_tokens",
]
