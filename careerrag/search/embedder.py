"""
Query embedding.

Embedder wraps a provider (anything with ``embed(text) -> sequence[float]``)
and guarantees a non-empty input, a fixed output dimension and unit length.
It never retries: provider failures propagate as ProviderError subclasses.

Providers:
  - OllamaEmbeddingProvider    /api/embeddings over HTTP (requests)
  - OpenAIEmbeddingProvider    OpenAI embeddings API
  - LocalEmbeddingProvider     sentence-transformers model on this machine
  - HashingEmbeddingProvider   deterministic bag-of-words hashing, no network
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from typing import Optional, Sequence

import numpy as np
import requests

from careerrag.errors import EmptyInputError, ProviderError, ProviderTimeout, ProviderUnavailable

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[0-9A-Za-z_]+")


def l2_normalize(vec: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    norm = float(np.linalg.norm(vec))
    return vec / max(norm, eps)


class Embedder:
    def __init__(self, provider, dimension: int):
        self.provider = provider
        self.dimension = dimension

    def embed(self, text: str) -> np.ndarray:
        if text is None or not text.strip():
            raise EmptyInputError("cannot embed empty text")
        try:
            raw = self.provider.embed(text.strip())
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderUnavailable(f"embedding provider failed: {e}") from e

        vec = np.asarray(raw, dtype=np.float32).reshape(-1)
        if vec.shape[0] != self.dimension:
            raise ProviderError(f"embedding dim {vec.shape[0]} != expected {self.dimension}")
        return l2_normalize(vec)


class HashingEmbeddingProvider:
    """Signed feature hashing of lower-cased word tokens."""

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed(self, text: str) -> np.ndarray:
        vec = np.zeros(self.dimension, dtype=np.float32)
        for tok in _WORD_RE.findall(text.lower()):
            h = int.from_bytes(hashlib.md5(tok.encode("utf-8")).digest()[:8], "big")
            sign = 1.0 if (h >> 63) & 1 else -1.0
            vec[h % self.dimension] += sign
        return vec


class OllamaEmbeddingProvider:
    def __init__(self, model: str = "bge-m3:latest", host: Optional[str] = None, timeout: float = 30):
        self.model = model
        self.host = host or os.getenv("OLLAMA_HOST", "http://localhost:11434")
        self.timeout = timeout

    def embed(self, text: str) -> Sequence[float]:
        url = f"{self.host}/api/embeddings"
        try:
            resp = requests.post(url, json={"model": self.model, "prompt": text}, timeout=self.timeout)
            resp.raise_for_status()
        except requests.Timeout as e:
            raise ProviderTimeout(f"ollama embeddings timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(f"ollama embeddings failed: {e}") from e
        return resp.json()["embedding"]


class OpenAIEmbeddingProvider:
    def __init__(self, model: str = "text-embedding-3-small", api_key: Optional[str] = None, timeout: float = 30):
        import openai

        self._openai = openai
        self.model = model
        self.client = openai.OpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"), timeout=timeout)

    def embed(self, text: str) -> Sequence[float]:
        try:
            resp = self.client.embeddings.create(model=self.model, input=text)
        except self._openai.APITimeoutError as e:
            raise ProviderTimeout(str(e)) from e
        except self._openai.OpenAIError as e:
            raise ProviderUnavailable(str(e)) from e
        return resp.data[0].embedding


class LocalEmbeddingProvider:
    """sentence-transformers model, loaded on first use."""

    def __init__(self, model_name: str = "BAAI/bge-small-en-v1.5", device: str = "cpu"):
        self.model_name = model_name
        self.device = device
        self._model = None

    def _get_model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer  # heavy import delayed

            self._model = SentenceTransformer(self.model_name, device=self.device)
        return self._model

    def embed(self, text: str) -> np.ndarray:
        return self._get_model().encode(
            [text], convert_to_numpy=True, normalize_embeddings=False, show_progress_bar=False
        )[0]


def build_embedder(settings) -> Embedder:
    """Pick an embedding provider from settings.EMBED_PROVIDER."""
    kind = settings.EMBED_PROVIDER.lower()
    if kind == "ollama":
        provider = OllamaEmbeddingProvider(model=settings.EMBED_MODEL, host=settings.OLLAMA_HOST)
    elif kind == "openai":
        provider = OpenAIEmbeddingProvider(model=settings.EMBED_MODEL, api_key=settings.OPENAI_API_KEY)
    elif kind == "local":
        provider = LocalEmbeddingProvider(model_name=settings.EMBED_MODEL)
    elif kind == "hashing":
        provider = HashingEmbeddingProvider(dimension=settings.EMBED_DIM)
    else:
        raise ValueError(f"unknown EMBED_PROVIDER: {settings.EMBED_PROVIDER}")
    logger.info(f"Embedding provider: {kind} (dim={settings.EMBED_DIM})")
    return Embedder(provider, dimension=settings.EMBED_DIM)
