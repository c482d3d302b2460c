# ===============================================
# tests/test_embedder.py
# Fixed dimension, normalisation, error mapping.
# ===============================================

import numpy as np
import pytest
import requests

from careerrag.errors import EmptyInputError, ProviderError, ProviderTimeout, ProviderUnavailable
from careerrag.search import Embedder, HashingEmbeddingProvider
from careerrag.search.embedder import OllamaEmbeddingProvider

from conftest import DIM


class _Raising:
    def __init__(self, exc):
        self.exc = exc

    def embed(self, text):
        raise self.exc


class _Fixed:
    def __init__(self, vec):
        self.vec = vec

    def embed(self, text):
        return self.vec


@pytest.mark.parametrize("text", ["maths", "I want to be an engineer in Durban", "x" * 5000])
def test_fixed_dimension_and_unit_norm(embedder, text):
    vec = embedder.embed(text)
    assert vec.shape == (DIM,)
    assert np.linalg.norm(vec) == pytest.approx(1.0, abs=1e-5)


def test_deterministic(embedder):
    assert np.array_equal(embedder.embed("nursing careers"), embedder.embed("nursing careers"))


@pytest.mark.parametrize("text", ["", "  \n\t", None])
def test_empty_text(embedder, text):
    with pytest.raises(EmptyInputError):
        embedder.embed(text)


def test_provider_errors_propagate_unretried():
    with pytest.raises(ProviderTimeout):
        Embedder(_Raising(ProviderTimeout("slow")), DIM).embed("hello")
    with pytest.raises(ProviderUnavailable):
        Embedder(_Raising(ConnectionError("down")), DIM).embed("hello")


def test_wrong_dimension_rejected():
    with pytest.raises(ProviderError):
        Embedder(_Fixed([1.0, 0.0, 0.0]), DIM).embed("hello")


def test_hashing_provider_shares_tokens():
    p = HashingEmbeddingProvider(DIM)
    a, b, c = p.embed("mathematics physics"), p.embed("physics mathematics"), p.embed("cooking")
    assert np.array_equal(a, b)
    assert not np.array_equal(a, c)


def test_ollama_timeout_maps_to_provider_timeout(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests, "post", fake_post)
    with pytest.raises(ProviderTimeout):
        Embedder(OllamaEmbeddingProvider(host="http://ollama.invalid"), DIM).embed("hello")


def test_ollama_connection_error_maps_to_unavailable(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "post", fake_post)
    with pytest.raises(ProviderUnavailable):
        Embedder(OllamaEmbeddingProvider(host="http://ollama.invalid"), DIM).embed("hello")
