# ===============================================
# tests/test_sqlite_store.py
# SQLite FTS5 + FAISS knowledge store, built into
# a temp dir from the shared knowledge records.
# ===============================================

import json

import pytest

faiss = pytest.importorskip("faiss")

from careerrag.search import HybridSearch, InMemoryKnowledgeStore
from careerrag.search.sqlite_store import SQLiteFaissStore, build_index, fts5_safe_query

from conftest import KNOWLEDGE


@pytest.fixture
def indexed(tmp_path, embedder):
    chunks = InMemoryKnowledgeStore.from_records(KNOWLEDGE, embedder=embedder).chunks
    db, index = str(tmp_path / "kb.sqlite"), str(tmp_path / "kb.faiss")
    assert build_index(chunks, db, index) == len(KNOWLEDGE)
    store = SQLiteFaissStore(db, index)
    yield store, chunks
    store.close()


def test_fts5_safe_query():
    assert fts5_safe_query('nsfas "OR" bursary*') == '"nsfas" OR "OR" OR "bursary"'
    assert fts5_safe_query("?!") == '""'


def test_vector_search_finds_exact_chunk(indexed, embedder):
    store, chunks = indexed
    target = chunks[2]
    hits = store.vector_search(embedder.embed(target.text), limit=3)
    assert hits[0].id == target.id
    assert hits[0].metadata["category"] == target.metadata["category"]
    assert hits[0].embedding.shape == target.embedding.shape


def test_keyword_search_bm25(indexed):
    store, _ = indexed
    hits = store.keyword_search("bursaries", limit=5)
    assert [h.id for h in hits] == ["bur-1"]
    assert "bm25" in hits[0].metadata
    assert store.keyword_search("bursaries", limit=0) == []


def test_hybrid_search_over_sqlite(indexed, embedder):
    store, _ = indexed
    query = "mathematics careers"
    ranked = HybridSearch(store).search(query, embedder.embed(query), limit=4)
    assert 0 < len(ranked) <= 4
    assert [c.final_rank for c in ranked] == list(range(1, len(ranked) + 1))


def test_mismatched_ids_sidecar(indexed):
    store, _ = indexed
    with open(f"{store.faiss_path}.ids.json", "w", encoding="utf-8") as fh:
        json.dump(["only-one"], fh)
    fresh = SQLiteFaissStore(store.db_path, store.faiss_path)
    with pytest.raises(RuntimeError):
        fresh.vector_search([0.0] * 64, limit=1)


def test_missing_index(tmp_path):
    store = SQLiteFaissStore(str(tmp_path / "none.sqlite"), str(tmp_path / "none.faiss"))
    with pytest.raises(FileNotFoundError):
        store.vector_search([0.0] * 64, limit=1)
