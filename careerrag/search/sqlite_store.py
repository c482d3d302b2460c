# Knowledge store backed by SQLite FTS5 (lexical, BM25) and FAISS (vectors).
#
# Layout on disk:
#   <db_path>                 chunks table + external-content chunks_fts
#   <faiss_path>              IndexFlatIP over L2-normalized chunk embeddings
#   <faiss_path>.ids.json     FAISS row -> chunks.chunk_id
#
# build_index() writes all three from KnowledgeChunk records.

from __future__ import annotations

import json
import logging
import os
import re
import sqlite3
import threading
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from careerrag.search.store import KnowledgeStore
from careerrag.search.types import KnowledgeChunk, estimate_tokens

logger = logging.getLogger(__name__)


def _import_faiss():
    try:
        import faiss  # type: ignore
        return faiss
    except ImportError as e:
        raise RuntimeError(
            "FAISS is required for vector indexing. Install `faiss-cpu` (or `faiss-gpu`)."
        ) from e


_SCHEMA = """
CREATE TABLE IF NOT EXISTS chunks (
    chunk_id      TEXT PRIMARY KEY,
    norm_text     TEXT NOT NULL,
    metadata_json TEXT,
    token_count   INT
);

-- External-content FTS5: stores only the inverted index, reads text from chunks.norm_text via rowid
CREATE VIRTUAL TABLE IF NOT EXISTS chunks_fts USING fts5(
    norm_text,
    content='chunks',
    content_rowid='rowid'
);
"""

_FTS_WORD = re.compile(r"[0-9A-Za-z_]+")


def fts5_safe_query(raw: str) -> str:
    """
    Convert arbitrary user text to a safe FTS5 MATCH expression.
    Terms are quoted (no operator parsing) and OR-ed so partial matches count.
    """
    terms = _FTS_WORD.findall(raw or "")
    if not terms:
        return '""'  # empty phrase -> matches nothing
    return " OR ".join(f'"{t}"' for t in terms)


def _l2_normalize_rows(x: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    if x.ndim != 2:
        raise ValueError("Expected 2D array for embeddings")
    norms = np.linalg.norm(x, axis=1, keepdims=True)
    return x / np.maximum(norms, eps)


def init_sqlite(db_path: str) -> sqlite3.Connection:
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(_SCHEMA)
    except sqlite3.OperationalError as e:
        conn.close()
        raise RuntimeError("SQLite FTS5 is not available in your Python sqlite3 build.") from e
    conn.commit()
    return conn


def build_index(chunks: Iterable[KnowledgeChunk], db_path: str, faiss_path: str) -> int:
    """Write chunk rows, rebuild FTS and save a FAISS index. Returns chunk count."""
    faiss = _import_faiss()
    chunks = list(chunks)
    if not chunks:
        raise ValueError("Cannot build an index from zero chunks")
    missing = [c.id for c in chunks if c.embedding is None]
    if missing:
        raise ValueError(f"chunks without embeddings: {missing[:5]}")

    conn = init_sqlite(db_path)
    try:
        conn.executemany(
            """
            INSERT INTO chunks (chunk_id, norm_text, metadata_json, token_count)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(chunk_id) DO UPDATE SET
                norm_text=excluded.norm_text,
                metadata_json=excluded.metadata_json,
                token_count=excluded.token_count
            """,
            [(c.id, c.text, json.dumps(c.metadata, ensure_ascii=False), estimate_tokens(c.text)) for c in chunks],
        )
        # repopulate the external-content index from chunks
        conn.execute("INSERT INTO chunks_fts(chunks_fts) VALUES ('rebuild');")
        conn.commit()
    finally:
        conn.close()

    embs = _l2_normalize_rows(np.vstack([np.asarray(c.embedding, dtype=np.float32) for c in chunks]))
    index = faiss.IndexFlatIP(embs.shape[1])  # cosine via inner product on unit vectors
    index.add(embs)
    os.makedirs(os.path.dirname(os.path.abspath(faiss_path)), exist_ok=True)
    faiss.write_index(index, faiss_path)
    with open(f"{faiss_path}.ids.json", "w", encoding="utf-8") as fh:
        json.dump([c.id for c in chunks], fh, ensure_ascii=False)

    logger.info(f"Indexed {len(chunks)} chunks -> {db_path}, {faiss_path}")
    return len(chunks)


class SQLiteFaissStore(KnowledgeStore):
    def __init__(self, db_path: str, faiss_path: str):
        self.db_path = db_path
        self.faiss_path = faiss_path

        self._conn: Optional[sqlite3.Connection] = None
        self._faiss_index = None
        self._faiss_ids: Optional[List[str]] = None
        self._row_of: Dict[str, int] = {}
        # one connection shared by the search threads
        self._lock = threading.Lock()
        self._faiss_lock = threading.Lock()

    # -------------------------
    # Connections / loaders
    # -------------------------
    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        return self._conn

    def _load_faiss(self) -> Tuple[object, List[str]]:
        with self._faiss_lock:
            if self._faiss_index is None:
                self._read_faiss()
        return self._faiss_index, self._faiss_ids

    def _read_faiss(self) -> None:
        """Load the index plus its ids sidecar (FAISS row -> chunk_id)."""
        faiss = _import_faiss()
        if not os.path.exists(self.faiss_path):
            raise FileNotFoundError(f"FAISS index not found: {self.faiss_path}")
        ids_path = f"{self.faiss_path}.ids.json"
        if not os.path.exists(ids_path):
            raise FileNotFoundError(f"FAISS IDs sidecar not found: {ids_path}")
        index = faiss.read_index(self.faiss_path)
        with open(ids_path, "r", encoding="utf-8") as fh:
            ids = json.load(fh)
        if index.ntotal != len(ids):
            raise RuntimeError(f"FAISS index size ({index.ntotal}) does not match ids ({len(ids)})")
        self._faiss_index, self._faiss_ids = index, ids
        self._row_of = {cid: i for i, cid in enumerate(ids)}

    def _embedding_for(self, chunk_id: str) -> Optional[np.ndarray]:
        index, _ = self._load_faiss()
        row = self._row_of.get(chunk_id)
        if row is None:
            return None
        return np.asarray(index.reconstruct(row), dtype=np.float32)

    def _fetch(self, chunk_ids: List[str]) -> Dict[str, Tuple[str, dict]]:
        if not chunk_ids:
            return {}
        marks = ",".join("?" for _ in chunk_ids)
        with self._lock:
            rows = self._get_conn().execute(
                f"SELECT chunk_id, norm_text, metadata_json FROM chunks WHERE chunk_id IN ({marks});",
                chunk_ids,
            ).fetchall()
        return {cid: (text, json.loads(meta) if meta else {}) for cid, text, meta in rows}

    # -------------------------
    # KnowledgeStore API
    # -------------------------
    def vector_search(self, embedding: np.ndarray, limit: int) -> List[KnowledgeChunk]:
        index, ids = self._load_faiss()
        if limit <= 0 or index.ntotal == 0:
            return []
        q = np.asarray(embedding, dtype=np.float32).reshape(1, -1)
        if q.shape[1] != index.d:
            raise ValueError(f"Query dim {q.shape[1]} != index dim {index.d}")
        q = _l2_normalize_rows(q)
        _, rows = index.search(q, min(limit, index.ntotal))

        hit_ids = [ids[int(r)] for r in rows[0] if 0 <= int(r) < len(ids)]
        docs = self._fetch(hit_ids)
        out = []
        for cid in hit_ids:
            if cid not in docs:
                logger.warning(f"FAISS row for {cid} has no chunks row")
                continue
            text, meta = docs[cid]
            out.append(KnowledgeChunk(id=cid, text=text, embedding=self._embedding_for(cid), metadata=meta))
        return out

    def keyword_search(self, query: str, limit: int) -> List[KnowledgeChunk]:
        if limit <= 0:
            return []
        sql = """
        SELECT c.chunk_id, c.norm_text, c.metadata_json, bm25(chunks_fts) AS rank
        FROM chunks_fts JOIN chunks c ON c.rowid = chunks_fts.rowid
        WHERE chunks_fts MATCH ?
        ORDER BY rank, c.chunk_id
        LIMIT ?;
        """
        with self._lock:
            rows = self._get_conn().execute(sql, (fts5_safe_query(query), limit)).fetchall()
        self._load_faiss()
        return [
            KnowledgeChunk(
                id=cid,
                text=text,
                embedding=self._embedding_for(cid),
                metadata=dict(json.loads(meta) if meta else {}, bm25=float(rank)),
            )
            for cid, text, meta, rank in rows
        ]

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
