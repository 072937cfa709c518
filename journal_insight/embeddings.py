"""Per-entry embeddings and user-scoped similarity search."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Set

import chromadb
import numpy as np

from .config import EmbeddingConfig
from .schemas import EmbeddingRecord, SimilarEntry
from .vectors import HashEmbeddingCodec, cosine_similarity


logger = logging.getLogger(__name__)


class ChromaEmbeddingIndex:
    """Stores entry vectors in a local Chroma collection.

    Vectors are always supplied by our own codec; Chroma only persists them
    and filters by ``user_id`` metadata.
    """

    def __init__(self, chroma_dir: str, config: EmbeddingConfig, client=None):
        if client is None:
            Path(chroma_dir).mkdir(parents=True, exist_ok=True)
            client = chromadb.PersistentClient(path=chroma_dir)
        self.client = client
        self.collection = self.client.get_or_create_collection(
            name=config.collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    def insert_embedding(self, record: EmbeddingRecord) -> None:
        self.collection.upsert(
            ids=[record.entry_id],
            embeddings=[np.asarray(record.vector, dtype=np.float32).tolist()],
            metadatas=[{"user_id": record.user_id, "model_version": record.model_version}],
        )

    def query_embeddings_by_user(self, user_id: str) -> List[EmbeddingRecord]:
        records = self.collection.get(where={"user_id": user_id}, include=["embeddings", "metadatas"])
        # Embeddings may come back as a NumPy array.
        ids = records.get("ids") or []
        embeddings = records.get("embeddings")
        if embeddings is None:
            embeddings = []
        metas = records.get("metadatas")
        if metas is None:
            metas = []

        out: List[EmbeddingRecord] = []
        for idx, entry_id in enumerate(ids):
            if idx >= len(embeddings):
                break
            meta = metas[idx] if idx < len(metas) and metas[idx] else {}
            if meta.get("user_id") != user_id:
                continue
            out.append(
                EmbeddingRecord(
                    entry_id=entry_id,
                    user_id=user_id,
                    vector=np.asarray(embeddings[idx], dtype=np.float64),
                    model_version=str(meta.get("model_version", "")),
                )
            )
        return out

    def delete_embedding(self, entry_id: str) -> None:
        self.collection.delete(ids=[entry_id])

    def count(self) -> int:
        return self.collection.count()


class EmbeddingStore:
    """Encodes entries, persists their vectors and finds similar entries.

    ``index`` persists vectors (``insert_embedding``,
    ``query_embeddings_by_user``, ``delete_embedding``); ``entries`` resolves
    entry ids to content (``fetch_entries_by_ids``). The SQLite store
    implements both.
    """

    def __init__(self, index, entries, codec=None):
        self.index = index
        self.entries = entries
        self.codec = codec or HashEmbeddingCodec()

    def store(self, entry_id: str, user_id: str, text: str) -> EmbeddingRecord:
        record = EmbeddingRecord(
            entry_id=entry_id,
            user_id=user_id,
            vector=self.codec.encode(text),
            model_version=self.codec.model_version,
        )
        self.index.insert_embedding(record)
        logger.debug("Stored embedding for entry %s (%s)", entry_id, record.model_version)
        return record

    def delete(self, entry_id: str) -> None:
        self.index.delete_embedding(entry_id)

    def find_similar(
        self,
        query: str,
        user_id: str,
        limit: int = 5,
        threshold: float = 0.7,
        exclude_ids: Iterable[str] = (),
    ) -> List[SimilarEntry]:
        """Return the user's most similar entries, best first; [] on store failure."""
        try:
            return self._find_similar(query, user_id, limit, threshold, set(exclude_ids))
        except Exception as exc:
            logger.warning("Similar-entry search failed for user %s: %s", user_id, exc)
            return []

    def _find_similar(
        self, query: str, user_id: str, limit: int, threshold: float, exclude_ids: Set[str]
    ) -> List[SimilarEntry]:
        if limit <= 0:
            return []
        query_vec = self.codec.encode(query)

        scored = []
        for record in self.index.query_embeddings_by_user(user_id):
            if record.user_id != user_id or record.model_version != self.codec.model_version:
                continue
            if record.entry_id in exclude_ids:
                continue
            sim = cosine_similarity(query_vec, record.vector)
            if sim >= threshold:
                scored.append((record.entry_id, sim))

        scored.sort(key=lambda item: item[1], reverse=True)
        if not scored:
            return []

        # Over-fetch so entries deleted behind the index do not shrink the result.
        entries = self.entries.fetch_entries_by_ids(user_id, [entry_id for entry_id, _ in scored])
        out: List[SimilarEntry] = []
        for entry_id, sim in scored:
            entry = entries.get(entry_id)
            if entry is None or entry.user_id != user_id:
                continue
            out.append(
                SimilarEntry(
                    entry_id=entry_id,
                    content=entry.content,
                    similarity=round(sim, 6),
                    mood_score=entry.mood_score,
                    created_at=entry.created_at,
                )
            )
            if len(out) >= limit:
                break
        return out


def build_embedding_index(backend: str, store, chroma_dir: str, config: EmbeddingConfig):
    """Pick the vector index named by ``embeddings.backend``."""
    if backend == "chroma":
        return ChromaEmbeddingIndex(chroma_dir, config)
    if backend == "sqlite":
        return store
    raise ValueError(f"Unknown embedding backend: {backend}")
