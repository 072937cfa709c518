"""SQLite persistence for journal entries and their embeddings."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
from dateutil import parser as dt_parser

from .errors import ValidationError
from .schemas import EMBEDDING_DIMENSIONS, EmbeddingRecord, FacialResult, JournalEntry, SentimentResult


MUTABLE_ENTRY_FIELDS = ("ai_insight", "ai_recommendations")


def _dump(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _load(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    return json.loads(raw)


def _row_to_entry(row: sqlite3.Row) -> JournalEntry:
    facial = _load(row["facial_analysis"])
    return JournalEntry(
        id=row["id"],
        user_id=row["user_id"],
        content=row["content"],
        mood_score=int(row["mood_score"]),
        sentiment=SentimentResult.from_dict(_load(row["sentiment"]) or {}),
        emotions=_load(row["emotions"]) or {},
        facial_analysis=FacialResult.from_dict(facial) if facial else None,
        ai_insight=row["ai_insight"],
        ai_recommendations=_load(row["ai_recommendations"]),
        created_at=dt_parser.isoparse(row["created_at"]),
    )


class SQLiteJournalStore:
    """Persists journal entries and serves user-scoped queries.

    Also acts as the default embedding index: vectors are stored as float64
    blobs keyed by entry id.
    """

    def __init__(self, db_path: str):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS journal_entries (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content TEXT NOT NULL,
                mood_score INTEGER NOT NULL,
                emotions TEXT NOT NULL,
                sentiment TEXT NOT NULL,
                facial_analysis TEXT,
                ai_insight TEXT,
                ai_recommendations TEXT,
                created_at TEXT NOT NULL
            )
            """
        )
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS journal_embeddings (
                entry_id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                vector BLOB NOT NULL,
                model_version TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_entries_user_created ON journal_entries(user_id, created_at)"
        )
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_embeddings_user ON journal_embeddings(user_id)")
        self.conn.commit()

    def insert_journal_entry(self, entry: JournalEntry) -> None:
        self.conn.execute(
            """
            INSERT INTO journal_entries (
                id, user_id, content, mood_score, emotions, sentiment,
                facial_analysis, ai_insight, ai_recommendations, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                entry.user_id,
                entry.content,
                int(entry.mood_score),
                _dump(entry.emotions or {}),
                _dump(entry.sentiment.to_dict()),
                _dump(entry.facial_analysis.to_dict()) if entry.facial_analysis else None,
                entry.ai_insight,
                _dump(entry.ai_recommendations),
                entry.created_at_iso(),
            ),
        )
        self.conn.commit()

    def update_journal_entry(self, entry_id: str, fields: Dict[str, Any]) -> None:
        """Attach AI-derived fields; every other column is immutable."""
        unknown = [key for key in fields if key not in MUTABLE_ENTRY_FIELDS]
        if unknown:
            raise ValidationError(f"Journal entry fields cannot be updated: {', '.join(sorted(unknown))}")
        if not fields:
            return

        assignments = []
        params: List[Any] = []
        if "ai_insight" in fields:
            assignments.append("ai_insight = ?")
            params.append(fields["ai_insight"])
        if "ai_recommendations" in fields:
            assignments.append("ai_recommendations = ?")
            params.append(_dump(fields["ai_recommendations"]))
        params.append(entry_id)
        self.conn.execute(f"UPDATE journal_entries SET {', '.join(assignments)} WHERE id = ?", params)
        self.conn.commit()

    def fetch_entries_by_ids(self, user_id: str, ids: List[str]) -> Dict[str, JournalEntry]:
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        rows = self.conn.execute(
            f"SELECT * FROM journal_entries WHERE user_id = ? AND id IN ({placeholders})",
            [user_id, *ids],
        ).fetchall()
        return {row["id"]: _row_to_entry(row) for row in rows}

    def query_recent_entries(self, user_id: str, limit: int = 30) -> List[JournalEntry]:
        """Newest entries first."""
        rows = self.conn.execute(
            """
            SELECT * FROM journal_entries
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            (user_id, max(1, limit)),
        ).fetchall()
        return [_row_to_entry(row) for row in rows]

    def delete_journal_entry(self, user_id: str, entry_id: str) -> bool:
        """Delete an entry and its embedding together."""
        with self.conn:
            cur = self.conn.execute(
                "DELETE FROM journal_entries WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            )
            if cur.rowcount:
                self.conn.execute("DELETE FROM journal_embeddings WHERE entry_id = ?", (entry_id,))
        return cur.rowcount > 0

    def insert_embedding(self, record: EmbeddingRecord) -> None:
        vector = np.asarray(record.vector, dtype=np.float64).reshape(-1)
        if vector.shape[0] != EMBEDDING_DIMENSIONS:
            raise ValidationError(f"Embedding must have {EMBEDDING_DIMENSIONS} dimensions, got {vector.shape[0]}")
        self.conn.execute(
            """
            INSERT INTO journal_embeddings (entry_id, user_id, vector, model_version)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(entry_id) DO UPDATE SET
                user_id=excluded.user_id,
                vector=excluded.vector,
                model_version=excluded.model_version
            """,
            (record.entry_id, record.user_id, vector.tobytes(), record.model_version),
        )
        self.conn.commit()

    def query_embeddings_by_user(self, user_id: str) -> List[EmbeddingRecord]:
        rows = self.conn.execute(
            "SELECT entry_id, user_id, vector, model_version FROM journal_embeddings WHERE user_id = ?",
            (user_id,),
        ).fetchall()
        return [
            EmbeddingRecord(
                entry_id=row["entry_id"],
                user_id=row["user_id"],
                vector=np.frombuffer(row["vector"], dtype=np.float64).copy(),
                model_version=row["model_version"],
            )
            for row in rows
        ]

    def delete_embedding(self, entry_id: str) -> None:
        self.conn.execute("DELETE FROM journal_embeddings WHERE entry_id = ?", (entry_id,))
        self.conn.commit()

    def count_entries(self, user_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM journal_entries WHERE user_id = ?", (user_id,)
        ).fetchone()
        return int(row["n"]) if row else 0

    def close(self) -> None:
        self.conn.close()
