from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from journal_insight.classifiers import TextSentimentClassifier
from journal_insight.config import AppConfig
from journal_insight.schemas import EMBEDDING_DIMENSIONS, JournalEntry
from journal_insight.storage import SQLiteJournalStore


_BASE_TIME = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)
_counter = itertools.count()


def make_entry(user_id: str, content: str, mood_score: int = 50, entry_id: str = None, minutes: int = None) -> JournalEntry:
    n = next(_counter)
    sentiment = TextSentimentClassifier().classify(content)
    return JournalEntry(
        id=entry_id or f"entry-{n}",
        user_id=user_id,
        content=content,
        mood_score=mood_score,
        sentiment=sentiment,
        emotions=dict(sentiment.emotions),
        created_at=_BASE_TIME + timedelta(minutes=n if minutes is None else minutes),
    )


def unit_vector_at(similarity: float, axis: int = 0, other: int = 1) -> np.ndarray:
    """Unit vector whose cosine with basis vector ``axis`` equals ``similarity``."""
    vec = np.zeros(EMBEDDING_DIMENSIONS)
    vec[axis] = similarity
    vec[other] = np.sqrt(max(0.0, 1.0 - similarity ** 2))
    return vec


class AxisCodec:
    """Test codec mapping every text onto the first basis vector."""

    model_version = "axis-test"
    dimensions = EMBEDDING_DIMENSIONS

    def encode(self, text: str) -> np.ndarray:
        vec = np.zeros(EMBEDDING_DIMENSIONS)
        vec[0] = 1.0
        return vec


@pytest.fixture
def store(tmp_path):
    db = SQLiteJournalStore(str(tmp_path / "journal.db"))
    yield db
    db.close()


@pytest.fixture
def offline_config(tmp_path):
    return AppConfig.from_dict(
        {
            "paths": {
                "sqlite_path": str(tmp_path / "journal.db"),
                "chroma_dir": str(tmp_path / "chroma"),
            },
            "generation": {"enabled": False},
        },
        base_dir=tmp_path,
    )


class KeyedCodec:
    """Test codec giving every distinct text its own orthogonal basis vector."""

    model_version = "keyed-test"
    dimensions = EMBEDDING_DIMENSIONS

    def __init__(self):
        self._slots = {}

    def encode(self, text: str) -> np.ndarray:
        slot = self._slots.setdefault(text, len(self._slots))
        vec = np.zeros(EMBEDDING_DIMENSIONS)
        vec[slot] = 1.0
        return vec
