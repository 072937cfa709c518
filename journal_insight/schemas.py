"""Core data structures shared across modules."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np


EMBEDDING_DIMENSIONS = 384

TEXT_EMOTIONS = ["joy", "sadness", "anger", "fear", "surprise", "disgust"]
FACIAL_EMOTIONS = ["happy", "sad", "angry", "fearful", "disgusted", "surprised", "neutral"]

TREND_IMPROVING = "improving"
TREND_DECLINING = "declining"
TREND_STABLE = "stable"
TREND_INSUFFICIENT = "insufficient-data"

RISK_LEVELS = ["low", "moderate", "high"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SentimentResult:
    """Keyword-based text sentiment; emotion scores are independent."""

    label: str
    confidence: float
    emotions: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SentimentResult":
        return cls(
            label=str(data.get("label", "neutral")),
            confidence=float(data.get("confidence", 0.5)),
            emotions={k: float(v) for k, v in (data.get("emotions") or {}).items()},
        )


@dataclass
class FacialResult:
    """Normalized 7-way facial emotion distribution."""

    emotions: Dict[str, float]
    dominant_emotion: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FacialResult":
        return cls(
            emotions={k: float(v) for k, v in (data.get("emotions") or {}).items()},
            dominant_emotion=str(data.get("dominant_emotion", "neutral")),
            confidence=float(data.get("confidence", 0.7)),
        )


@dataclass
class JournalEntry:
    """A persisted journal entry; only the ai_* fields change after insert."""

    id: str
    user_id: str
    content: str
    mood_score: int
    sentiment: SentimentResult
    emotions: Dict[str, float] = field(default_factory=dict)
    facial_analysis: Optional[FacialResult] = None
    ai_insight: Optional[str] = None
    ai_recommendations: Optional[List[str]] = None
    created_at: datetime = field(default_factory=utcnow)

    def created_at_iso(self) -> str:
        return self.created_at.isoformat()


@dataclass
class MoodRecord:
    """Minimal history record consumed by the mood aggregator."""

    mood_score: Optional[int]
    emotions: Dict[str, float] = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass
class EmbeddingRecord:
    """One vector per journal entry."""

    entry_id: str
    user_id: str
    vector: np.ndarray
    model_version: str


@dataclass
class SimilarEntry:
    entry_id: str
    content: str
    similarity: float
    mood_score: Optional[int]
    created_at: Optional[datetime]


@dataclass
class UserHistorySummary:
    avg_mood_score: float = 50.0
    common_emotions: List[str] = field(default_factory=list)
    recent_trend: str = TREND_INSUFFICIENT


@dataclass
class RAGContext:
    """Per-request retrieval context; never persisted."""

    query: str
    similar_entries: List[SimilarEntry] = field(default_factory=list)
    user_history: UserHistorySummary = field(default_factory=UserHistorySummary)


@dataclass
class MentalHealthContext:
    """Mood snapshot used for strategies, plans and check-in insights."""

    current_mood: str = ""
    journal_entry: str = ""
    mood_history: List[int] = field(default_factory=list)
    sentiment: Optional[SentimentResult] = None
    risk_level: str = "moderate"


@dataclass
class InterventionPlan:
    immediate: List[str] = field(default_factory=list)
    short_term: List[str] = field(default_factory=list)
    long_term: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return asdict(self)


@dataclass
class TranscriptResult:
    """One recognition event from the audio-transcript source."""

    transcript: str
    confidence: float = 0.9
    is_final: bool = False


@dataclass
class JournalSubmission:
    """Outcome of one pipeline run."""

    entry: JournalEntry
    context: Optional[RAGContext] = None
    insight: str = ""
    recommendations: List[str] = field(default_factory=list)
