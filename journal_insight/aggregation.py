"""Rolling mood statistics over a user's journal history."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .schemas import (
    TREND_DECLINING,
    TREND_IMPROVING,
    TREND_INSUFFICIENT,
    TREND_STABLE,
    UserHistorySummary,
)


BASELINE_MOOD = 50.0
TREND_WINDOW = 7
TREND_THRESHOLD = 10.0
MAX_COMMON_EMOTIONS = 3


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _score_of(record: Any) -> Optional[float]:
    score = getattr(record, "mood_score", None)
    if score is None:
        return None
    return float(score)


def _classify_difference(difference: float) -> str:
    if difference > TREND_THRESHOLD:
        return TREND_IMPROVING
    if difference < -TREND_THRESHOLD:
        return TREND_DECLINING
    return TREND_STABLE


def recent_trend(scores: Sequence[float]) -> str:
    """Trend of newest-first scores.

    With two full windows available the newest week is compared with the
    week before it; otherwise the newest week is split in half.
    """
    if len(scores) >= 2 * TREND_WINDOW:
        newer = scores[:TREND_WINDOW]
        older = scores[TREND_WINDOW : 2 * TREND_WINDOW]
        return _classify_difference(_mean(newer) - _mean(older))

    window = list(scores[:TREND_WINDOW])
    if len(window) < 3:
        return TREND_INSUFFICIENT
    split = len(window) // 2
    return _classify_difference(_mean(window[:split]) - _mean(window[split:]))


class MoodAggregator:
    """Summarizes history records ordered newest first.

    Records are any objects exposing ``mood_score``, ``emotions`` and
    ``created_at`` (``JournalEntry`` and ``MoodRecord`` both qualify).
    """

    def analyze_history(self, records: Sequence[Any]) -> UserHistorySummary:
        if not records:
            return UserHistorySummary(
                avg_mood_score=BASELINE_MOOD,
                common_emotions=[],
                recent_trend=TREND_INSUFFICIENT,
            )

        scores = [score for score in (_score_of(record) for record in records) if score is not None]
        avg = _mean(scores) if scores else BASELINE_MOOD

        totals: Dict[str, float] = {}
        for record in records:
            for emotion, value in (getattr(record, "emotions", None) or {}).items():
                totals[emotion] = totals.get(emotion, 0.0) + float(value or 0.0)
        # sorted() is stable, so equal totals keep first-seen order.
        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        common = [emotion for emotion, _ in ranked[:MAX_COMMON_EMOTIONS]]

        return UserHistorySummary(
            avg_mood_score=avg,
            common_emotions=common,
            recent_trend=recent_trend(scores),
        )


def risk_level(mood_score: float) -> str:
    if mood_score < 40:
        return "high"
    if mood_score < 60:
        return "moderate"
    return "low"


def trend_phrase(mood_history: Sequence[float]) -> str:
    """Describe a chronological (oldest first) mood series for prompts."""
    if len(mood_history) < 2:
        return "insufficient data"
    if len(mood_history) < 2 * TREND_WINDOW:
        return "new data"

    recent: List[float] = list(mood_history[-TREND_WINDOW:])
    older: List[float] = list(mood_history[-2 * TREND_WINDOW : -TREND_WINDOW])
    diff = _mean(recent) - _mean(older)

    if diff > 10:
        return "improving significantly"
    if diff > 5:
        return "improving gradually"
    if diff < -10:
        return "declining significantly"
    if diff < -5:
        return "declining gradually"
    return "stable"
