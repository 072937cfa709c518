"""Text and facial emotion scoring plus mood-score helpers."""

from __future__ import annotations

import hashlib
import math
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .schemas import FACIAL_EMOTIONS, TEXT_EMOTIONS, FacialResult, SentimentResult


POSITIVE_KEYWORDS = [
    "happy",
    "good",
    "great",
    "excellent",
    "wonderful",
    "amazing",
    "love",
    "joy",
    "excited",
    "grateful",
]
NEGATIVE_KEYWORDS = [
    "sad",
    "bad",
    "terrible",
    "awful",
    "hate",
    "depressed",
    "anxious",
    "worried",
    "angry",
    "frustrated",
]

# Text-level cues for the secondary emotions: (cues, step per hit, cap).
EMOTION_CUES: Dict[str, Tuple[Tuple[str, ...], float, float]] = {
    "anger": (("angry", "hate", "furious", "frustrated", "mad", "annoyed"), 0.25, 0.5),
    "fear": (("worried", "anxious", "afraid", "scared", "nervous", "panic"), 0.3, 0.6),
    "surprise": (("surprised", "shocked", "unexpected", "sudden"), 0.15, 0.3),
    "disgust": (("disgusted", "gross", "sick of", "revolting"), 0.1, 0.2),
}
_CUE_PATTERNS = {
    emotion: re.compile(r"\b(?:" + "|".join(re.escape(cue) for cue in cues) + r")\b")
    for emotion, (cues, _, _) in EMOTION_CUES.items()
}

NEUTRAL_CONFIDENCE = 0.5

# Arg-max ties resolve to the earliest label here.
FACIAL_TIE_PRIORITY = ["neutral", "happy", "sad", "surprised", "fearful", "angry", "disgusted"]

# Default per-label (offset, spread) used when no facial model is wired in.
_FRAME_SCORE_RANGES = {
    "happy": (0.3, 0.4),
    "sad": (0.0, 0.2),
    "angry": (0.0, 0.3),
    "fearful": (0.0, 0.2),
    "disgusted": (0.0, 0.2),
    "surprised": (0.0, 0.3),
    "neutral": (0.0, 0.3),
}

POSITIVE_FACIAL = ["happy", "surprised"]
NEGATIVE_FACIAL = ["sad", "angry", "fearful", "disgusted"]

FacialModel = Callable[[Any], Union[Sequence[float], Mapping[str, float]]]


def _count_matches(tokens: List[str], keywords: List[str]) -> int:
    return sum(1 for token in tokens if any(keyword in token for keyword in keywords))


class TextSentimentClassifier:
    """Keyword-frequency sentiment with deterministic scores."""

    def __init__(
        self,
        positive_keywords: Optional[List[str]] = None,
        negative_keywords: Optional[List[str]] = None,
    ):
        self.positive_keywords = positive_keywords or POSITIVE_KEYWORDS
        self.negative_keywords = negative_keywords or NEGATIVE_KEYWORDS

    def classify(self, text: str) -> SentimentResult:
        lowered = (text or "").lower()
        tokens = lowered.split()
        if not tokens:
            return SentimentResult(
                label="neutral",
                confidence=NEUTRAL_CONFIDENCE,
                emotions={emotion: 0.0 for emotion in TEXT_EMOTIONS},
            )

        positive = _count_matches(tokens, self.positive_keywords)
        negative = _count_matches(tokens, self.negative_keywords)

        if positive > negative:
            label = "positive"
        elif negative > positive:
            label = "negative"
        else:
            label = "neutral"

        if label == "neutral":
            confidence = NEUTRAL_CONFIDENCE
        else:
            confidence = min(0.9, 0.6 + abs(positive - negative) * 0.1)

        emotions = {
            "joy": min(0.9, 0.6 + 0.1 * positive) if label == "positive" else min(0.3, 0.1 * positive),
            "sadness": min(0.9, 0.6 + 0.1 * negative) if label == "negative" else min(0.3, 0.1 * negative),
        }
        for emotion, (_, step, cap) in EMOTION_CUES.items():
            hits = len(_CUE_PATTERNS[emotion].findall(lowered))
            emotions[emotion] = min(cap, step * hits)

        return SentimentResult(
            label=label,
            confidence=round(confidence, 4),
            emotions={emotion: round(emotions[emotion], 4) for emotion in TEXT_EMOTIONS},
        )


def _frame_bytes(frame: Any) -> bytes:
    if isinstance(frame, (bytes, bytearray, memoryview)):
        return bytes(frame)
    if isinstance(frame, str):
        return frame.encode("utf-8")
    return np.asarray(frame).tobytes()


def _frame_scores(frame: Any) -> List[float]:
    seed = int.from_bytes(hashlib.sha256(_frame_bytes(frame)).digest()[:8], "big")
    rng = np.random.default_rng(seed)
    draws = rng.random(len(FACIAL_EMOTIONS))
    return [
        _FRAME_SCORE_RANGES[label][0] + _FRAME_SCORE_RANGES[label][1] * float(draw)
        for label, draw in zip(FACIAL_EMOTIONS, draws)
    ]


class FacialExpressionClassifier:
    """Turns a video frame into a normalized facial emotion distribution.

    ``model`` maps a frame to seven raw scores, either in ``FACIAL_EMOTIONS``
    order or keyed by label. Without a model, scores are derived from the
    frame bytes so the same frame always yields the same result.
    """

    def __init__(self, model: Optional[FacialModel] = None):
        self.model = model

    def classify(self, frame: Any) -> FacialResult:
        raw = self.model(frame) if self.model is not None else _frame_scores(frame)
        if isinstance(raw, Mapping):
            values = [float(raw.get(label, 0.0)) for label in FACIAL_EMOTIONS]
        else:
            values = [float(v) for v in raw]
            if len(values) != len(FACIAL_EMOTIONS):
                raise ValueError(f"Expected {len(FACIAL_EMOTIONS)} facial scores, got {len(values)}")

        scores = np.clip(np.asarray(values, dtype=np.float64), 0.0, None)
        total = float(scores.sum())
        if total <= 0.0 or not np.isfinite(total):
            scores = np.full(len(FACIAL_EMOTIONS), 1.0 / len(FACIAL_EMOTIONS))
        else:
            scores = scores / total

        emotions = {label: float(score) for label, score in zip(FACIAL_EMOTIONS, scores)}
        top = max(emotions.values())
        dominant = next(label for label in FACIAL_TIE_PRIORITY if emotions[label] == top)
        confidence = max(0.7, min(1.0, 0.7 + 0.3 * top))
        return FacialResult(emotions=emotions, dominant_emotion=dominant, confidence=confidence)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mood_from_facial_emotions(emotions: Mapping[str, float]) -> int:
    """Map a facial distribution onto the 1-100 mood scale."""
    positive = sum(emotions.get(label, 0.0) for label in POSITIVE_FACIAL)
    negative = sum(emotions.get(label, 0.0) for label in NEGATIVE_FACIAL)
    neutral = emotions.get("neutral", 0.0)
    score = _round_half_up(positive * 100 + neutral * 50 + negative * 10)
    return max(1, min(100, score))


def blend_mood_score(previous: int, emotions: Mapping[str, float]) -> int:
    """Average a running mood score with the latest facial reading."""
    return max(1, min(100, _round_half_up((previous + mood_from_facial_emotions(emotions)) / 2)))


def overall_mood(emotions: Mapping[str, float]) -> Tuple[int, str]:
    positive = sum(emotions.get(label, 0.0) for label in ("happy", "joy", "surprised"))
    negative = sum(emotions.get(label, 0.0) for label in NEGATIVE_FACIAL)
    score = _round_half_up((positive - negative + 1) * 50)

    if score >= 80:
        label = "Excellent"
    elif score >= 60:
        label = "Good"
    elif score >= 40:
        label = "Neutral"
    elif score >= 20:
        label = "Low"
    else:
        label = "Poor"
    return max(1, min(100, score)), label


def emotion_intensity(confidence: float) -> str:
    if confidence < 0.4:
        return "low"
    if confidence < 0.7:
        return "medium"
    return "high"
