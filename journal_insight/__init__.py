"""Journal Insight Engine: retrieval-augmented insights for mood journals."""

from .capture import FacialSampler, detect_emotional_cues, format_transcript_for_journal, transcribe
from .classifiers import blend_mood_score, emotion_intensity, mood_from_facial_emotions, overall_mood
from .config import AppConfig
from .logging_config import configure_logging
from .pipeline import JournalPipeline

__all__ = [
    "AppConfig",
    "FacialSampler",
    "JournalPipeline",
    "blend_mood_score",
    "configure_logging",
    "detect_emotional_cues",
    "emotion_intensity",
    "format_transcript_for_journal",
    "mood_from_facial_emotions",
    "overall_mood",
    "transcribe",
]
