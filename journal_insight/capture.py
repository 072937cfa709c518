"""Device capture: periodic facial sampling and bounded voice transcription."""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Callable, List, Optional

from .classifiers import FacialExpressionClassifier
from .errors import NoSpeechDetected
from .schemas import FacialResult, TranscriptResult


logger = logging.getLogger(__name__)

POSITIVE_CUES = [
    "happy", "good", "great", "excellent", "wonderful", "amazing",
    "love", "joy", "excited", "grateful", "peaceful", "calm",
]
NEGATIVE_CUES = [
    "sad", "bad", "terrible", "awful", "hate", "depressed",
    "anxious", "worried", "angry", "frustrated", "overwhelmed", "stressed",
]
INTENSIFIERS = ["extremely", "very", "really", "so", "incredibly", "absolutely", "completely", "totally"]


class SamplingHandle:
    """Controls one running facial sampling loop."""

    def __init__(self, task: "asyncio.Task[None]"):
        self._task = task
        self._cancelled = False

    @property
    def active(self) -> bool:
        return not self._cancelled and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def cancel(self) -> None:
        """Stop sampling; once this returns no further results are delivered."""
        self._cancelled = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class FacialSampler:
    """Classifies a frame every ``interval`` seconds until cancelled."""

    def __init__(self, classifier: Optional[FacialExpressionClassifier] = None, interval: float = 3.0):
        if interval <= 0:
            raise ValueError("Sampling interval must be positive")
        self.classifier = classifier or FacialExpressionClassifier()
        self.interval = interval

    def start(
        self,
        frame_source: Callable[[], Any],
        on_result: Callable[[FacialResult], Any],
    ) -> SamplingHandle:
        """Must be called from a running event loop."""
        holder: List[SamplingHandle] = []
        task = asyncio.get_running_loop().create_task(self._run(frame_source, on_result, holder))
        handle = SamplingHandle(task)
        holder.append(handle)
        return handle

    async def _run(
        self,
        frame_source: Callable[[], Any],
        on_result: Callable[[FacialResult], Any],
        holder: List[SamplingHandle],
    ) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                frame = frame_source()
                if inspect.isawaitable(frame):
                    frame = await frame
                if frame is None:
                    continue
                result = self.classifier.classify(frame)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Facial analysis failed for one frame")
                continue

            if holder and holder[0].cancelled:
                return
            try:
                outcome = on_result(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Facial result callback failed")


async def transcribe(
    results: AsyncIterable[TranscriptResult],
    max_wait: float = 30.0,
    silence_timeout: float = 2.0,
) -> str:
    """Collect speech until silence, the hard deadline, or the source ends.

    The silence timer starts with the first recognition event and restarts on
    every interim or final result.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max_wait
    silence_deadline: Optional[float] = None
    finals: List[str] = []
    pending = ""

    iterator = results.__aiter__()
    try:
        while True:
            limit = deadline if silence_deadline is None else min(deadline, silence_deadline)
            remaining = limit - loop.time()
            if remaining <= 0:
                break
            try:
                result = await asyncio.wait_for(iterator.__anext__(), timeout=remaining)
            except asyncio.TimeoutError:
                break
            except StopAsyncIteration:
                break

            text = result.transcript.strip()
            if result.is_final:
                if text:
                    finals.append(text)
                pending = ""
            else:
                pending = text
            silence_deadline = loop.time() + silence_timeout
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            try:
                await aclose()
            except RuntimeError:
                logger.debug("Transcript source could not be closed cleanly")

    transcript = " ".join(finals + ([pending] if pending else [])).strip()
    if not transcript:
        raise NoSpeechDetected("No speech detected")
    return transcript


def format_transcript_for_journal(transcript: str) -> str:
    text = re.sub(r"\s+", " ", transcript).strip()
    text = re.sub(r"^\w", lambda m: m.group(0).upper(), text)
    return re.sub(r"\.\s*\w", lambda m: m.group(0).upper(), text)


@dataclass
class EmotionalCues:
    emotional_words: List[str] = field(default_factory=list)
    intensity: str = "low"
    suggested_mood_score: int = 50


def detect_emotional_cues(transcript: str) -> EmotionalCues:
    """Keyword cues from spoken text, including a suggested mood score."""
    words = transcript.lower().split()
    emotional_words = [word for word in words if word in POSITIVE_CUES or word in NEGATIVE_CUES]
    intensifiers = sum(1 for word in words if word in INTENSIFIERS)

    intensity = "low"
    if intensifiers > 2 or len(emotional_words) > 5:
        intensity = "high"
    elif intensifiers > 0 or len(emotional_words) > 2:
        intensity = "medium"

    positive = sum(1 for word in words if word in POSITIVE_CUES)
    negative = sum(1 for word in words if word in NEGATIVE_CUES)
    suggested = 50
    if positive > negative:
        suggested = min(90, 60 + (positive - negative) * 10)
    elif negative > positive:
        suggested = max(10, 40 - (negative - positive) * 10)

    return EmotionalCues(emotional_words=emotional_words, intensity=intensity, suggested_mood_score=suggested)
