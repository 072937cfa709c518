"""Orchestration layer for saving entries and enriching them with insights."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import List, Optional

from .aggregation import MoodAggregator, risk_level
from .backends import TextGenerationBackend, build_backend
from .classifiers import TextSentimentClassifier
from .config import AppConfig
from .context import ContextBuilder
from .embeddings import EmbeddingStore, build_embedding_index
from .errors import EntrySaveError, ValidationError
from .insights import InsightGenerator
from .schemas import (
    FacialResult,
    InterventionPlan,
    JournalEntry,
    JournalSubmission,
    MentalHealthContext,
    RAGContext,
    utcnow,
)
from .storage import SQLiteJournalStore
from .vectors import build_codec


logger = logging.getLogger(__name__)


class JournalPipeline:
    """Saves journal entries and runs the degradable enrichment chain.

    Only the entry insert can fail a submission. Embedding, retrieval,
    generation and the AI-field update each fall back independently.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[SQLiteJournalStore] = None,
        backend: Optional[TextGenerationBackend] = None,
        codec=None,
        embedding_index=None,
    ):
        self.config = config
        self.store = store or SQLiteJournalStore(config.paths.sqlite_path)
        self.codec = codec or build_codec(config.embeddings)
        index = embedding_index or build_embedding_index(
            config.embeddings.backend, self.store, config.paths.chroma_dir, config.embeddings
        )
        self.classifier = TextSentimentClassifier()
        self.aggregator = MoodAggregator()
        self.embedding_store = EmbeddingStore(index=index, entries=self.store, codec=self.codec)
        self.context_builder = ContextBuilder(
            embedding_store=self.embedding_store,
            history_source=self.store,
            aggregator=self.aggregator,
            history_window=config.retrieval.history_window,
            limit=config.retrieval.default_limit,
            threshold=config.retrieval.similarity_threshold,
        )
        self.backend = backend or build_backend(
            config.generation,
            deepseek_api_key=config.deepseek_api_key,
            google_api_key=config.google_api_key,
        )
        self.insights = InsightGenerator(self.backend, config.generation)

    def submit_entry(
        self,
        user_id: str,
        content: str,
        mood_score: int,
        facial_analysis: Optional[FacialResult] = None,
        current_mood: str = "",
    ) -> JournalSubmission:
        """Persist an entry, then attach AI insight and coping strategies."""
        if not user_id:
            raise ValidationError("user_id is required")
        if not content or not content.strip():
            raise ValidationError("Journal entry content is empty")
        if isinstance(mood_score, bool) or not isinstance(mood_score, int) or not 1 <= mood_score <= 100:
            raise ValidationError("Mood score must be an integer between 1 and 100")

        sentiment = self.classifier.classify(content)
        entry = JournalEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            content=content,
            mood_score=mood_score,
            sentiment=sentiment,
            emotions=dict(sentiment.emotions),
            facial_analysis=facial_analysis,
            created_at=utcnow(),
        )
        try:
            self.store.insert_journal_entry(entry)
        except sqlite3.Error as exc:
            logger.error("Failed to save journal entry for user %s: %s", user_id, exc)
            raise EntrySaveError(str(exc)) from exc

        submission = JournalSubmission(entry=entry)
        self._enrich(submission, current_mood)
        return submission

    def _enrich(self, submission: JournalSubmission, current_mood: str) -> None:
        entry = submission.entry
        try:
            self.embedding_store.store(entry.id, entry.user_id, entry.content)
        except Exception as exc:
            logger.warning("Embedding skipped for entry %s: %s", entry.id, exc)

        submission.context = self.context_builder.build(entry.content, entry.user_id, exclude_ids=[entry.id])
        submission.insight = self.insights.generate_insight(submission.context)

        snapshot = MentalHealthContext(
            current_mood=current_mood,
            journal_entry=entry.content,
            mood_history=self._mood_history(entry.user_id, fallback=[entry.mood_score]),
            sentiment=entry.sentiment,
            risk_level=risk_level(entry.mood_score),
        )
        submission.recommendations = self.insights.generate_coping_strategies(snapshot)

        entry.ai_insight = submission.insight
        entry.ai_recommendations = list(submission.recommendations)
        try:
            self.store.update_journal_entry(
                entry.id,
                {"ai_insight": entry.ai_insight, "ai_recommendations": entry.ai_recommendations},
            )
        except Exception as exc:
            logger.warning("Could not attach AI fields to entry %s: %s", entry.id, exc)

    def _mood_history(self, user_id: str, fallback: List[int]) -> List[int]:
        """Chronological mood scores for the history window."""
        try:
            recent = self.store.query_recent_entries(user_id, self.config.retrieval.history_window)
        except Exception as exc:
            logger.warning("Mood history unavailable for user %s: %s", user_id, exc)
            return list(fallback)
        scores = [entry.mood_score for entry in reversed(recent) if entry.mood_score is not None]
        return scores or list(fallback)

    def build_context(self, query: str, user_id: str) -> RAGContext:
        return self.context_builder.build(query, user_id)

    def plan_intervention(self, user_id: str, current_mood: str = "") -> InterventionPlan:
        """Intervention plan from the user's latest entry and mood history."""
        history = self._mood_history(user_id, fallback=[])
        try:
            latest = self.store.query_recent_entries(user_id, 1)
        except Exception as exc:
            logger.warning("Latest entry unavailable for user %s: %s", user_id, exc)
            latest = []
        snapshot = MentalHealthContext(
            current_mood=current_mood,
            journal_entry=latest[0].content if latest else "",
            mood_history=history,
            sentiment=latest[0].sentiment if latest else None,
            risk_level=risk_level(history[-1]) if history else "moderate",
        )
        return self.insights.generate_intervention_plan(snapshot)

    def delete_entry(self, entry_id: str, user_id: str) -> bool:
        deleted = self.store.delete_journal_entry(user_id, entry_id)
        if deleted and self.embedding_store.index is not self.store:
            self.embedding_store.delete(entry_id)
        return deleted

    def close(self) -> None:
        self.store.close()
