"""Assembles retrieval context for insight generation."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .aggregation import MoodAggregator
from .embeddings import EmbeddingStore
from .schemas import RAGContext, UserHistorySummary


logger = logging.getLogger(__name__)


class ContextBuilder:
    """Combines similar past entries with rolling mood statistics."""

    def __init__(
        self,
        embedding_store: EmbeddingStore,
        history_source,
        aggregator: Optional[MoodAggregator] = None,
        history_window: int = 30,
        limit: int = 5,
        threshold: float = 0.7,
    ):
        self.embedding_store = embedding_store
        self.history_source = history_source
        self.aggregator = aggregator or MoodAggregator()
        self.history_window = history_window
        self.limit = limit
        self.threshold = threshold

    def build(self, query: str, user_id: str, exclude_ids: Iterable[str] = ()) -> RAGContext:
        """Never raises; failed lookups fall back to empty defaults."""
        try:
            similar = self.embedding_store.find_similar(
                query, user_id, limit=self.limit, threshold=self.threshold, exclude_ids=exclude_ids
            )
        except Exception as exc:
            logger.warning("Similar entries unavailable for user %s: %s", user_id, exc)
            similar = []

        try:
            records = self.history_source.query_recent_entries(user_id, self.history_window)
            history = self.aggregator.analyze_history(records)
        except Exception as exc:
            logger.warning("Mood history unavailable for user %s: %s", user_id, exc)
            history = UserHistorySummary()

        return RAGContext(query=query, similar_entries=similar, user_history=history)
