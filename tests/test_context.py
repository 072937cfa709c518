import sqlite3

import pytest

from conftest import KeyedCodec, make_entry
from journal_insight.context import ContextBuilder
from journal_insight.embeddings import EmbeddingStore


def test_empty_user_gets_defaults(store):
    builder = ContextBuilder(EmbeddingStore(index=store, entries=store), history_source=store)
    context = builder.build("I feel great and happy today", "new-user")
    assert context.query == "I feel great and happy today"
    assert context.similar_entries == []
    assert context.user_history.avg_mood_score == 50
    assert context.user_history.common_emotions == []
    assert context.user_history.recent_trend == "insufficient-data"


def test_context_combines_similar_entries_and_history(store):
    embeddings = EmbeddingStore(index=store, entries=store, codec=KeyedCodec())
    for text, mood in [("Felt anxious before the meeting", 35), ("Calm walk after dinner", 65), ("Felt anxious before the meeting", 45)]:
        entry = make_entry("u1", text, mood)
        store.insert_journal_entry(entry)
        embeddings.store(entry.id, "u1", text)

    context = ContextBuilder(embeddings, history_source=store).build("Felt anxious before the meeting", "u1")
    assert len(context.similar_entries) == 2
    assert all(hit.content == "Felt anxious before the meeting" for hit in context.similar_entries)
    assert context.user_history.avg_mood_score == pytest.approx((35 + 65 + 45) / 3)
    assert context.user_history.recent_trend == "stable"
    assert "fear" in context.user_history.common_emotions


def test_history_window_is_applied(store):
    for mood in [10] * 5 + [90] * 3:
        store.insert_journal_entry(make_entry("u1", "entry", mood))
    builder = ContextBuilder(EmbeddingStore(index=store, entries=store), history_source=store, history_window=3)
    assert builder.build("entry", "u1").user_history.avg_mood_score == 90


class _FailingHistory:
    def query_recent_entries(self, user_id, limit):
        raise sqlite3.OperationalError("no such table")


class _FailingEmbeddings:
    def find_similar(self, *args, **kwargs):
        raise RuntimeError("index offline")


def test_builder_never_raises():
    context = ContextBuilder(_FailingEmbeddings(), history_source=_FailingHistory()).build("hello", "u1")
    assert context.similar_entries == []
    assert context.user_history.avg_mood_score == 50
    assert context.user_history.recent_trend == "insufficient-data"
