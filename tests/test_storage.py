import numpy as np
import pytest

from conftest import make_entry
from journal_insight.errors import ValidationError
from journal_insight.schemas import EmbeddingRecord, FacialResult
from journal_insight.vectors import HashEmbeddingCodec


def test_insert_and_query_recent_newest_first(store):
    first = make_entry("u1", "first entry", 40)
    second = make_entry("u1", "second entry", 60)
    other = make_entry("u2", "someone else", 90)
    for entry in (first, second, other):
        store.insert_journal_entry(entry)

    recent = store.query_recent_entries("u1", 30)
    assert [entry.id for entry in recent] == [second.id, first.id]
    assert recent[0].created_at == second.created_at
    assert recent[0].sentiment == second.sentiment
    assert store.count_entries("u1") == 2


def test_query_recent_respects_limit(store):
    for i in range(5):
        store.insert_journal_entry(make_entry("u1", f"entry {i}", 50))
    assert len(store.query_recent_entries("u1", 3)) == 3


def test_facial_analysis_round_trips(store):
    entry = make_entry("u1", "camera on", 70)
    entry.facial_analysis = FacialResult(
        emotions={"happy": 0.6, "neutral": 0.4}, dominant_emotion="happy", confidence=0.88
    )
    store.insert_journal_entry(entry)
    loaded = store.query_recent_entries("u1", 1)[0]
    assert loaded.facial_analysis == entry.facial_analysis


def test_update_attaches_ai_fields(store):
    entry = make_entry("u1", "needs insight", 45)
    store.insert_journal_entry(entry)
    store.update_journal_entry(entry.id, {"ai_insight": "Be kind to yourself.", "ai_recommendations": ["Rest"]})
    loaded = store.query_recent_entries("u1", 1)[0]
    assert loaded.ai_insight == "Be kind to yourself."
    assert loaded.ai_recommendations == ["Rest"]


def test_update_rejects_immutable_fields(store):
    entry = make_entry("u1", "original", 45)
    store.insert_journal_entry(entry)
    with pytest.raises(ValidationError):
        store.update_journal_entry(entry.id, {"content": "rewritten"})
    assert store.query_recent_entries("u1", 1)[0].content == "original"


def test_fetch_entries_by_ids_is_user_scoped(store):
    mine = make_entry("u1", "mine", 50)
    theirs = make_entry("u2", "theirs", 50)
    store.insert_journal_entry(mine)
    store.insert_journal_entry(theirs)
    found = store.fetch_entries_by_ids("u1", [mine.id, theirs.id])
    assert list(found) == [mine.id]


def test_embedding_round_trip_is_bit_identical(store):
    vector = HashEmbeddingCodec().encode("quiet evening")
    store.insert_embedding(EmbeddingRecord("e1", "u1", vector, "hash-384-v1"))
    records = store.query_embeddings_by_user("u1")
    assert len(records) == 1
    assert np.array_equal(records[0].vector, vector)
    assert store.query_embeddings_by_user("u2") == []


def test_insert_embedding_rejects_wrong_dimensions(store):
    with pytest.raises(ValidationError):
        store.insert_embedding(EmbeddingRecord("e1", "u1", np.ones(10), "hash-384-v1"))


def test_delete_entry_cascades_to_embedding(store):
    entry = make_entry("u1", "to be removed", 50)
    store.insert_journal_entry(entry)
    store.insert_embedding(EmbeddingRecord(entry.id, "u1", HashEmbeddingCodec().encode(entry.content), "hash-384-v1"))

    assert store.delete_journal_entry("u2", entry.id) is False
    assert store.delete_journal_entry("u1", entry.id) is True
    assert store.query_recent_entries("u1", 5) == []
    assert store.query_embeddings_by_user("u1") == []
