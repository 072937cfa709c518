import numpy as np
import pytest

from journal_insight.classifiers import (
    FACIAL_TIE_PRIORITY,
    FacialExpressionClassifier,
    TextSentimentClassifier,
    blend_mood_score,
    emotion_intensity,
    mood_from_facial_emotions,
    overall_mood,
)
from journal_insight.schemas import FACIAL_EMOTIONS, TEXT_EMOTIONS


@pytest.fixture
def text_classifier():
    return TextSentimentClassifier()


def test_positive_text(text_classifier):
    result = text_classifier.classify("I feel great and happy today")
    assert result.label == "positive"
    assert result.confidence == pytest.approx(0.8)
    assert result.emotions["joy"] >= 0.6
    assert set(result.emotions) == set(TEXT_EMOTIONS)


def test_negative_text(text_classifier):
    result = text_classifier.classify("Feeling sad and anxious, everything is awful")
    assert result.label == "negative"
    assert 0.6 <= result.confidence <= 0.9
    assert result.emotions["sadness"] >= 0.6
    assert result.emotions["fear"] > 0


def test_balanced_text_is_neutral(text_classifier):
    result = text_classifier.classify("good morning, bad traffic")
    assert result.label == "neutral"
    assert result.confidence == pytest.approx(0.5)


def test_matching_is_case_insensitive_substring(text_classifier):
    assert text_classifier.classify("LOVED the concert").label == "positive"


def test_empty_text_is_neutral_baseline(text_classifier):
    result = text_classifier.classify("   ")
    assert result.label == "neutral"
    assert result.confidence == pytest.approx(0.5)
    assert all(score == 0.0 for score in result.emotions.values())


def test_text_classification_is_reproducible(text_classifier):
    text = "worried about exams but excited for the trip"
    assert text_classifier.classify(text) == text_classifier.classify(text)


def test_confidence_is_capped(text_classifier):
    result = text_classifier.classify("happy happy great great amazing wonderful love joy")
    assert result.confidence == pytest.approx(0.9)
    assert all(0.0 <= score <= 1.0 for score in result.emotions.values())


def test_facial_distribution_sums_to_one():
    result = FacialExpressionClassifier().classify(b"frame-bytes-001")
    assert set(result.emotions) == set(FACIAL_EMOTIONS)
    assert sum(result.emotions.values()) == pytest.approx(1.0)
    assert 0.7 <= result.confidence <= 1.0
    assert result.emotions[result.dominant_emotion] == max(result.emotions.values())


def test_facial_result_is_stable_for_same_frame():
    frame = np.arange(48, dtype=np.uint8).reshape(4, 4, 3)
    classifier = FacialExpressionClassifier()
    assert classifier.classify(frame) == classifier.classify(frame.copy())


def test_facial_model_scores_are_normalized():
    classifier = FacialExpressionClassifier(model=lambda frame: [2, 0, 0, 0, 0, 0, 2])
    result = classifier.classify(object())
    assert result.emotions["happy"] == pytest.approx(0.5)
    assert result.emotions["neutral"] == pytest.approx(0.5)
    assert result.dominant_emotion == "neutral"


def test_facial_ties_follow_priority_order():
    classifier = FacialExpressionClassifier(model=lambda frame: {"sad": 1.0, "happy": 1.0})
    assert classifier.classify(None).dominant_emotion == "happy"

    uniform = FacialExpressionClassifier(model=lambda frame: [0.0] * 7).classify(None)
    assert uniform.dominant_emotion == FACIAL_TIE_PRIORITY[0]
    assert sum(uniform.emotions.values()) == pytest.approx(1.0)


def test_facial_model_with_wrong_arity_is_rejected():
    with pytest.raises(ValueError):
        FacialExpressionClassifier(model=lambda frame: [1.0, 2.0]).classify(None)


def test_confident_face_hits_upper_bound():
    result = FacialExpressionClassifier(model=lambda frame: {"happy": 1.0}).classify(None)
    assert result.dominant_emotion == "happy"
    assert result.confidence == pytest.approx(1.0)


def test_mood_from_facial_emotions():
    assert mood_from_facial_emotions({"happy": 1.0}) == 100
    assert mood_from_facial_emotions({"neutral": 1.0}) == 50
    assert mood_from_facial_emotions({"sad": 1.0}) == 10


def test_blend_mood_score_averages_previous_and_face():
    assert blend_mood_score(50, {"happy": 1.0}) == 75
    assert blend_mood_score(30, {"sad": 1.0}) == 20


def test_overall_mood_labels():
    assert overall_mood({"happy": 0.9}) == (95, "Excellent")
    assert overall_mood({"neutral": 1.0}) == (50, "Neutral")
    assert overall_mood({"sad": 0.8, "angry": 0.2}) == (1, "Poor")


def test_emotion_intensity_buckets():
    assert emotion_intensity(0.2) == "low"
    assert emotion_intensity(0.5) == "medium"
    assert emotion_intensity(0.7) == "high"


def test_emotion_cues_match_whole_words(text_classifier):
    assert text_classifier.classify("I made dinner with a nomad").emotions["anger"] == 0
    assert text_classifier.classify("I am so mad").emotions["anger"] == pytest.approx(0.25)
    assert text_classifier.classify("Honestly sick of waiting").emotions["disgust"] == pytest.approx(0.1)


def test_mood_helpers_round_halves_up():
    assert blend_mood_score(75, {"neutral": 1.0}) == 63
