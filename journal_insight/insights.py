"""Insight, coping-strategy and intervention-plan generation with fallbacks."""

from __future__ import annotations

import json
import logging
import re
from typing import Dict, List, Optional

from .aggregation import trend_phrase
from .backends import OfflineBackend, TextGenerationBackend
from .config import GenerationConfig
from .errors import BackendUnavailable
from .schemas import (
    TREND_DECLINING,
    TREND_IMPROVING,
    InterventionPlan,
    MentalHealthContext,
    RAGContext,
)


logger = logging.getLogger(__name__)

INSIGHT_SYSTEM_PROMPT = (
    "You are a compassionate AI mental health assistant. Provide supportive, evidence-based "
    "insights based on the user's journal history and current query. Be empathetic, "
    "non-judgmental, and focus on positive coping strategies."
)
CHECKIN_SYSTEM_PROMPT = (
    "You are a compassionate AI mental health assistant. Provide supportive, evidence-based "
    "insights and gentle recommendations. Always maintain a caring, non-judgmental tone. Never "
    "provide clinical diagnosis or replace professional mental health care. Focus on wellness, "
    "coping strategies, and positive support."
)
GUIDANCE_SYSTEM_PROMPT = (
    "You are a knowledgeable mental health AI assistant providing evidence-based support and guidance."
)

SNIPPET_CHARS = 200
MAX_STRATEGIES = 5
MIN_STRATEGIES = 3

FALLBACK_STRATEGIES: Dict[str, List[str]] = {
    "low": [
        "Continue with regular exercise and outdoor activities",
        "Practice gratitude by writing down three good things each day",
        "Maintain social connections with friends and family",
        "Keep a consistent sleep schedule",
    ],
    "moderate": [
        "Try the 4-7-8 breathing technique when feeling stressed",
        "Take short breaks every hour to stretch or walk",
        "Practice mindfulness meditation for 10 minutes daily",
        "Limit caffeine and alcohol consumption",
        "Engage in a creative or enjoyable hobby",
    ],
    "high": [
        "Focus on basic needs: eat, hydrate, rest",
        "Use grounding techniques (5-4-3-2-1 sensory method)",
        "Reach out to a trusted friend, family member, or counselor",
        "Consider contacting a mental health crisis line",
        "Avoid making major decisions while in distress",
    ],
}

FALLBACK_PLANS: Dict[str, Dict[str, List[str]]] = {
    "low": {
        "immediate": ["Continue current wellness practices", "Celebrate today's positive moments"],
        "short_term": ["Maintain regular exercise routine", "Keep up healthy sleep schedule"],
        "long_term": ["Build resilience through mindfulness practice", "Strengthen social connections"],
        "resources": ["Mental health apps", "Wellness podcasts", "Community groups"],
    },
    "moderate": {
        "immediate": ["Practice deep breathing", "Ensure basic needs are met"],
        "short_term": ["Implement stress management techniques", "Schedule regular self-care"],
        "long_term": ["Consider counseling or therapy", "Develop coping skill toolkit"],
        "resources": ["Therapist directory", "Mental health apps", "Support groups"],
    },
    "high": {
        "immediate": ["Ensure safety", "Contact support system", "Consider professional help"],
        "short_term": ["Schedule mental health appointment", "Daily wellness check-ins"],
        "long_term": ["Ongoing therapy or counseling", "Medication evaluation if needed"],
        "resources": ["Crisis hotline: 988", "Emergency services: 911", "Local mental health centers"],
    },
}

MOOD_MESSAGES = {
    "excellent": "It's wonderful to see you feeling so positive! This is a great foundation to build upon.",
    "good": "You're in a good place right now, which shows your resilience and strength.",
    "neutral": "Neutral feelings are completely normal and valid. Every day doesn't need to be amazing.",
    "low": "I hear that you're going through a challenging time. Your feelings are valid and temporary.",
    "poor": "Thank you for sharing how you're feeling. Reaching out shows tremendous courage.",
}

RISK_MESSAGES = {
    "low": "Keep up the positive momentum with healthy habits and self-care.",
    "moderate": (
        "Consider implementing some additional coping strategies and staying connected with your "
        "support system."
    ),
    "high": (
        "Please prioritize self-care and don't hesitate to reach out to a mental health "
        "professional if needed."
    ),
}

_NUMBERED_RE = re.compile(r"^\d+\.\s*(.+)$")
_BULLET_RE = re.compile(r"^[•\-\*]\s*(.+)$")
_SENTENCE_END_RE = re.compile(r"[.!?]")

_PLAN_KEYS = {
    "immediate": ("immediate",),
    "short_term": ("shortTerm", "short_term"),
    "long_term": ("longTerm", "long_term"),
    "resources": ("resources",),
}


def fallback_strategies(risk_level: str) -> List[str]:
    return list(FALLBACK_STRATEGIES.get(risk_level, FALLBACK_STRATEGIES["moderate"]))


def fallback_plan(risk_level: str) -> InterventionPlan:
    plan = FALLBACK_PLANS.get(risk_level, FALLBACK_PLANS["moderate"])
    return InterventionPlan(**{key: list(items) for key, items in plan.items()})


def fallback_insight(context: RAGContext) -> str:
    history = context.user_history
    insight = "Thank you for sharing your thoughts with me. "

    if history.avg_mood_score > 70:
        insight += "I can see you've been maintaining a positive outlook overall, which shows great resilience. "
    elif history.avg_mood_score < 40:
        insight += (
            "I notice you've been going through some challenging times. Your courage in continuing "
            "to journal and seek support is admirable. "
        )
    else:
        insight += "You're navigating through various emotions, which is completely normal and human. "

    if history.recent_trend == TREND_IMPROVING:
        insight += (
            "The positive trend in your recent entries suggests that the strategies you're using are "
            "helping. Keep up the good work! "
        )
    elif history.recent_trend == TREND_DECLINING:
        insight += (
            "I see there have been some ups and downs recently. Remember that healing isn't always "
            "linear, and it's okay to have difficult days. "
        )

    insight += "Consider practicing mindfulness, connecting with supportive people in your life, and maintaining healthy routines. "
    insight += "Remember, seeking help is a sign of strength, not weakness."
    return insight


def fallback_checkin_response(context: MentalHealthContext) -> str:
    mood_message = MOOD_MESSAGES.get(context.current_mood.lower(), MOOD_MESSAGES["neutral"])
    risk_message = RISK_MESSAGES.get(context.risk_level, RISK_MESSAGES["moderate"])
    return (
        f"{mood_message}\n\n"
        f"Based on your recent journal entry and mood patterns, {risk_message}\n\n"
        "Remember that seeking support is a sign of strength, not weakness. You're taking positive "
        "steps by monitoring your mental health and reflecting on your experiences."
    )


def parse_strategies(response: str) -> List[str]:
    """Pull discrete strategies out of a free-text response."""
    strategies: List[str] = []
    for line in response.split("\n"):
        line = line.strip()
        if not line:
            continue
        match = _NUMBERED_RE.match(line) or _BULLET_RE.match(line)
        if match:
            strategies.append(match.group(1).strip())

    if not strategies:
        strategies = [part.strip() for part in _SENTENCE_END_RE.split(response) if len(part.strip()) > 10]

    return strategies[:MAX_STRATEGIES]


def _extract_json_object(raw: str) -> Optional[dict]:
    raw = raw.strip()
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", raw)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def parse_intervention_plan(response: str) -> Optional[InterventionPlan]:
    """Return the four-bucket plan, or None when the response does not hold one."""
    parsed = _extract_json_object(response)
    if parsed is None:
        return None

    buckets: Dict[str, List[str]] = {}
    for field_name, aliases in _PLAN_KEYS.items():
        value = next((parsed[alias] for alias in aliases if alias in parsed), None)
        if not isinstance(value, list):
            return None
        buckets[field_name] = [str(item).strip() for item in value if str(item).strip()]
    return InterventionPlan(**buckets)


def build_context_prompt(context: RAGContext) -> str:
    history = context.user_history
    prompt = f'Based on the user\'s current query: "{context.query}"\n\n'
    prompt += "User's mental health context:\n"
    prompt += f"- Average mood score: {round(history.avg_mood_score)}/100\n"
    prompt += f"- Recent trend: {history.recent_trend}\n"
    prompt += f"- Common emotions: {', '.join(history.common_emotions)}\n\n"

    if context.similar_entries:
        prompt += "Similar past journal entries:\n"
        for index, entry in enumerate(context.similar_entries, start=1):
            mood = entry.mood_score if entry.mood_score is not None else "N/A"
            prompt += f'{index}. "{entry.content[:SNIPPET_CHARS]}..." (Mood: {mood}/100)\n'
        prompt += "\n"

    prompt += "Please provide:\n"
    prompt += "1. Empathetic acknowledgment of their current state\n"
    prompt += "2. Insights based on patterns from their history\n"
    prompt += "3. Personalized coping strategies\n"
    prompt += "4. Encouragement and hope\n"
    prompt += "Keep the response warm, supportive, and actionable."
    return prompt


def _sentiment_json(context: MentalHealthContext) -> str:
    if context.sentiment is None:
        return "{}"
    return json.dumps(context.sentiment.to_dict())


class InsightGenerator:
    """Turns retrieval context or a mood snapshot into supportive text.

    Every public method returns usable output: backend failures are logged
    and replaced by deterministic fallbacks.
    """

    def __init__(self, backend: Optional[TextGenerationBackend] = None, config: Optional[GenerationConfig] = None):
        self.backend = backend or OfflineBackend()
        self.config = config or GenerationConfig()

    def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        try:
            text = self.backend.complete(
                system=system,
                prompt=prompt,
                temperature=self.config.temperature,
                max_tokens=max_tokens,
            )
        except BackendUnavailable:
            raise
        except Exception as exc:
            raise BackendUnavailable(f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(text, str) or not text.strip():
            raise BackendUnavailable("Backend returned no text")
        return text

    def generate_insight(self, context: RAGContext) -> str:
        try:
            return self._complete(INSIGHT_SYSTEM_PROMPT, build_context_prompt(context), self.config.insight_max_tokens)
        except BackendUnavailable as exc:
            logger.warning("Insight generation fell back to template: %s", exc)
            return fallback_insight(context)

    def generate_checkin_insight(self, context: MentalHealthContext) -> str:
        prompt = f"""Please analyze this mental health check-in and provide supportive insights:

Current mood: {context.current_mood}
Journal entry: "{context.journal_entry}"
Recent mood scores (1-100): [{', '.join(str(score) for score in context.mood_history)}]
Risk level: {context.risk_level}
Sentiment analysis: {_sentiment_json(context)}

Please provide:
1. A compassionate acknowledgment of their current state
2. Observations about patterns or trends
3. Gentle, actionable recommendations
4. Encouragement and positive reinforcement
5. When to seek additional support

Keep the tone warm, supportive, and hopeful while being informative."""
        try:
            return self._complete(CHECKIN_SYSTEM_PROMPT, prompt, self.config.insight_max_tokens)
        except BackendUnavailable as exc:
            logger.warning("Check-in insight fell back to template: %s", exc)
            return fallback_checkin_response(context)

    def generate_coping_strategies(self, context: MentalHealthContext) -> List[str]:
        prompt = f"""Based on the following mental health context, suggest 3-5 specific, actionable coping strategies:

Current mood: {context.current_mood}
Risk level: {context.risk_level}
Recent journal entry: "{context.journal_entry}"
Mood trend: {trend_phrase(context.mood_history)}

Provide practical, evidence-based coping strategies that are appropriate for this situation. Focus on techniques that can be immediately implemented."""
        try:
            response = self._complete(GUIDANCE_SYSTEM_PROMPT, prompt, self.config.max_tokens)
        except BackendUnavailable as exc:
            logger.warning("Coping strategies fell back to %s-risk list: %s", context.risk_level, exc)
            return fallback_strategies(context.risk_level)

        strategies = parse_strategies(response)
        if len(strategies) < MIN_STRATEGIES:
            for item in fallback_strategies(context.risk_level):
                if len(strategies) >= MIN_STRATEGIES:
                    break
                if item not in strategies:
                    strategies.append(item)
        return strategies

    def generate_intervention_plan(self, context: MentalHealthContext) -> InterventionPlan:
        prompt = f"""Create a comprehensive intervention plan for someone with:

Current mood: {context.current_mood}
Risk level: {context.risk_level}
Mood trend: {trend_phrase(context.mood_history)}
Sentiment analysis: {_sentiment_json(context)}

Provide a structured plan with:
1. Immediate actions (next 24 hours)
2. Short-term goals (next week)
3. Long-term strategies (next month)
4. Resources and support options

Format as JSON with the keys "immediate", "shortTerm", "longTerm" and "resources", each a list of strings."""
        try:
            response = self._complete(GUIDANCE_SYSTEM_PROMPT, prompt, self.config.max_tokens)
        except BackendUnavailable as exc:
            logger.warning("Intervention plan fell back to %s-risk plan: %s", context.risk_level, exc)
            return fallback_plan(context.risk_level)

        plan = parse_intervention_plan(response)
        if plan is None:
            logger.warning("Intervention plan response was not a valid plan; using %s-risk plan", context.risk_level)
            return fallback_plan(context.risk_level)
        return plan
