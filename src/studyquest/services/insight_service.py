"""
InsightService - AI-generated feedback on top of the gamification engine

Best-effort presentation layer: it reads engine output (level, streak,
area breakdown) and asks the model for insights, a daily motivation line or
a quote. Every failure path returns canned text; nothing here raises to the
caller and nothing here changes gamification state.
"""

import json
import logging
from typing import Any, Dict, Optional

from openai import APIError, AsyncOpenAI

from studyquest.config import ENABLE_AI_INSIGHTS, INSIGHT_MODEL, OPENAI_API_KEY
from studyquest.exceptions import OpenAIAPIError
from studyquest.models.achievement import CORE_AREAS
from studyquest.models.insight import Insight, ProgressAnalysis
from studyquest.observability.metrics import insight_requests_total

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a study coach for students preparing for exams. "
    "Be motivating, empathetic and practical."
)

QUOTE_PROMPTS = {
    "motivation": "Write a short, punchy motivational sentence about perseverance. Max 15 words.",
    "study": "Write an inspiring sentence about studying and learning. Max 15 words.",
    "success": "Write a sentence about success and personal achievement. Max 15 words.",
    "focus": "Write a sentence about focus and productivity. Max 15 words.",
}

FALLBACK_QUOTES = {
    "motivation": "Small steps every day add up to big results.",
    "study": "Every session you log is knowledge you keep.",
    "success": "Success is the sum of small efforts, repeated day in and day out.",
    "focus": "One subject, one timer, full attention.",
}


def build_insight_context(progress: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce GamificationService.get_progress() output to what the model needs.
    """
    stats = progress["stats"]
    streak = progress["streak"]
    return {
        "level": progress["level"],
        "total_xp": progress["total_xp"],
        "current_streak": streak.current_streak,
        "longest_streak": streak.longest_streak,
        "streak_alive": progress.get("streak_alive", False),
        "total_minutes": stats.total_minutes,
        "total_sessions": stats.total_sessions,
        "sessions_by_area": stats.sessions_by_area,
        "achievements_unlocked": len(progress.get("unlocked", [])),
        "achievements_total": len(progress.get("unlocked", [])) + len(progress.get("locked", [])),
    }


def fallback_analysis(context: Dict[str, Any]) -> ProgressAnalysis:
    """Rule-based analysis used whenever the model can't be used"""
    insights = []

    if context["total_sessions"] == 0:
        insights.append(Insight(
            type="suggestion",
            title="Start your first session",
            message="Log a 25 minute focused session to start your streak and earn your first XP.",
            icon="📚",
            action="Log a study session",
            priority="high",
        ))
    elif not context["streak_alive"]:
        insights.append(Insight(
            type="warning",
            title="Your streak is paused",
            message="Study today to start a new streak. Consistency beats intensity.",
            icon="⏰",
            action="Log a study session",
            priority="high",
        ))

    if context["current_streak"] >= 7:
        insights.append(Insight(
            type="positive",
            title="Great consistency",
            message=f"You have studied {context['current_streak']} days in a row. Impressive!",
            icon="🔥",
            priority="medium",
        ))

    by_area = context["sessions_by_area"]
    missing = [area.value for area in CORE_AREAS if by_area.get(area.value, 0) == 0]
    if context["total_sessions"] > 0 and missing:
        insights.append(Insight(
            type="suggestion",
            title="Balance your areas",
            message=f"No sessions yet in: {', '.join(missing)}.",
            icon="🎯",
            action="Plan a session in a new area",
            priority="medium",
        ))

    strengths = [area for area, count in sorted(by_area.items(), key=lambda kv: kv[1], reverse=True)[:2]]

    return ProgressAnalysis(
        insights=insights,
        suggestions=["Keep logging your study sessions every day"],
        motivation="You're on the right track!",
        score=min(10, max(1, 1 + context["current_streak"] // 2 + context["level"] // 2)),
        strengths=strengths,
        improvements=missing,
        source="fallback",
    )


class InsightService:
    """
    Service for AI-generated study feedback.

    The OpenAI client is created lazily and only when an API key is set.
    """

    def __init__(self, api_key: str = OPENAI_API_KEY, model: str = INSIGHT_MODEL, enabled: bool = ENABLE_AI_INSIGHTS):
        self.api_key = api_key
        self.model = model
        self.enabled = enabled and bool(api_key)
        self._client: Optional[AsyncOpenAI] = None

        if enabled and not api_key:
            logger.warning("OPENAI_API_KEY not set - insights will use fallback text")

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _complete(self, prompt: str, json_mode: bool = False, max_tokens: int = 800) -> str:
        """Single chat completion, returns the message text"""
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.7,
                max_tokens=max_tokens,
                **kwargs
            )
        except APIError as e:
            raise OpenAIAPIError(
                message=f"Chat completion failed: {e}",
                status_code=getattr(e, "status_code", None),
                operation="chat_completion",
                cause=e
            ) from e

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise ValueError("Empty response from model")
        return content.strip()

    async def analyze_progress(self, progress: Dict[str, Any]) -> ProgressAnalysis:
        """
        Structured analysis of a user's progress.

        Args:
            progress: Output of GamificationService.get_progress()

        Returns:
            ProgressAnalysis (source='fallback' when the model wasn't used)
        """
        context = build_insight_context(progress)

        if not self.enabled:
            insight_requests_total.labels(kind="analysis", outcome="fallback").inc()
            return fallback_analysis(context)

        prompt = f"""Analyze this student's study data and give personalized, actionable insights.

STUDY DATA:
{json.dumps(context, indent=2)}

Return valid JSON only:
{{
  "insights": [
    {{
      "type": "positive|suggestion|warning|motivation",
      "title": "short title",
      "message": "specific, motivating message",
      "icon": "emoji",
      "action": "suggested action (optional)",
      "priority": "high|medium|low"
    }}
  ],
  "suggestions": ["3 practical suggestions"],
  "motivation": "personal motivational message",
  "score": number from 1 to 10,
  "strengths": ["strong areas"],
  "improvements": ["areas to improve"]
}}
"""

        try:
            content = await self._complete(prompt, json_mode=True)
            data = json.loads(content)
            analysis = ProgressAnalysis.model_validate({**data, "source": "ai"})
            insight_requests_total.labels(kind="analysis", outcome="success").inc()
            logger.info(f"Generated {len(analysis.insights)} AI insights")
            return analysis

        except Exception as e:
            logger.error(f"Error generating progress analysis: {e}", exc_info=True)
            insight_requests_total.labels(kind="analysis", outcome="fallback").inc()
            return fallback_analysis(context)

    async def daily_motivation(self, name: str, current_streak: int) -> str:
        """Two-sentence motivation for the user's current streak"""
        fallback = f"Keep going, {name}! Day {current_streak + 1} starts with one session. 💪"

        if not self.enabled:
            insight_requests_total.labels(kind="motivation", outcome="fallback").inc()
            return fallback

        prompt = (
            f"Write a personalized motivational message for {name}, who is on a "
            f"{current_streak}-day study streak. Be inspiring and specific, include emojis. "
            f"Max 2 sentences."
        )

        try:
            message = await self._complete(prompt, max_tokens=120)
            insight_requests_total.labels(kind="motivation", outcome="success").inc()
            return message
        except Exception as e:
            logger.error(f"Error generating daily motivation: {e}", exc_info=True)
            insight_requests_total.labels(kind="motivation", outcome="fallback").inc()
            return fallback

    async def generate_quote(self, category: str = "motivation") -> str:
        """Short quote for a category (motivation, study, success, focus)"""
        if category not in QUOTE_PROMPTS:
            logger.warning(f"Unknown quote category '{category}', using 'motivation'")
            category = "motivation"

        if not self.enabled:
            insight_requests_total.labels(kind="quote", outcome="fallback").inc()
            return FALLBACK_QUOTES[category]

        try:
            quote = await self._complete(QUOTE_PROMPTS[category], max_tokens=60)
            insight_requests_total.labels(kind="quote", outcome="success").inc()
            return quote.strip('"')
        except Exception as e:
            logger.error(f"Error generating quote: {e}", exc_info=True)
            insight_requests_total.labels(kind="quote", outcome="fallback").inc()
            return FALLBACK_QUOTES[category]
