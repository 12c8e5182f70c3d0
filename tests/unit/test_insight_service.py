"""Unit tests for InsightService"""

import json
import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock
from types import SimpleNamespace
from datetime import date

from studyquest.models.progress import AggregatedStats
from studyquest.models.streak import StreakRecord
from studyquest.services.insight_service import (
    FALLBACK_QUOTES,
    InsightService,
    build_insight_context,
    fallback_analysis,
)


def _completion(content):
    """Shape of an OpenAI chat completion response"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def progress():
    """Minimal get_progress() output"""
    return {
        "level": 3,
        "total_xp": 250,
        "streak": StreakRecord(current_streak=8, longest_streak=8, last_activity_date=date(2024, 1, 10)),
        "streak_alive": True,
        "stats": AggregatedStats(
            total_minutes=125,
            total_sessions=4,
            total_xp=250,
            current_streak=8,
            sessions_by_area={"mathematics": 3, "languages": 1},
        ),
        "unlocked": [{"id": "first_hour"}],
        "locked": [{"id": "dedicated"}, {"id": "streak_30"}],
    }


@pytest.fixture
def enabled_service():
    """Service with a mocked OpenAI client"""
    service = InsightService(api_key="sk-test", model="gpt-4o-mini", enabled=True)
    service._client = MagicMock()
    service._client.chat.completions.create = AsyncMock()
    return service


# ============================================================================
# Context / Fallback Tests
# ============================================================================

def test_build_insight_context(progress):
    """Test the context keeps only what the model needs"""
    context = build_insight_context(progress)

    assert context["level"] == 3
    assert context["current_streak"] == 8
    assert context["sessions_by_area"] == {"mathematics": 3, "languages": 1}
    assert context["achievements_unlocked"] == 1
    assert context["achievements_total"] == 3


def test_fallback_analysis_flags_missing_areas(progress):
    """Test fallback praises the streak and lists areas without sessions"""
    analysis = fallback_analysis(build_insight_context(progress))

    assert analysis.source == "fallback"
    assert {i.type for i in analysis.insights} == {"positive", "suggestion"}
    assert set(analysis.improvements) == {"humanities", "natural_sciences"}
    assert analysis.strengths[0] == "mathematics"
    assert 1 <= analysis.score <= 10


def test_fallback_analysis_new_user():
    """Test a user with no sessions is nudged to start"""
    context = {
        "level": 1, "total_xp": 0, "current_streak": 0, "longest_streak": 0,
        "streak_alive": False, "total_minutes": 0, "total_sessions": 0,
        "sessions_by_area": {}, "achievements_unlocked": 0, "achievements_total": 0,
    }

    analysis = fallback_analysis(context)

    assert analysis.insights[0].title == "Start your first session"
    assert analysis.strengths == []
    assert analysis.score == 1


# ============================================================================
# analyze_progress
# ============================================================================

@pytest.mark.asyncio
async def test_analyze_progress_disabled_uses_fallback(progress):
    """Test no API key means no model call"""
    service = InsightService(api_key="", enabled=True)

    analysis = await service.analyze_progress(progress)

    assert service.enabled is False
    assert analysis.source == "fallback"


@pytest.mark.asyncio
async def test_analyze_progress_ai(enabled_service, progress):
    """Test a valid JSON answer is returned as an AI analysis"""
    enabled_service.client.chat.completions.create.return_value = _completion(json.dumps({
        "insights": [{"type": "positive", "title": "Great", "message": "Keep it up", "icon": "🔥", "priority": "high"}],
        "suggestions": ["Study humanities"],
        "motivation": "You got this",
        "score": 8,
        "strengths": ["mathematics"],
        "improvements": ["humanities"],
    }))

    analysis = await enabled_service.analyze_progress(progress)

    assert analysis.source == "ai"
    assert analysis.score == 8
    assert analysis.insights[0].title == "Great"
    kwargs = enabled_service.client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_analyze_progress_malformed_json_falls_back(enabled_service, progress):
    """Test unparseable output falls back to canned analysis"""
    enabled_service.client.chat.completions.create.return_value = _completion("not json at all")

    analysis = await enabled_service.analyze_progress(progress)

    assert analysis.source == "fallback"


@pytest.mark.asyncio
async def test_analyze_progress_openai_error_falls_back(enabled_service, progress):
    """Test OpenAI client errors are wrapped and fall back"""
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    enabled_service.client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

    analysis = await enabled_service.analyze_progress(progress)

    assert analysis.source == "fallback"


@pytest.mark.asyncio
async def test_analyze_progress_api_error_falls_back(enabled_service, progress):
    """Test API errors never reach the caller"""
    enabled_service.client.chat.completions.create.side_effect = RuntimeError("rate limited")

    analysis = await enabled_service.analyze_progress(progress)

    assert analysis.source == "fallback"


# ============================================================================
# daily_motivation / generate_quote
# ============================================================================

@pytest.mark.asyncio
async def test_daily_motivation_ai(enabled_service):
    """Test the model answer is returned as-is"""
    enabled_service.client.chat.completions.create.return_value = _completion(" Day 9, let's go! 🚀 ")

    message = await enabled_service.daily_motivation("Ana", 8)

    assert message == "Day 9, let's go! 🚀"


@pytest.mark.asyncio
async def test_daily_motivation_empty_answer_falls_back(enabled_service):
    """Test an empty completion uses the fallback text"""
    enabled_service.client.chat.completions.create.return_value = _completion("   ")

    message = await enabled_service.daily_motivation("Ana", 8)

    assert "Ana" in message
    assert "Day 9" in message


@pytest.mark.asyncio
async def test_generate_quote_strips_quotes(enabled_service):
    """Test surrounding quote marks are removed"""
    enabled_service.client.chat.completions.create.return_value = _completion('"Focus wins."')

    assert await enabled_service.generate_quote("focus") == "Focus wins."


@pytest.mark.asyncio
async def test_generate_quote_unknown_category_disabled():
    """Test unknown categories fall back to motivation"""
    service = InsightService(api_key="", enabled=False)

    assert await service.generate_quote("poetry") == FALLBACK_QUOTES["motivation"]
