"""Global test fixtures and utilities for studyquest tests"""
import pytest
from datetime import date, datetime
from uuid import uuid4

from studyquest.models.achievement import AchievementDefinition, Area, RequirementKind
from studyquest.models.activity import ActivityEvent


# ============================================================================
# User & Auth Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "b7e1c2d4-0000-4000-8000-000000000001"


@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


# ============================================================================
# Session Fixtures
# ============================================================================

@pytest.fixture
def make_event(test_user_id):
    """Factory for study sessions (xp follows the default 2 XP per minute)"""
    def _make(subject="Matemática", duration_minutes=30, on=date(2024, 1, 10), **kwargs):
        return ActivityEvent(
            id=kwargs.pop("id", uuid4()),
            user_id=kwargs.pop("user_id", test_user_id),
            subject=subject,
            duration_minutes=duration_minutes,
            xp_earned=kwargs.pop("xp_earned", duration_minutes * 2),
            date=on,
            created_at=kwargs.pop("created_at", datetime(on.year, on.month, on.day, 12, 0)),
            **kwargs
        )
    return _make


# ============================================================================
# Achievement Catalog Fixtures
# ============================================================================

@pytest.fixture
def sample_catalog():
    """Small catalog with one definition of each requirement kind"""
    return [
        AchievementDefinition(
            id="first_hour", name="Primeira Hora", description="Study 60 minutes",
            icon="⏱️", xp_reward=25,
            requirement_type=RequirementKind.STUDY_TIME, requirement_value=60,
        ),
        AchievementDefinition(
            id="dedicated", name="Dedicado", description="Study 10 hours",
            icon="📚", xp_reward=100,
            requirement_type=RequirementKind.STUDY_TIME, requirement_value=600,
        ),
        AchievementDefinition(
            id="streak_3", name="Embalado", description="3 days in a row",
            icon="🔥", xp_reward=30,
            requirement_type=RequirementKind.STREAK, requirement_value=3,
        ),
        AchievementDefinition(
            id="area_mathematics", name="Matemático", description="5 math sessions",
            icon="📐", xp_reward=50,
            requirement_type=RequirementKind.SUBJECT_AREA, requirement_value=5,
            target_area=Area.MATHEMATICS,
        ),
        AchievementDefinition(
            id="enem_ready", name="Pronto pro ENEM", description="1 session in every core area",
            icon="🎓", xp_reward=200,
            requirement_type=RequirementKind.ALL_AREAS, requirement_value=1,
        ),
    ]
