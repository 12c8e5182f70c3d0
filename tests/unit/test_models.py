"""Unit tests for Pydantic models"""
import pytest
from datetime import date
from pydantic import ValidationError

from studyquest.models.activity import ActivityEvent
from studyquest.models.achievement import AchievementDefinition, Area, RequirementKind
from studyquest.models.insight import ProgressAnalysis
from studyquest.models.progress import AggregatedStats, LogStage
from studyquest.models.streak import StreakRecord


def test_activity_event_defaults():
    """Test ActivityEvent fills id and created_at"""
    event = ActivityEvent(user_id="u1", subject=" Física ", duration_minutes=30, xp_earned=60, date=date(2024, 1, 10))

    assert event.id is not None
    assert event.created_at is not None
    assert event.subject == "Física"


def test_activity_event_rejects_blank_subject():
    """Test blank subjects are refused"""
    with pytest.raises(ValidationError):
        ActivityEvent(user_id="u1", subject="  ", duration_minutes=30, date=date(2024, 1, 10))


def test_activity_event_rejects_negative_duration():
    """Test negative durations are refused"""
    with pytest.raises(ValidationError):
        ActivityEvent(user_id="u1", subject="Física", duration_minutes=-1, date=date(2024, 1, 10))


def test_streak_record_defaults():
    """Test an empty streak record"""
    record = StreakRecord()

    assert record.current_streak == 0
    assert record.longest_streak == 0
    assert record.last_activity_date is None


def test_achievement_definition_keeps_unknown_kind():
    """Test catalog rows with unknown kinds still load"""
    definition = AchievementDefinition(id="x", name="X", requirement_type="books_read", requirement_value=3)

    assert definition.requirement_type == "books_read"
    assert definition.target_area is None


def test_achievement_definition_stores_kind_by_value():
    """Test enum members are stored as plain strings"""
    definition = AchievementDefinition(
        id="m", name="Matemático", requirement_type=RequirementKind.SUBJECT_AREA,
        requirement_value=5, target_area="mathematics",
    )

    assert type(definition.requirement_type) is str
    assert definition.requirement_type == "subject_area"
    assert definition.target_area is Area.MATHEMATICS


def test_achievement_definition_rejects_negative_threshold():
    """Test thresholds can't be negative"""
    with pytest.raises(ValidationError):
        AchievementDefinition(id="x", name="X", requirement_type="streak", requirement_value=-1)


def test_aggregated_stats_defaults():
    """Test zeroed stats"""
    stats = AggregatedStats()

    assert stats.total_sessions == 0
    assert stats.sessions_by_area == {}


def test_log_stage_values():
    """Test stage names used in metrics and API responses"""
    assert LogStage.EVENT_APPENDED.value == "event_appended"
    assert LogStage.DONE.value == "done"


def test_progress_analysis_score_bounds():
    """Test score must be 1..10"""
    with pytest.raises(ValidationError):
        ProgressAnalysis(score=11)
