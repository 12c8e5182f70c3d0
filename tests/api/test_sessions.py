"""Tests for study session, progress and insight endpoints"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import date
from uuid import uuid4

from fastapi.testclient import TestClient

from studyquest.api.routes import get_gamification_service, get_insight_service
from studyquest.api.server import app
from studyquest.exceptions import QueryError, RecordNotFoundError, SyncPendingError, ValidationError
from studyquest.models.insight import ProgressAnalysis
from studyquest.models.progress import ActivityLogResult, AggregatedStats
from studyquest.models.streak import StreakRecord


@pytest.fixture
def service():
    """Mocked GamificationService"""
    mock = MagicMock()
    mock.log_activity = AsyncMock()
    mock.delete_activity = AsyncMock()
    mock.recalculate_progress = AsyncMock()
    mock.get_progress = AsyncMock()
    mock.list_sessions = AsyncMock()
    mock.get_session = AsyncMock()
    return mock


@pytest.fixture
def insights():
    """Mocked InsightService"""
    mock = MagicMock()
    mock.analyze_progress = AsyncMock(return_value=ProgressAnalysis(motivation="Keep going", source="fallback"))
    mock.generate_quote = AsyncMock(return_value="Small steps every day add up to big results.")
    mock.daily_motivation = AsyncMock(return_value="Keep going! Day 3 starts with one session. 💪")
    return mock


@pytest.fixture
def client(service, insights, monkeypatch, test_api_key):
    """Test client with services overridden (lifespan not run)"""
    monkeypatch.setenv("API_KEYS", test_api_key)
    app.dependency_overrides[get_gamification_service] = lambda: service
    app.dependency_overrides[get_insight_service] = lambda: insights
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers(test_api_key):
    return {"Authorization": f"Bearer {test_api_key}"}


@pytest.fixture
def progress(make_event, test_user_id):
    """get_progress() output for two sessions"""
    events = [
        make_event(subject="Física", duration_minutes=45, on=date(2024, 1, 11)),
        make_event(subject="Matemática", duration_minutes=30, on=date(2024, 1, 10)),
    ]
    return {
        "user_id": test_user_id,
        "total_xp": 150,
        "level": 2,
        "xp_in_current_level": 50,
        "xp_to_next_level": 50,
        "streak": StreakRecord(
            user_id=test_user_id, current_streak=2, longest_streak=2, last_activity_date=date(2024, 1, 11)
        ),
        "streak_alive": True,
        "level_display": "⭐ Level 2 █████░░░░░ 50 XP to next level",
        "streak_display": "🔥 Streak: 2 days",
        "sessions_this_week": 2,
        "total_hours": 1.3,
        "stats": AggregatedStats(
            total_minutes=75, total_sessions=2, total_xp=150, current_streak=2,
            sessions_by_area={"natural_sciences": 1, "mathematics": 1},
        ),
        "unlocked": [],
        "locked": [{"id": "first_hour", "name": "Primeira Hora", "progress": {"percentage": 100}}],
        "recent_sessions": events,
    }


# ============================================================================
# Auth
# ============================================================================

def test_missing_api_key_rejected(client, test_user_id):
    """Test requests without a key are refused"""
    response = client.get(f"/api/v1/users/{test_user_id}/xp")

    assert response.status_code in (401, 403)


def test_invalid_api_key_rejected(client, test_user_id):
    """Test an unknown key is refused"""
    response = client.get(
        f"/api/v1/users/{test_user_id}/xp",
        headers={"Authorization": "Bearer wrong_key"}
    )

    assert response.status_code == 401


# ============================================================================
# POST /sessions
# ============================================================================

def test_log_session(client, service, headers, make_event, test_user_id):
    """Test a logged session returns streak, level and unlocks"""
    event = make_event(subject="Matemática", duration_minutes=30, on=date(2024, 1, 10))
    service.log_activity.return_value = ActivityLogResult(
        event=event,
        streak=StreakRecord(user_id=test_user_id, current_streak=1, longest_streak=1, last_activity_date=date(2024, 1, 10)),
        total_xp=60,
        level=1,
        xp_to_next_level=40,
    )

    response = client.post(
        f"/api/v1/users/{test_user_id}/sessions",
        json={"subject": "Matemática", "duration_minutes": 30, "date": "2024-01-10"},
        headers=headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["session"]["xp_earned"] == 60
    assert data["session"]["area"] == "mathematics"
    assert data["streak"]["current_streak"] == 1
    assert data["level"] == 1
    assert data["xp_to_next_level"] == 40
    assert data["sync_pending"] is False
    assert data["celebrations"] == []
    service.log_activity.assert_awaited_once_with(
        user_id=test_user_id,
        subject="Matemática",
        duration_minutes=30,
        activity_date=date(2024, 1, 10),
        notes=None
    )


def test_log_session_validation_error(client, service, headers, test_user_id):
    """Test engine validation errors map to 422"""
    service.log_activity.side_effect = ValidationError(
        "Duration must be a positive whole number of minutes", field="duration_minutes", value=0
    )

    response = client.post(
        f"/api/v1/users/{test_user_id}/sessions",
        json={"subject": "Física", "duration_minutes": 0},
        headers=headers
    )

    assert response.status_code == 422
    assert "duration_minutes" in response.json()["detail"]


@pytest.mark.parametrize("duration", [True, "30", 30.0])
def test_log_session_rejects_non_integer_duration(client, service, headers, test_user_id, duration):
    """Test bools, numeric strings and floats are refused before the service runs"""
    response = client.post(
        f"/api/v1/users/{test_user_id}/sessions",
        json={"subject": "Física", "duration_minutes": duration},
        headers=headers
    )

    assert response.status_code == 422
    service.log_activity.assert_not_awaited()


def test_log_session_sync_pending(client, service, headers, make_event, test_user_id):
    """Test a saved session with a failed follow-up step returns 202"""
    event = make_event()
    service.log_activity.side_effect = SyncPendingError(
        "streak write failed", event=event, stage="streak_updated"
    )

    response = client.post(
        f"/api/v1/users/{test_user_id}/sessions",
        json={"subject": "Matemática", "duration_minutes": 30, "date": "2024-01-10"},
        headers=headers
    )

    assert response.status_code == 202
    data = response.json()
    assert data["sync_pending"] is True
    assert data["failed_stage"] == "streak_updated"
    assert data["session"]["id"] == str(event.id)


def test_log_session_store_unavailable(client, service, headers, test_user_id):
    """Test a failed append maps to 503"""
    service.log_activity.side_effect = QueryError("insert failed")

    response = client.post(
        f"/api/v1/users/{test_user_id}/sessions",
        json={"subject": "Física", "duration_minutes": 30},
        headers=headers
    )

    assert response.status_code == 503


# ============================================================================
# DELETE /sessions / POST /recalculate
# ============================================================================

def test_delete_session(client, service, headers, test_user_id):
    """Test deletion returns recomputed progress"""
    session_id = uuid4()
    service.delete_activity.return_value = {
        "streak": None,
        "total_xp": 0,
        "level": 1,
        "xp_to_next_level": 100,
        "newly_unlocked": [],
    }

    response = client.delete(f"/api/v1/users/{test_user_id}/sessions/{session_id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["level"] == 1
    service.delete_activity.assert_awaited_once_with(test_user_id, session_id)


def test_delete_session_not_found(client, service, headers, test_user_id):
    """Test deleting an unknown session returns 404"""
    service.delete_activity.side_effect = RecordNotFoundError("missing", record_type="Study session")

    response = client.delete(f"/api/v1/users/{test_user_id}/sessions/{uuid4()}", headers=headers)

    assert response.status_code == 404


def test_recalculate(client, service, headers, test_user_id):
    """Test manual recalculation"""
    service.recalculate_progress.return_value = {
        "streak": StreakRecord(user_id=test_user_id, current_streak=3, longest_streak=3, last_activity_date=date(2024, 1, 12)),
        "total_xp": 240,
        "level": 3,
        "xp_to_next_level": 60,
        "newly_unlocked": [],
    }

    response = client.post(f"/api/v1/users/{test_user_id}/recalculate", headers=headers)

    assert response.status_code == 200
    assert response.json()["streak"]["current_streak"] == 3


# ============================================================================
# GET progress views
# ============================================================================

def test_get_progress(client, service, headers, progress, test_user_id):
    """Test the full progress view"""
    service.get_progress.return_value = progress

    response = client.get(f"/api/v1/users/{test_user_id}/progress", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_xp"] == 150
    assert data["streak_display"] == "🔥 Streak: 2 days"
    assert data["sessions_this_week"] == 2
    assert data["total_hours"] == 1.3
    assert data["stats"]["sessions_by_area"] == {"natural_sciences": 1, "mathematics": 1}
    assert [s["area"] for s in data["recent_sessions"]] == ["natural_sciences", "mathematics"]


def test_get_xp(client, service, headers, progress, test_user_id):
    """Test getting XP and level"""
    service.get_progress.return_value = progress

    response = client.get(f"/api/v1/users/{test_user_id}/xp", headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "user_id": test_user_id,
        "xp": 150,
        "level": 2,
        "xp_in_current_level": 50,
        "xp_to_next_level": 50,
    }


def test_get_streak(client, service, headers, progress, test_user_id):
    """Test getting the streak"""
    service.get_progress.return_value = progress

    response = client.get(f"/api/v1/users/{test_user_id}/streak", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["current_streak"] == 2
    assert data["last_activity_date"] == "2024-01-11"
    assert data["streak_alive"] is True


def test_get_achievements(client, service, headers, progress, test_user_id):
    """Test getting unlocked and locked achievements"""
    service.get_progress.return_value = progress

    response = client.get(f"/api/v1/users/{test_user_id}/achievements", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["unlocked"] == []
    assert data["locked"][0]["id"] == "first_hour"


def test_get_insights(client, service, insights, headers, progress, test_user_id):
    """Test insights always answer, using fallback text when needed"""
    service.get_progress.return_value = progress

    response = client.get(
        f"/api/v1/users/{test_user_id}/insights",
        params={"quote_category": "focus"},
        headers=headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["analysis"]["source"] == "fallback"
    assert data["quote"]
    insights.generate_quote.assert_awaited_once_with("focus")
    assert data["daily_motivation"].startswith("Keep going")
    insights.daily_motivation.assert_awaited_once_with(test_user_id, 2)


def test_get_insights_named_motivation_after_missed_day(client, service, insights, headers, progress, test_user_id):
    """Test the motivation uses the given name and a broken streak counts as 0"""
    service.get_progress.return_value = {**progress, "streak_alive": False}

    response = client.get(
        f"/api/v1/users/{test_user_id}/insights",
        params={"name": "Ana"},
        headers=headers
    )

    assert response.status_code == 200
    insights.daily_motivation.assert_awaited_once_with("Ana", 0)


# ============================================================================
# Health
# ============================================================================

def test_health_without_database(client):
    """Test health reports degraded when the pool isn't open"""
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


# ============================================================================
# GET /sessions
# ============================================================================

def test_list_sessions(client, service, headers, make_event, test_user_id):
    """Test recent sessions are listed with their area"""
    service.list_sessions.return_value = [make_event(subject="Redação", duration_minutes=50)]

    response = client.get(f"/api/v1/users/{test_user_id}/sessions", params={"limit": 5}, headers=headers)

    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert sessions[0]["area"] == "essay"
    assert sessions[0]["xp_earned"] == 100
    service.list_sessions.assert_awaited_once_with(test_user_id, 5)


def test_list_sessions_limit_bounds(client, headers, test_user_id):
    """Test out-of-range limits are rejected"""
    response = client.get(f"/api/v1/users/{test_user_id}/sessions", params={"limit": 0}, headers=headers)

    assert response.status_code == 422


def test_get_session_not_found(client, service, headers, test_user_id):
    """Test an unknown session returns 404"""
    service.get_session.side_effect = RecordNotFoundError("missing", record_type="Study session")

    response = client.get(f"/api/v1/users/{test_user_id}/sessions/{uuid4()}", headers=headers)

    assert response.status_code == 404
