"""API routes for StudyQuest"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from studyquest.api.auth import verify_api_key
from studyquest.api.middleware import limiter
from studyquest.api.models import (
    StudySessionRequest, SessionResponse, SessionListResponse,
    ActivityLogResponse, SyncPendingResponse,
    XPResponse, StreakResponse, AchievementResponse,
    ProgressResponse, RecalculateResponse, InsightResponse,
    HealthCheckResponse,
)
from studyquest.db.connection import db
from studyquest.exceptions import (
    PersistenceError,
    RecordNotFoundError,
    SyncPendingError,
    ValidationError,
)
from studyquest.gamification.achievement_system import format_achievement_unlock_message
from studyquest.gamification.areas import subject_to_area
from studyquest.models.activity import ActivityEvent
from studyquest.services.container import get_container
from studyquest.services.gamification_service import GamificationService
from studyquest.services.insight_service import InsightService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_gamification_service() -> GamificationService:
    """Dependency: shared GamificationService"""
    return get_container().gamification_service


def get_insight_service() -> InsightService:
    """Dependency: shared InsightService"""
    return get_container().insight_service


def _session_response(event: ActivityEvent) -> SessionResponse:
    return SessionResponse(
        id=event.id,
        subject=event.subject,
        area=subject_to_area(event.subject).value,
        duration_minutes=event.duration_minutes,
        xp_earned=event.xp_earned,
        date=event.date,
        notes=event.notes,
        created_at=event.created_at,
    )


@router.post(
    "/api/v1/users/{user_id}/sessions",
    response_model=ActivityLogResponse,
    status_code=status.HTTP_201_CREATED,
    responses={202: {"model": SyncPendingResponse}}
)
@limiter.limit("30/minute")
async def log_study_session(
    request: Request,
    user_id: str,
    payload: StudySessionRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """
    Log a study session (Rate limit: 30/minute)

    Returns 202 with sync_pending=true when the session was saved but the
    streak/achievement update failed; the next action catches up.
    """
    try:
        result = await service.log_activity(
            user_id=user_id,
            subject=payload.subject,
            duration_minutes=payload.duration_minutes,
            activity_date=payload.date,
            notes=payload.notes
        )

        return ActivityLogResponse(
            user_id=user_id,
            session=_session_response(result.event),
            streak=result.streak,
            total_xp=result.total_xp,
            level=result.level,
            xp_to_next_level=result.xp_to_next_level,
            leveled_up=result.leveled_up,
            newly_unlocked=result.newly_unlocked,
            celebrations=[format_achievement_unlock_message(d) for d in result.newly_unlocked],
            message=result.message
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.user_message
        )
    except SyncPendingError as e:
        body = SyncPendingResponse(
            user_id=user_id,
            session=_session_response(e.event),
            failed_stage=e.stage,
            detail=e.user_message
        )
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=body.model_dump(mode="json")
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/sessions", response_model=SessionListResponse)
@limiter.limit("60/minute")
async def list_study_sessions(
    request: Request,
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Recent study sessions, newest first (Rate limit: 60/minute)"""
    try:
        events = await service.list_sessions(user_id, limit)
        return SessionListResponse(user_id=user_id, sessions=[_session_response(e) for e in events])

    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/sessions/{session_id}", response_model=SessionResponse)
@limiter.limit("60/minute")
async def get_study_session(
    request: Request,
    user_id: str,
    session_id: UUID,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get one study session (Rate limit: 60/minute)"""
    try:
        event = await service.get_session(user_id, session_id)
        return _session_response(event)

    except RecordNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.user_message
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.delete("/api/v1/users/{user_id}/sessions/{session_id}", response_model=RecalculateResponse)
@limiter.limit("30/minute")
async def delete_study_session(
    request: Request,
    user_id: str,
    session_id: UUID,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Delete a study session and recompute streak and level (Rate limit: 30/minute)"""
    try:
        result = await service.delete_activity(user_id, session_id)
        return RecalculateResponse(user_id=user_id, **result)

    except RecordNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.user_message
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.post("/api/v1/users/{user_id}/recalculate", response_model=RecalculateResponse)
@limiter.limit("10/minute")
async def recalculate_progress(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Rebuild derived state from the session log (Rate limit: 10/minute)"""
    try:
        result = await service.recalculate_progress(user_id)
        return RecalculateResponse(user_id=user_id, **result)

    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/progress", response_model=ProgressResponse)
@limiter.limit("60/minute")
async def get_progress(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Full progress view (Rate limit: 60/minute)"""
    try:
        progress = await service.get_progress(user_id)
        return ProgressResponse(
            **{**progress, "recent_sessions": [_session_response(e) for e in progress["recent_sessions"]]}
        )

    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/xp", response_model=XPResponse)
@limiter.limit("60/minute")
async def get_xp(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get user XP and level (Rate limit: 60/minute)"""
    try:
        progress = await service.get_progress(user_id)
        return XPResponse(
            user_id=user_id,
            xp=progress["total_xp"],
            level=progress["level"],
            xp_in_current_level=progress["xp_in_current_level"],
            xp_to_next_level=progress["xp_to_next_level"]
        )

    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/streak", response_model=StreakResponse)
@limiter.limit("60/minute")
async def get_streak(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get user streak (Rate limit: 60/minute)"""
    try:
        progress = await service.get_progress(user_id)
        streak = progress["streak"]
        return StreakResponse(
            user_id=user_id,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            last_activity_date=streak.last_activity_date,
            streak_alive=progress["streak_alive"]
        )

    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/achievements", response_model=AchievementResponse)
@limiter.limit("60/minute")
async def get_achievements(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get unlocked and locked achievements (Rate limit: 60/minute)"""
    try:
        progress = await service.get_progress(user_id)
        return AchievementResponse(
            user_id=user_id,
            unlocked=progress["unlocked"],
            locked=progress["locked"]
        )

    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )


@router.get("/api/v1/users/{user_id}/insights", response_model=InsightResponse)
@limiter.limit("10/minute")
async def get_insights(
    request: Request,
    user_id: str,
    quote_category: str = "motivation",
    name: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
    insights: InsightService = Depends(get_insight_service)
):
    """
    AI feedback on progress (Rate limit: 10/minute, AI calls are expensive)

    Always answers: insight failures fall back to canned text.
    `name` personalizes the daily motivation (defaults to the user ID).
    """
    try:
        progress = await service.get_progress(user_id)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.user_message
        )

    analysis = await insights.analyze_progress(progress)
    quote = await insights.generate_quote(quote_category)
    current_streak = progress["streak"].current_streak if progress["streak_alive"] else 0
    motivation = await insights.daily_motivation(name or user_id, current_streak)

    return InsightResponse(
        user_id=user_id,
        analysis=analysis,
        quote=quote,
        daily_motivation=motivation
    )


@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    try:
        async with db.connection() as conn:
            await conn.execute("SELECT 1")
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return HealthCheckResponse(
        status="healthy" if db_status == "connected" else "degraded",
        database=db_status,
        timestamp=datetime.now()
    )
