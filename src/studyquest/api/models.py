"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import date as dt_date, datetime
from uuid import UUID

from studyquest.models.achievement import AchievementDefinition
from studyquest.models.insight import ProgressAnalysis
from studyquest.models.progress import AggregatedStats
from studyquest.models.streak import StreakRecord


class StudySessionRequest(BaseModel):
    """Request to log a study session"""
    subject: str = Field(..., description="Subject studied, e.g. 'Física'")
    duration_minutes: int = Field(..., strict=True, description="Positive whole minutes (no bools, strings or floats)")
    date: Optional[dt_date] = Field(default=None, description="Session date (defaults to today)")
    notes: Optional[str] = Field(default=None, description="Optional notes")


class SessionResponse(BaseModel):
    """A stored study session"""
    id: UUID
    subject: str
    area: str
    duration_minutes: int
    xp_earned: int
    date: dt_date
    notes: Optional[str] = None
    created_at: datetime


class SessionListResponse(BaseModel):
    """Recent study sessions, newest first"""
    user_id: str
    sessions: List[SessionResponse]


class ActivityLogResponse(BaseModel):
    """Result of logging a study session"""
    user_id: str
    session: SessionResponse
    streak: StreakRecord
    total_xp: int
    level: int
    xp_to_next_level: int
    leveled_up: bool
    newly_unlocked: List[AchievementDefinition]
    celebrations: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    sync_pending: bool = False


class SyncPendingResponse(BaseModel):
    """Session saved, derived state not yet updated"""
    user_id: str
    session: SessionResponse
    sync_pending: bool = True
    failed_stage: Optional[str] = None
    detail: str


class XPResponse(BaseModel):
    """Response with XP and level info"""
    user_id: str
    xp: int
    level: int
    xp_in_current_level: int
    xp_to_next_level: int


class StreakResponse(BaseModel):
    """Response with streak info"""
    user_id: str
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[dt_date] = None
    streak_alive: bool


class AchievementResponse(BaseModel):
    """Response with achievement info"""
    user_id: str
    unlocked: List[Dict[str, Any]]
    locked: List[Dict[str, Any]]


class ProgressResponse(BaseModel):
    """Full progress view"""
    user_id: str
    total_xp: int
    level: int
    xp_in_current_level: int
    xp_to_next_level: int
    streak: StreakRecord
    streak_alive: bool
    level_display: str
    streak_display: str
    sessions_this_week: int
    total_hours: float
    stats: AggregatedStats
    unlocked: List[Dict[str, Any]]
    locked: List[Dict[str, Any]]
    recent_sessions: List[SessionResponse]


class RecalculateResponse(BaseModel):
    """Result of rebuilding derived state"""
    user_id: str
    streak: Optional[StreakRecord] = None
    total_xp: int
    level: int
    xp_to_next_level: int
    newly_unlocked: List[AchievementDefinition]


class InsightResponse(BaseModel):
    """AI (or fallback) feedback on progress"""
    user_id: str
    analysis: ProgressAnalysis
    quote: str
    daily_motivation: str


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    timestamp: datetime = Field(default_factory=datetime.now)
