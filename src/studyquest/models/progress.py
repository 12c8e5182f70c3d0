"""Derived progress models"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from studyquest.models.activity import ActivityEvent
from studyquest.models.achievement import AchievementDefinition
from studyquest.models.streak import StreakRecord


class AggregatedStats(BaseModel):
    """Per-user statistics recomputed from the full session log"""
    total_minutes: int = 0
    total_sessions: int = 0
    total_xp: int = 0
    current_streak: int = 0
    sessions_by_area: dict[str, int] = Field(default_factory=dict)


class LogStage(str, Enum):
    """Steps of a logging action"""
    IDLE = "idle"
    EVENT_APPENDED = "event_appended"
    STREAK_UPDATED = "streak_updated"
    ACHIEVEMENTS_EVALUATED = "achievements_evaluated"
    DONE = "done"
    FAILED = "failed"


class ActivityLogResult(BaseModel):
    """What the caller shows after a session is logged"""
    event: ActivityEvent
    streak: StreakRecord
    total_xp: int
    level: int
    xp_to_next_level: int
    leveled_up: bool = False
    newly_unlocked: list[AchievementDefinition] = Field(default_factory=list)
    stage: LogStage = LogStage.DONE
    message: Optional[str] = None
