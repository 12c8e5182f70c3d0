"""Domain models"""
from studyquest.models.activity import ActivityEvent
from studyquest.models.streak import StreakRecord
from studyquest.models.achievement import (
    Area,
    CORE_AREAS,
    RequirementKind,
    AchievementDefinition,
    UserAchievementUnlock,
)
from studyquest.models.progress import AggregatedStats, LogStage, ActivityLogResult

__all__ = [
    "ActivityEvent",
    "StreakRecord",
    "Area",
    "CORE_AREAS",
    "RequirementKind",
    "AchievementDefinition",
    "UserAchievementUnlock",
    "AggregatedStats",
    "LogStage",
    "ActivityLogResult",
]
