"""
Gamification engine for StudyQuest

Turns a log of dated study sessions into derived state:
- Daily streaks (current and longest)
- XP and level
- Achievement unlocks

Everything here is pure; persistence lives in studyquest.db.queries and
the orchestration in studyquest.services.gamification_service.
"""

from studyquest.gamification.xp_system import (
    xp_for_duration,
    calculate_level_from_xp,
    total_xp_from_events,
)
from studyquest.gamification.streak_system import update_streak, rebuild_streak
from studyquest.gamification.achievement_system import (
    aggregate_stats,
    evaluate_achievements,
    calculate_progress,
)
from studyquest.gamification.areas import subject_to_area

__all__ = [
    "xp_for_duration",
    "calculate_level_from_xp",
    "total_xp_from_events",
    "update_streak",
    "rebuild_streak",
    "aggregate_stats",
    "evaluate_achievements",
    "calculate_progress",
    "subject_to_area",
]
