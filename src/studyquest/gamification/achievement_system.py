"""
Achievement System

Decides which catalog achievements a user newly qualifies for.

Requirement kinds:
- study_time: total minutes studied >= value
- streak: current streak >= value
- subject_area: sessions in the definition's target_area >= value
- all_areas: every core area has >= value sessions

Evaluation is pure. Persisting unlocks (exactly once per user and
achievement) is the caller's job. Definitions with an unknown requirement
kind, or a subject_area definition without a target_area, never qualify.
"""

from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set
import logging
import math

from studyquest.gamification.areas import count_by_area, normalize_subject
from studyquest.models.achievement import (
    Area,
    CORE_AREAS,
    RequirementKind,
    AchievementDefinition,
)
from studyquest.models.activity import ActivityEvent
from studyquest.models.progress import AggregatedStats

logger = logging.getLogger(__name__)


def aggregate_stats(events: Iterable[ActivityEvent], current_streak: int) -> AggregatedStats:
    """
    Build AggregatedStats from the full session log

    Args:
        events: Every session of the user, any order
        current_streak: Current streak length after the latest update
    """
    events = list(events)
    return AggregatedStats(
        total_minutes=sum(e.duration_minutes for e in events),
        total_sessions=len(events),
        total_xp=sum(e.xp_earned for e in events),
        current_streak=current_streak,
        sessions_by_area=count_by_area(e.subject for e in events),
    )


def count_sessions_this_week(events: Iterable[ActivityEvent], today: date, days: int = 7) -> int:
    """Sessions dated on or after today minus `days` (a session exactly a week old counts)"""
    since = today - timedelta(days=days)
    return sum(1 for e in events if e.date >= since)


def minutes_to_hours(total_minutes: int) -> float:
    """Minutes as hours, rounded half up to one decimal"""
    return math.floor(total_minutes / 6 + 0.5) / 10


# ============================================
# Rule helpers (current value for a definition)
# ============================================

def _study_time_value(definition: AchievementDefinition, stats: AggregatedStats) -> Optional[int]:
    return stats.total_minutes


def _streak_value(definition: AchievementDefinition, stats: AggregatedStats) -> Optional[int]:
    return stats.current_streak


def _subject_area_value(definition: AchievementDefinition, stats: AggregatedStats) -> Optional[int]:
    if definition.target_area is None:
        return None
    return stats.sessions_by_area.get(definition.target_area.value, 0)


def _all_areas_value(definition: AchievementDefinition, stats: AggregatedStats) -> Optional[int]:
    # The weakest core area decides
    return min(stats.sessions_by_area.get(area.value, 0) for area in CORE_AREAS)


_RULES: Dict[str, Callable[[AchievementDefinition, AggregatedStats], Optional[int]]] = {
    RequirementKind.STUDY_TIME.value: _study_time_value,
    RequirementKind.STREAK.value: _streak_value,
    RequirementKind.SUBJECT_AREA.value: _subject_area_value,
    RequirementKind.ALL_AREAS.value: _all_areas_value,
}


def _current_value(definition: AchievementDefinition, stats: AggregatedStats) -> Optional[int]:
    """Current progress value, or None when the definition can't be evaluated"""
    rule = _RULES.get(definition.requirement_type)
    if rule is None:
        return None
    return rule(definition, stats)


def qualifies(definition: AchievementDefinition, stats: AggregatedStats) -> bool:
    """Whether stats meet the definition's requirement"""
    value = _current_value(definition, stats)
    return value is not None and value >= definition.requirement_value


def evaluate_achievements(
    stats: AggregatedStats,
    catalog: Iterable[AchievementDefinition],
    already_unlocked: Set[str],
) -> List[AchievementDefinition]:
    """
    Newly qualifying achievements

    Args:
        stats: Aggregated statistics for the user
        catalog: All achievement definitions
        already_unlocked: IDs of achievements the user already has

    Returns:
        Qualifying definitions not in already_unlocked, in catalog order,
        each ID at most once
    """
    newly_qualified = []
    seen = set(already_unlocked)

    for definition in catalog:
        if definition.id in seen:
            continue
        if qualifies(definition, stats):
            newly_qualified.append(definition)
            seen.add(definition.id)

    return newly_qualified


def calculate_progress(definition: AchievementDefinition, stats: AggregatedStats) -> Dict:
    """
    Calculate progress toward an achievement

    Returns:
        {
            'current': int,
            'required': int,
            'percentage': int,
            'description': str
        }
    """
    value = _current_value(definition, stats)
    current = value or 0
    required = definition.requirement_value

    if value is None:
        percentage = 0
    elif required > 0:
        percentage = min(100, int(current / required * 100))
    else:
        percentage = 100

    return {
        'current': current,
        'required': required,
        'percentage': percentage,
        'description': f"{current}/{required}"
    }


# Name keywords used by legacy catalogs that bound area achievements by name
_LEGACY_AREA_KEYWORDS: Dict[str, Area] = {
    "linguista": Area.LANGUAGES,
    "humanista": Area.HUMANITIES,
    "cientista": Area.NATURAL_SCIENCES,
    "matematico": Area.MATHEMATICS,
    "redator": Area.ESSAY,
}


def infer_target_area(name: str) -> Optional[Area]:
    """
    Guess a target area from a legacy achievement name

    Only for seeding/migrating catalogs; the evaluator reads target_area.
    """
    normalized = normalize_subject(name)
    for keyword, area in _LEGACY_AREA_KEYWORDS.items():
        if keyword in normalized:
            return area
    return None


def format_achievement_unlock_message(achievement: AchievementDefinition) -> str:
    """
    Format achievement unlock message for celebration

    Args:
        achievement: Newly unlocked definition

    Returns:
        Formatted celebration message
    """
    return f"""🎉 ACHIEVEMENT UNLOCKED! 🎉

{achievement.icon} {achievement.name}

{achievement.description}

⭐ +{achievement.xp_reward} XP"""
