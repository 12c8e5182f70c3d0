"""
Database queries - re-exported so callers can use 'from studyquest.db import queries'.

Module organization:
- activity.py: Study session log (append, list, delete)
- gamification.py: Streak records, achievement catalog, unlocks
"""

# Study session log
from studyquest.db.queries.activity import (
    list_events,
    list_recent_events,
    append_event,
    get_event,
    delete_event,
)

# Gamification
from studyquest.db.queries.gamification import (
    get_streak_record,
    save_streak_record,
    delete_streak_record,
    get_achievement_catalog,
    upsert_achievement_definition,
    get_unlocked_achievement_ids,
    get_user_unlocks,
    unlock_achievement,
)

__all__ = [
    # Study session log
    "list_events",
    "list_recent_events",
    "append_event",
    "get_event",
    "delete_event",

    # Gamification
    "get_streak_record",
    "save_streak_record",
    "delete_streak_record",
    "get_achievement_catalog",
    "upsert_achievement_definition",
    "get_unlocked_achievement_ids",
    "get_user_unlocks",
    "unlock_achievement",
]
