"""
XP and Leveling System

XP is earned per study session at a fixed rate per minute and stored on the
session for display. Level is always recomputed from the live sum over the
session log, never from a cached total.

Leveling Curve:
- Flat bracket of XP_PER_LEVEL (100) XP per level
- level = total_xp // 100 + 1
- xp_to_next_level = 100 - total_xp % 100
"""

from typing import Dict, Iterable
import logging

from studyquest.config import XP_PER_MINUTE, XP_PER_LEVEL
from studyquest.models.activity import ActivityEvent

logger = logging.getLogger(__name__)


def xp_for_duration(duration_minutes: int, xp_per_minute: int = XP_PER_MINUTE) -> int:
    """XP earned by a session of the given length"""
    if duration_minutes < 0:
        raise ValueError(f"duration_minutes must not be negative, got {duration_minutes}")
    return duration_minutes * xp_per_minute


def calculate_level_from_xp(total_xp: int, xp_per_level: int = XP_PER_LEVEL) -> Dict[str, int]:
    """
    Calculate level from total XP

    Returns:
        {
            'current_level': int,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int
        }
    """
    if total_xp < 0:
        raise ValueError(f"total_xp must not be negative, got {total_xp}")

    level = total_xp // xp_per_level + 1
    xp_in_current_level = total_xp % xp_per_level

    return {
        "current_level": level,
        "xp_in_current_level": xp_in_current_level,
        "xp_to_next_level": xp_per_level - xp_in_current_level,
        "total_xp_for_next_level": level * xp_per_level,
    }


def total_xp_from_events(events: Iterable[ActivityEvent]) -> int:
    """Live XP total over the session log"""
    return sum(event.xp_earned for event in events)


def get_level_info(events: Iterable[ActivityEvent]) -> Dict[str, int]:
    """Level info for a session log, including 'total_xp'"""
    total_xp = total_xp_from_events(events)
    return {"total_xp": total_xp, **calculate_level_from_xp(total_xp)}


def format_level_display(level_info: Dict[str, int]) -> str:
    """One-line level summary with a text progress bar"""
    bracket = level_info["xp_in_current_level"] + level_info["xp_to_next_level"]
    filled = level_info["xp_in_current_level"] * 10 // bracket
    bar = "█" * filled + "░" * (10 - filled)
    return (
        f"⭐ Level {level_info['current_level']} {bar} "
        f"{level_info['xp_to_next_level']} XP to next level"
    )
