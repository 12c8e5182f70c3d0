"""Deterministic motivational messages shown after a session is logged"""
from typing import Optional


def get_motivational_message(level: int, current_streak: int, total_xp: int) -> Optional[str]:
    """
    Pick a celebration message, or None when nothing is worth celebrating

    First match wins:
    - streak of 7+ days
    - level above 1 on a 500 XP boundary
    - positive XP on a 200 XP boundary
    """
    if current_streak >= 7:
        return f"🔥 Amazing streak! {current_streak} days in a row. Keep it going!"
    if level > 1 and total_xp % 500 == 0:
        return f"🏆 Level reached! You are now level {level}. Keep evolving!"
    if total_xp > 0 and total_xp % 200 == 0:
        return f"⭐ Steady progress! {total_xp} XP earned so far."
    return None
