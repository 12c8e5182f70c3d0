"""
Daily Study Streak System

A streak counts consecutive calendar days with at least one study session.

Rules (incremental update):
- First activity ever: streak starts at 1
- Same day as the last counted day: no change
- Next day: streak continues (+1)
- Gap of more than one day: streak restarts at 1
- Backdated activity (before the last counted day): no change
- Longest streak only ever grows during incremental updates

rebuild_streak() derives the same record from the full list of session dates
and is used whenever the incremental record can't be trusted (deletions,
manual recalculation).
"""

from typing import Iterable, Optional
from datetime import date, timedelta
import logging

from studyquest.models.streak import StreakRecord
from studyquest.utils.datetime_helpers import DateLike, days_between, to_local_date

logger = logging.getLogger(__name__)


def update_streak(existing: Optional[StreakRecord], activity_date: DateLike) -> StreakRecord:
    """
    Apply one new activity to a streak record

    Pure: the caller persists the returned record. Returns ``existing`` itself
    when nothing changes (same day or backdated activity).

    Args:
        existing: Current record, or None for a user's first activity
        activity_date: Date of the new activity

    Returns:
        Updated StreakRecord
    """
    activity_date = to_local_date(activity_date)

    if existing is None or existing.last_activity_date is None:
        return StreakRecord(
            user_id=existing.user_id if existing else None,
            current_streak=1,
            longest_streak=max(1, existing.longest_streak if existing else 0),
            last_activity_date=activity_date,
        )

    gap_days = days_between(existing.last_activity_date, activity_date)

    if gap_days == 0:
        return existing

    if gap_days < 0:
        logger.debug(
            f"Backdated activity {activity_date} precedes last counted day "
            f"{existing.last_activity_date}; streak unchanged"
        )
        return existing

    if gap_days == 1:
        new_current = existing.current_streak + 1
    else:
        new_current = 1
        logger.info(
            f"Streak broken for user {existing.user_id}: was {existing.current_streak}, "
            f"gap was {gap_days} days"
        )

    return StreakRecord(
        user_id=existing.user_id,
        current_streak=new_current,
        longest_streak=max(existing.longest_streak, new_current),
        last_activity_date=activity_date,
    )


def rebuild_streak(dates: Iterable[DateLike], user_id: Optional[str] = None) -> Optional[StreakRecord]:
    """
    Reconstruct a streak record from every session date

    Input order doesn't matter and repeated days count once. The current streak
    is the run of consecutive days ending at the most recent session date.

    Returns:
        StreakRecord, or None if there are no dates
    """
    days = sorted({to_local_date(d) for d in dates})
    if not days:
        return None

    longest = 1
    run = 1
    for previous, current in zip(days, days[1:]):
        if current - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    return StreakRecord(
        user_id=user_id,
        current_streak=run,
        longest_streak=longest,
        last_activity_date=days[-1],
    )


def is_streak_alive(record: Optional[StreakRecord], today: date) -> bool:
    """True if the streak can still be continued today (last day is today or yesterday)"""
    if record is None or record.last_activity_date is None:
        return False
    return 0 <= days_between(record.last_activity_date, today) <= 1


def format_streak_display(record: Optional[StreakRecord], alive: bool = True) -> str:
    """
    Format a streak for display

    Args:
        record: Streak record (None when the user never studied)
        alive: False once a day was missed; the stored count is then stale

    Returns:
        Formatted string for display
    """
    if record is None or record.current_streak == 0:
        return "No active streak yet. Log a study session to start one! 💪"

    if not alive:
        return f"⏸️ Streak paused (best: {record.longest_streak}). Study today to start a new one!"

    line = f"🔥 Streak: {record.current_streak} days"
    if record.longest_streak > record.current_streak:
        line += f" (best: {record.longest_streak})"
    return line
