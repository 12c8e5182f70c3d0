"""
GamificationService - Gamification Orchestration

Runs a logging action end to end: append the study session, update the
streak, recompute level and achievements from the full session log, persist
new unlocks. Also owns the recompute paths (session deletion, manual
recalculation) and the progress view.
"""

import logging
import time
from typing import Any, Dict, List, Optional
from uuid import UUID

from studyquest.db import queries
from studyquest.exceptions import (
    PersistenceError,
    RecordNotFoundError,
    SyncPendingError,
    ValidationError,
)
from studyquest.gamification.achievement_system import (
    aggregate_stats,
    calculate_progress,
    count_sessions_this_week,
    evaluate_achievements,
    minutes_to_hours,
)
from studyquest.gamification.areas import subject_to_area
from studyquest.gamification.motivation import get_motivational_message
from studyquest.gamification.streak_system import (
    format_streak_display,
    is_streak_alive,
    rebuild_streak,
    update_streak,
)
from studyquest.gamification.xp_system import calculate_level_from_xp, format_level_display, get_level_info
from studyquest.models.achievement import AchievementDefinition
from studyquest.models.activity import ActivityEvent
from studyquest.models.progress import ActivityLogResult, AggregatedStats, LogStage
from studyquest.models.streak import StreakRecord
from studyquest.observability.metrics import (
    achievements_unlocked_total,
    gamification_duration_seconds,
    gamification_step_failures_total,
    study_sessions_logged_total,
    xp_awarded_total,
)
from studyquest.utils.datetime_helpers import DateLike, to_local_date, today_local

logger = logging.getLogger(__name__)

# Step that runs after each completed stage
_NEXT_STAGE = {
    LogStage.IDLE: LogStage.EVENT_APPENDED,
    LogStage.EVENT_APPENDED: LogStage.STREAK_UPDATED,
    LogStage.STREAK_UPDATED: LogStage.ACHIEVEMENTS_EVALUATED,
    LogStage.ACHIEVEMENTS_EVALUATED: LogStage.DONE,
}


class GamificationService:
    """
    Service for study gamification.

    Responsibilities:
    - Input validation for logging actions
    - Sequencing append → streak → level → achievements
    - Exactly-once achievement unlocks
    - Recomputing derived state after deletions
    - Building the progress view for the UI
    """

    async def log_activity(
        self,
        user_id: str,
        subject: str,
        duration_minutes: int,
        activity_date: Optional[DateLike] = None,
        notes: Optional[str] = None
    ) -> ActivityLogResult:
        """
        Log a study session and update derived gamification state.

        Args:
            user_id: Owner of the session
            subject: Subject studied (free text, non-empty)
            duration_minutes: Positive whole minutes
            activity_date: Calendar date of the session (defaults to today)
            notes: Optional free text

        Returns:
            ActivityLogResult with the new streak, level and unlocks

        Raises:
            ValidationError: Bad input; nothing was written
            PersistenceError: The session couldn't be saved; nothing was written
            SyncPendingError: The session was saved but a later step failed
        """
        subject, duration_minutes, activity_date = self._validate_activity(
            user_id, subject, duration_minutes, activity_date
        )
        started = time.perf_counter()
        stage = LogStage.IDLE

        # The append is the transaction boundary: no derived writes if it fails
        try:
            event = await queries.append_event(user_id, subject, duration_minutes, activity_date, notes)
        except PersistenceError:
            gamification_step_failures_total.labels(stage=LogStage.EVENT_APPENDED.value).inc()
            raise
        stage = LogStage.EVENT_APPENDED

        study_sessions_logged_total.labels(area=subject_to_area(event.subject).value).inc()
        xp_awarded_total.inc(event.xp_earned)

        try:
            previous = await queries.get_streak_record(user_id)
            streak = update_streak(previous, event.date)
            if streak is not previous:
                await queries.save_streak_record(user_id, streak)
            stage = LogStage.STREAK_UPDATED

            # Stats always come from the full log, never incrementally
            events = await queries.list_events(user_id)
            stats = aggregate_stats(events, streak.current_streak)
            newly_unlocked = await self._unlock_new_achievements(user_id, stats)
            stage = LogStage.ACHIEVEMENTS_EVALUATED

        except Exception as e:
            failed_stage = _NEXT_STAGE[stage]
            gamification_step_failures_total.labels(stage=failed_stage.value).inc()
            logger.error(
                f"Study session {event.id} saved for user {user_id} but "
                f"{failed_stage.value} step failed: {e}",
                exc_info=True
            )
            raise SyncPendingError(
                message=f"Derived state not updated after saving session: {e}",
                event=event,
                stage=failed_stage.value,
                user_id=user_id,
                operation="log_activity",
                cause=e
            ) from e

        total_xp = stats.total_xp
        level_info = calculate_level_from_xp(total_xp)
        previous_level = calculate_level_from_xp(max(0, total_xp - event.xp_earned))["current_level"]
        leveled_up = level_info["current_level"] > previous_level

        gamification_duration_seconds.observe(time.perf_counter() - started)

        logger.info(
            f"Gamification processed for study session: user={user_id}, "
            f"xp=+{event.xp_earned} (total {total_xp}), level={level_info['current_level']}, "
            f"streak={streak.current_streak}, achievements={len(newly_unlocked)}"
        )
        if leveled_up:
            logger.info(f"User {user_id} leveled up from {previous_level} to {level_info['current_level']}!")

        return ActivityLogResult(
            event=event,
            streak=streak,
            total_xp=total_xp,
            level=level_info["current_level"],
            xp_to_next_level=level_info["xp_to_next_level"],
            leveled_up=leveled_up,
            newly_unlocked=newly_unlocked,
            stage=LogStage.DONE,
            message=get_motivational_message(
                level_info["current_level"], streak.current_streak, total_xp
            ),
        )

    async def delete_activity(self, user_id: str, event_id: UUID) -> Dict[str, Any]:
        """
        Delete a study session and recompute derived state.

        Raises:
            RecordNotFoundError: No such session for this user
        """
        deleted = await queries.delete_event(user_id, event_id)
        if not deleted:
            raise RecordNotFoundError(
                message=f"Study session {event_id} not found",
                record_type="Study session",
                record_id=str(event_id),
                user_id=user_id,
                operation="delete_activity"
            )

        return await self.recalculate_progress(user_id)

    async def list_sessions(self, user_id: str, limit: int = 20) -> List[ActivityEvent]:
        """Most recent study sessions first"""
        return await queries.list_recent_events(user_id, limit)

    async def get_session(self, user_id: str, event_id: UUID) -> ActivityEvent:
        """
        One study session owned by the user.

        Raises:
            RecordNotFoundError: No such session for this user
        """
        event = await queries.get_event(user_id, event_id)
        if event is None:
            raise RecordNotFoundError(
                message=f"Study session {event_id} not found",
                record_type="Study session",
                record_id=str(event_id),
                user_id=user_id,
                operation="get_session"
            )
        return event

    async def recalculate_progress(self, user_id: str) -> Dict[str, Any]:
        """
        Rebuild the streak from the full session log and re-check achievements.

        Self-correcting: safe to run any number of times, and the way to
        catch up after a SyncPendingError.

        Returns:
            {
                'streak': StreakRecord | None,
                'total_xp': int,
                'level': int,
                'xp_to_next_level': int,
                'newly_unlocked': list[AchievementDefinition]
            }
        """
        events = await queries.list_events(user_id)
        streak = rebuild_streak((e.date for e in events), user_id=user_id)

        if streak is None:
            await queries.delete_streak_record(user_id)
        else:
            await queries.save_streak_record(user_id, streak)

        stats = aggregate_stats(events, streak.current_streak if streak else 0)
        newly_unlocked = await self._unlock_new_achievements(user_id, stats)
        level_info = calculate_level_from_xp(stats.total_xp)

        logger.info(
            f"Recalculated progress for user {user_id}: {stats.total_sessions} sessions, "
            f"streak={streak.current_streak if streak else 0}, level={level_info['current_level']}"
        )

        return {
            'streak': streak,
            'total_xp': stats.total_xp,
            'level': level_info['current_level'],
            'xp_to_next_level': level_info['xp_to_next_level'],
            'newly_unlocked': newly_unlocked,
        }

    async def get_progress(self, user_id: str, recent_limit: int = 10) -> Dict[str, Any]:
        """
        Progress view: level, streak, achievements and area breakdown.

        Returns:
            {
                'user_id': str,
                'total_xp': int,
                'level': int,
                'xp_in_current_level': int,
                'xp_to_next_level': int,
                'streak': StreakRecord,
                'streak_alive': bool,
                'level_display': str,
                'streak_display': str,
                'sessions_this_week': int,
                'total_hours': float,
                'stats': AggregatedStats,
                'unlocked': [definition fields + 'unlocked_at'],
                'locked': [definition fields + 'progress'],
                'recent_sessions': list[ActivityEvent]
            }
        """
        events = await queries.list_events(user_id)
        streak = await queries.get_streak_record(user_id) or StreakRecord(user_id=user_id)
        today = today_local()
        streak_alive = is_streak_alive(streak, today)
        # A missed day breaks the run even before the next session rewrites the record
        stats = aggregate_stats(events, streak.current_streak if streak_alive else 0)
        level_info = get_level_info(events)

        catalog = await queries.get_achievement_catalog()
        unlocks = await queries.get_user_unlocks(user_id)
        unlocked_at = {u.achievement_id: u.unlocked_at for u in unlocks}

        unlocked = []
        locked = []
        for definition in catalog:
            if definition.id in unlocked_at:
                unlocked.append({**definition.model_dump(), 'unlocked_at': unlocked_at[definition.id]})
            else:
                locked.append({**definition.model_dump(), 'progress': calculate_progress(definition, stats)})

        unlocked.sort(key=lambda x: x['unlocked_at'], reverse=True)
        # Closest to completion first
        locked.sort(key=lambda x: x['progress']['percentage'], reverse=True)

        recent = sorted(events, key=lambda e: (e.date, e.created_at), reverse=True)[:recent_limit]

        return {
            'user_id': user_id,
            'total_xp': stats.total_xp,
            'level': level_info['current_level'],
            'xp_in_current_level': level_info['xp_in_current_level'],
            'xp_to_next_level': level_info['xp_to_next_level'],
            'streak': streak,
            'streak_alive': streak_alive,
            'level_display': format_level_display(level_info),
            'streak_display': format_streak_display(streak, streak_alive),
            'sessions_this_week': count_sessions_this_week(events, today),
            'total_hours': minutes_to_hours(stats.total_minutes),
            'stats': stats,
            'unlocked': unlocked,
            'locked': locked,
            'recent_sessions': recent,
        }

    async def _unlock_new_achievements(
        self,
        user_id: str,
        stats: AggregatedStats
    ) -> List[AchievementDefinition]:
        """
        Evaluate the catalog and persist new unlocks.

        Only unlocks actually written are returned, so a concurrent action that
        unlocked the same achievement first doesn't produce a duplicate.
        """
        catalog = await queries.get_achievement_catalog()
        already_unlocked = await queries.get_unlocked_achievement_ids(user_id)

        unlocked = []
        for definition in evaluate_achievements(stats, catalog, already_unlocked):
            unlock = await queries.unlock_achievement(user_id, definition.id)
            if unlock is None:
                continue

            unlocked.append(definition)
            achievements_unlocked_total.labels(requirement_type=definition.requirement_type).inc()
            logger.info(
                f"User {user_id} unlocked achievement: {definition.id} "
                f"({definition.name}) +{definition.xp_reward} XP"
            )

        return unlocked

    @staticmethod
    def _validate_activity(
        user_id: str,
        subject: str,
        duration_minutes: int,
        activity_date: Optional[DateLike]
    ) -> tuple:
        """Validate and normalize logging input before any store call"""
        if not user_id:
            raise ValidationError("User ID is required", field="user_id", value=user_id)

        if not isinstance(subject, str) or not subject.strip():
            raise ValidationError(
                "Subject must not be empty", field="subject", value=subject, user_id=user_id
            )

        # bool is an int subclass; True minutes is not a duration
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise ValidationError(
                "Duration must be a positive whole number of minutes",
                field="duration_minutes",
                value=duration_minutes,
                user_id=user_id
            )

        if activity_date is None:
            activity_date = today_local()
        try:
            activity_date = to_local_date(activity_date)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Date must be a calendar date (YYYY-MM-DD)",
                field="date",
                value=str(activity_date),
                user_id=user_id,
                cause=e
            ) from e

        return subject.strip(), duration_minutes, activity_date
