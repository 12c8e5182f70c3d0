"""Study session (event log) queries"""
import logging
from datetime import date
from typing import Optional
from uuid import UUID

import psycopg

from studyquest.db.connection import db
from studyquest.exceptions import wrap_external_exception
from studyquest.gamification.xp_system import xp_for_duration
from studyquest.models.activity import ActivityEvent

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = "id, user_id, subject, duration_minutes, xp_earned, notes, date, created_at"


async def list_events(user_id: str) -> list[ActivityEvent]:
    """
    Get every study session for a user

    Ordering is not part of the contract; callers sort if they need to.
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    SELECT {_SESSION_COLUMNS}
                    FROM study_sessions
                    WHERE user_id = %s
                    """,
                    (user_id,)
                )
                rows = await cur.fetchall()
                return [ActivityEvent(**row) for row in rows]
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="list_events", user_id=user_id) from e


async def list_recent_events(user_id: str, limit: int = 10) -> list[ActivityEvent]:
    """Most recent sessions first (by date, then creation time)"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    SELECT {_SESSION_COLUMNS}
                    FROM study_sessions
                    WHERE user_id = %s
                    ORDER BY date DESC, created_at DESC
                    LIMIT %s
                    """,
                    (user_id, limit)
                )
                rows = await cur.fetchall()
                return [ActivityEvent(**row) for row in rows]
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="list_recent_events", user_id=user_id) from e


async def append_event(
    user_id: str,
    subject: str,
    duration_minutes: int,
    activity_date: date,
    notes: Optional[str] = None
) -> ActivityEvent:
    """
    Insert a study session

    xp_earned is computed here and stored on the row for display.

    Raises:
        PersistenceError: If the insert can't be committed
    """
    xp_earned = xp_for_duration(duration_minutes)

    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO study_sessions (user_id, subject, duration_minutes, xp_earned, notes, date)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING {_SESSION_COLUMNS}
                    """,
                    (user_id, subject, duration_minutes, xp_earned, notes, activity_date)
                )
                row = await cur.fetchone()
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_external_exception(
            e,
            operation="append_event",
            user_id=user_id,
            context={"subject": subject, "date": activity_date.isoformat()}
        ) from e

    logger.info(f"Saved study session for user {user_id}: {subject}, {duration_minutes} min, +{xp_earned} XP")
    return ActivityEvent(**row)


async def get_event(user_id: str, event_id: UUID) -> Optional[ActivityEvent]:
    """Get one session owned by the user"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    SELECT {_SESSION_COLUMNS}
                    FROM study_sessions
                    WHERE user_id = %s AND id = %s
                    """,
                    (user_id, event_id)
                )
                row = await cur.fetchone()
                return ActivityEvent(**row) if row else None
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_event", user_id=user_id) from e


async def delete_event(user_id: str, event_id: UUID) -> bool:
    """
    Delete a session owned by the user

    Returns:
        True if a row was deleted
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    DELETE FROM study_sessions
                    WHERE user_id = %s AND id = %s
                    """,
                    (user_id, event_id)
                )
                deleted = cur.rowcount > 0
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_external_exception(
            e,
            operation="delete_event",
            user_id=user_id,
            context={"event_id": str(event_id)}
        ) from e

    if deleted:
        logger.info(f"Deleted study session {event_id} for user {user_id}")
    return deleted
