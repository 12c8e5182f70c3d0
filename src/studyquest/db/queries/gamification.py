"""Gamification database queries (streak records, achievement catalog, unlocks)"""
import logging
from typing import Optional

import psycopg
from pydantic import ValidationError as ModelValidationError

from studyquest.db.connection import db
from studyquest.exceptions import wrap_external_exception
from studyquest.models.achievement import AchievementDefinition, UserAchievementUnlock
from studyquest.models.streak import StreakRecord

logger = logging.getLogger(__name__)


# ==========================================
# Streak Records
# ==========================================

async def get_streak_record(user_id: str) -> Optional[StreakRecord]:
    """
    Get the user's streak record

    Returns:
        StreakRecord, or None before the user's first session
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT user_id, current_streak, longest_streak, last_study_date AS last_activity_date
                    FROM study_streaks
                    WHERE user_id = %s
                    """,
                    (user_id,)
                )
                row = await cur.fetchone()
                return StreakRecord(**row) if row else None
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_streak_record", user_id=user_id) from e


async def save_streak_record(user_id: str, record: StreakRecord) -> None:
    """
    Create or overwrite the user's streak record

    Plain last-write-wins upsert; concurrent sessions for the same user are
    not serialized.
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO study_streaks (user_id, current_streak, longest_streak, last_study_date)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (user_id) DO UPDATE
                    SET current_streak = EXCLUDED.current_streak,
                        longest_streak = EXCLUDED.longest_streak,
                        last_study_date = EXCLUDED.last_study_date,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (user_id, record.current_streak, record.longest_streak, record.last_activity_date)
                )
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="save_streak_record", user_id=user_id) from e


async def delete_streak_record(user_id: str) -> None:
    """Remove the streak record (user has no sessions left)"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "DELETE FROM study_streaks WHERE user_id = %s",
                    (user_id,)
                )
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="delete_streak_record", user_id=user_id) from e


# ==========================================
# Achievement Catalog
# ==========================================

async def get_achievement_catalog() -> list[AchievementDefinition]:
    """
    Get all achievement definitions

    Rows that don't fit the model are left out of the catalog.
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT id::text AS id, name, description, icon, xp_reward,
                           requirement_type, requirement_value, target_area
                    FROM achievements
                    ORDER BY requirement_value, name
                    """
                )
                rows = await cur.fetchall()
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_achievement_catalog") from e

    catalog = []
    for row in rows:
        try:
            catalog.append(AchievementDefinition(**row))
        except ModelValidationError as e:
            logger.debug(f"Skipping achievement row {row.get('id')}: {e}")
    return catalog


async def upsert_achievement_definition(definition: AchievementDefinition) -> None:
    """Insert or update a catalog entry (seeding only)"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO achievements (id, name, description, icon, xp_reward,
                                              requirement_type, requirement_value, target_area)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO UPDATE
                    SET name = EXCLUDED.name,
                        description = EXCLUDED.description,
                        icon = EXCLUDED.icon,
                        xp_reward = EXCLUDED.xp_reward,
                        requirement_type = EXCLUDED.requirement_type,
                        requirement_value = EXCLUDED.requirement_value,
                        target_area = EXCLUDED.target_area
                    """,
                    (
                        definition.id,
                        definition.name,
                        definition.description,
                        definition.icon,
                        definition.xp_reward,
                        definition.requirement_type,
                        definition.requirement_value,
                        definition.target_area.value if definition.target_area else None,
                    )
                )
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_external_exception(
            e,
            operation="upsert_achievement_definition",
            context={"achievement_id": definition.id}
        ) from e


# ==========================================
# Achievement Unlocks
# ==========================================

async def get_unlocked_achievement_ids(user_id: str) -> set[str]:
    """IDs of achievements the user has unlocked"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT achievement_id::text AS achievement_id
                    FROM user_achievements
                    WHERE user_id = %s
                    """,
                    (user_id,)
                )
                rows = await cur.fetchall()
                return {row['achievement_id'] for row in rows}
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_unlocked_achievement_ids", user_id=user_id) from e


async def get_user_unlocks(user_id: str) -> list[UserAchievementUnlock]:
    """User's unlock records, most recent first"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT id, user_id, achievement_id::text AS achievement_id, unlocked_at
                    FROM user_achievements
                    WHERE user_id = %s
                    ORDER BY unlocked_at DESC
                    """,
                    (user_id,)
                )
                rows = await cur.fetchall()
                return [UserAchievementUnlock(**row) for row in rows]
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_user_unlocks", user_id=user_id) from e


async def unlock_achievement(user_id: str, achievement_id: str) -> Optional[UserAchievementUnlock]:
    """
    Record an unlock exactly once

    Returns:
        The new unlock, or None if the user already had it
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO user_achievements (user_id, achievement_id)
                    VALUES (%s, %s)
                    ON CONFLICT (user_id, achievement_id) DO NOTHING
                    RETURNING id, user_id, achievement_id::text AS achievement_id, unlocked_at
                    """,
                    (user_id, achievement_id)
                )
                row = await cur.fetchone()
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_external_exception(
            e,
            operation="unlock_achievement",
            user_id=user_id,
            context={"achievement_id": achievement_id}
        ) from e

    if row is None:
        logger.debug(f"User {user_id} already has achievement {achievement_id}")
        return None
    return UserAchievementUnlock(**row)
