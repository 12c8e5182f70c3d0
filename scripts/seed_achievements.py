#!/usr/bin/env python3
"""
Achievement Catalog Seed Script

Creates the schema (if missing) and upserts the default achievement catalog.
Area achievements get an explicit target_area; catalogs seeded before that
column existed can be backfilled with --backfill-areas, which infers the area
from the achievement name.

Idempotent: safe to run repeatedly.

Usage:
    python scripts/seed_achievements.py [--skip-schema] [--backfill-areas]

Requirements:
    - Database connection configured (DATABASE_URL env var)
"""
import argparse
import asyncio
import logging
from pathlib import Path

from studyquest.db.connection import db
from studyquest.db.queries import get_achievement_catalog, upsert_achievement_definition
from studyquest.gamification.achievement_system import infer_target_area
from studyquest.models.achievement import AchievementDefinition, Area, RequirementKind

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent.parent / "migrations" / "001_initial_schema.sql"

DEFAULT_CATALOG = [
    # Study time
    AchievementDefinition(
        id="first_hour", name="Primeira Hora", icon="⏱️", xp_reward=25,
        description="Study for 60 minutes in total",
        requirement_type=RequirementKind.STUDY_TIME, requirement_value=60,
    ),
    AchievementDefinition(
        id="dedicated", name="Dedicado", icon="📚", xp_reward=100,
        description="Study for 10 hours in total",
        requirement_type=RequirementKind.STUDY_TIME, requirement_value=600,
    ),
    AchievementDefinition(
        id="marathoner", name="Maratonista", icon="🏃", xp_reward=300,
        description="Study for 50 hours in total",
        requirement_type=RequirementKind.STUDY_TIME, requirement_value=3000,
    ),
    # Streaks
    AchievementDefinition(
        id="streak_3", name="Embalado", icon="🔥", xp_reward=30,
        description="Study 3 days in a row",
        requirement_type=RequirementKind.STREAK, requirement_value=3,
    ),
    AchievementDefinition(
        id="streak_7", name="Semana Perfeita", icon="🗓️", xp_reward=75,
        description="Study 7 days in a row",
        requirement_type=RequirementKind.STREAK, requirement_value=7,
    ),
    AchievementDefinition(
        id="streak_30", name="Imparável", icon="💎", xp_reward=400,
        description="Study 30 days in a row",
        requirement_type=RequirementKind.STREAK, requirement_value=30,
    ),
    # Areas
    AchievementDefinition(
        id="area_languages", name="Linguista", icon="🗣️", xp_reward=50,
        description="Complete 5 sessions in Languages",
        requirement_type=RequirementKind.SUBJECT_AREA, requirement_value=5,
        target_area=Area.LANGUAGES,
    ),
    AchievementDefinition(
        id="area_humanities", name="Humanista", icon="🏛️", xp_reward=50,
        description="Complete 5 sessions in Humanities",
        requirement_type=RequirementKind.SUBJECT_AREA, requirement_value=5,
        target_area=Area.HUMANITIES,
    ),
    AchievementDefinition(
        id="area_natural_sciences", name="Cientista", icon="🔬", xp_reward=50,
        description="Complete 5 sessions in Natural Sciences",
        requirement_type=RequirementKind.SUBJECT_AREA, requirement_value=5,
        target_area=Area.NATURAL_SCIENCES,
    ),
    AchievementDefinition(
        id="area_mathematics", name="Matemático", icon="📐", xp_reward=50,
        description="Complete 5 sessions in Mathematics",
        requirement_type=RequirementKind.SUBJECT_AREA, requirement_value=5,
        target_area=Area.MATHEMATICS,
    ),
    AchievementDefinition(
        id="area_essay", name="Redator", icon="✍️", xp_reward=50,
        description="Write 5 essays",
        requirement_type=RequirementKind.SUBJECT_AREA, requirement_value=5,
        target_area=Area.ESSAY,
    ),
    # Coverage
    AchievementDefinition(
        id="enem_ready", name="Pronto pro ENEM", icon="🎓", xp_reward=200,
        description="Complete at least 3 sessions in each of the four main areas",
        requirement_type=RequirementKind.ALL_AREAS, requirement_value=3,
    ),
]


async def apply_schema() -> None:
    """Run the schema migration"""
    sql = SCHEMA_FILE.read_text(encoding="utf-8")
    async with db.connection() as conn:
        await conn.execute(sql)
        await conn.commit()
    logger.info(f"Applied schema from {SCHEMA_FILE.name}")


async def backfill_target_areas() -> int:
    """Set target_area on area achievements that only carry it in their name"""
    updated = 0
    for definition in await get_achievement_catalog():
        if definition.requirement_type != RequirementKind.SUBJECT_AREA or definition.target_area:
            continue

        area = infer_target_area(definition.name)
        if area is None:
            logger.warning(f"Could not infer area for '{definition.name}' ({definition.id}); left unbound")
            continue

        await upsert_achievement_definition(definition.model_copy(update={"target_area": area}))
        logger.info(f"Bound '{definition.name}' to {area.value}")
        updated += 1
    return updated


async def main(skip_schema: bool, backfill_areas: bool) -> None:
    await db.init_pool()
    try:
        if not skip_schema:
            await apply_schema()

        for definition in DEFAULT_CATALOG:
            await upsert_achievement_definition(definition)
        logger.info(f"Seeded {len(DEFAULT_CATALOG)} achievements")

        if backfill_areas:
            updated = await backfill_target_areas()
            logger.info(f"Backfilled target_area on {updated} achievements")
    finally:
        await db.close_pool()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the achievement catalog")
    parser.add_argument("--skip-schema", action="store_true", help="Don't run the schema migration")
    parser.add_argument("--backfill-areas", action="store_true", help="Infer target_area for legacy area achievements")
    args = parser.parse_args()

    asyncio.run(main(args.skip_schema, args.backfill_areas))
