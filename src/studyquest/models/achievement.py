"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4


class Area(str, Enum):
    """Coarse subject areas (ENEM knowledge areas)"""
    LANGUAGES = "languages"
    HUMANITIES = "humanities"
    NATURAL_SCIENCES = "natural_sciences"
    MATHEMATICS = "mathematics"
    ESSAY = "essay"
    OTHER = "other"


# Areas that count for all-areas coverage; essay and other are electives
CORE_AREAS: tuple[Area, ...] = (
    Area.LANGUAGES,
    Area.HUMANITIES,
    Area.NATURAL_SCIENCES,
    Area.MATHEMATICS,
)


class RequirementKind(str, Enum):
    """Requirement kinds understood by the rule evaluator"""
    STUDY_TIME = "study_time"
    STREAK = "streak"
    SUBJECT_AREA = "subject_area"
    ALL_AREAS = "all_areas"


class AchievementDefinition(BaseModel):
    """Achievement catalog entry (read-only reference data)"""
    id: str
    name: str
    description: str = ""
    icon: str = "🏆"
    xp_reward: int = 0
    # Kept as plain text so catalog rows with unknown kinds still load
    requirement_type: str
    requirement_value: int = Field(ge=0)
    target_area: Optional[Area] = None

    @field_validator("requirement_type", mode="before")
    @classmethod
    def plain_requirement_type(cls, v):
        """Store enum members by value so rule lookups match plain strings"""
        return v.value if isinstance(v, Enum) else v


class UserAchievementUnlock(BaseModel):
    """User's unlocked achievement, at most one per (user, achievement)"""
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    achievement_id: str
    unlocked_at: datetime = Field(default_factory=datetime.now)
