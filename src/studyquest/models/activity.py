"""Study session (activity event) models"""
from typing import Optional
from datetime import date as dt_date, datetime
from uuid import UUID, uuid4
from pydantic import BaseModel, Field, field_validator


class ActivityEvent(BaseModel):
    """One logged study session. Never mutated after creation."""
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    subject: str
    duration_minutes: int = Field(ge=0)
    xp_earned: int = Field(default=0, ge=0)  # denormalized for display
    date: dt_date
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator('subject')
    @classmethod
    def validate_subject(cls, v: str) -> str:
        """Subjects are free text but never blank"""
        if not v or not v.strip():
            raise ValueError("Subject must not be empty")
        return v.strip()
