"""Streak models"""
from typing import Optional
from datetime import date
from pydantic import BaseModel, Field, model_validator


class StreakRecord(BaseModel):
    """Per-user daily streak. A cache that can be rebuilt from the session log."""
    user_id: Optional[str] = None
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_longest(self) -> "StreakRecord":
        """longest_streak can never trail current_streak"""
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) must be >= "
                f"current_streak ({self.current_streak})"
            )
        return self
