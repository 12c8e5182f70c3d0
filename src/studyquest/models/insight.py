"""AI insight models"""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class Insight(BaseModel):
    """One insight card"""
    type: Literal["positive", "suggestion", "warning", "motivation"] = "suggestion"
    title: str
    message: str
    icon: str = "💡"
    action: Optional[str] = None
    priority: Literal["high", "medium", "low"] = "medium"


class ProgressAnalysis(BaseModel):
    """Structured analysis of a user's study progress"""
    insights: list[Insight] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    motivation: str = ""
    score: int = Field(default=5, ge=1, le=10)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    source: Literal["ai", "fallback"] = "ai"
