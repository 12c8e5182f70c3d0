"""
Service Layer Package

Business logic between the HTTP API and the database queries.

- GamificationService: logging sessions, streaks, levels, achievements, progress
- InsightService: best-effort AI feedback built on GamificationService output
"""

from studyquest.services.container import ServiceContainer, get_container, init_container, reset_container
from studyquest.services.gamification_service import GamificationService
from studyquest.services.insight_service import InsightService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "reset_container",
    "GamificationService",
    "InsightService",
]
