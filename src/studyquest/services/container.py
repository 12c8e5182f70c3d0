"""
Service Container - Dependency Injection Container

Holds one instance of each service, created lazily on first access.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    """

    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)
    _insight_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from studyquest.services.gamification_service import GamificationService
            self._gamification_service = GamificationService()
            logger.debug("GamificationService instantiated")
        return self._gamification_service

    @property
    def insight_service(self):
        """Get InsightService instance (lazy-loaded)"""
        if self._insight_service is None:
            from studyquest.services.insight_service import InsightService
            self._insight_service = InsightService()
            logger.debug("InsightService instantiated")
        return self._insight_service


# Global container instance (initialized by the API lifespan)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container() -> ServiceContainer:
    """
    Initialize the global service container. Call once at startup.
    """
    global _container

    _container = ServiceContainer()
    logger.info("Service container initialized")
    return _container


def reset_container() -> None:
    """Drop the global container (tests and shutdown)"""
    global _container
    _container = None
