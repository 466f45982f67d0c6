"""
Service Container - Dependency Injection Container

Holds the storage backend and lazily builds the services on top of it.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from gymtrainer.db.repository import CatalogRepository, GamificationRepository
from gymtrainer.gamification.streak_system import StreakPolicy

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Storage dependencies (repository, catalog) are injected.
    """

    # Storage dependencies (injected)
    repository: GamificationRepository
    catalog: CatalogRepository
    streak_policy: StreakPolicy = StreakPolicy.ONCE_PER_DAY

    # Services (lazy-loaded via properties)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)
    _workout_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from gymtrainer.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(
                self.repository,
                self.catalog,
                streak_policy=self.streak_policy
            )
            logger.debug("GamificationService instantiated")
        return self._gamification_service

    @property
    def workout_service(self):
        """Get WorkoutService instance (lazy-loaded)"""
        if self._workout_service is None:
            from gymtrainer.services.workout_service import WorkoutService
            self._workout_service = WorkoutService(
                self.repository,
                self.catalog,
                streak_policy=self.streak_policy
            )
            logger.debug("WorkoutService instantiated")
        return self._workout_service


# Global container instance (initialized at startup)
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


def init_container(
    repository: GamificationRepository,
    catalog: CatalogRepository,
    streak_policy: StreakPolicy = StreakPolicy.ONCE_PER_DAY
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        repository: Per-user gamification records
        catalog: Achievement and reward catalogs
        streak_policy: Same-day streak policy

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(
        repository=repository,
        catalog=catalog,
        streak_policy=StreakPolicy(streak_policy),
    )

    logger.info("Service container initialized")
    return _container


def reset_container() -> None:
    """Drop the global container (used on shutdown and in tests)"""
    global _container
    _container = None


def is_initialized() -> bool:
    return _container is not None
