"""
Service Container - Dependency Injection Container

Holds the two stores and lazily builds the services on top of them.
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
    Store dependencies are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # ProgressionStore instance
    application_store: object  # ApplicationStore instance

    # Services (lazy-loaded via properties)
    _progression_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def progression_service(self):
        """Get ProgressionService instance (lazy-loaded)"""
        if self._progression_service is None:
            from progression.services.progression_service import ProgressionService
            self._progression_service = ProgressionService(self.store, self.application_store)
            logger.debug("ProgressionService instantiated")
        return self._progression_service


# Global container instance (initialized in main.py)
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
            "Call init_container() before using services."
        )
    return _container


def init_container(
    store: Optional[object] = None,
    application_store: Optional[object] = None
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: ProgressionStore (defaults to PostgresProgressionStore)
        application_store: ApplicationStore (defaults to PostgresApplicationStore)

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    if store is None or application_store is None:
        from progression.db.stores import PostgresApplicationStore, PostgresProgressionStore
        store = store or PostgresProgressionStore()
        application_store = application_store or PostgresApplicationStore()

    _container = ServiceContainer(store=store, application_store=application_store)

    logger.info("Service container initialized")
    return _container
