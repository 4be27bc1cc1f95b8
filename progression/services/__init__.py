"""
Service Layer Package

- ProgressionService: activity processing, stats and achievement reads,
  reconciliation and the periodic sweep
"""

from progression.services.container import ServiceContainer, get_container, init_container
from progression.services.progression_service import ProgressionService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "ProgressionService",
]
