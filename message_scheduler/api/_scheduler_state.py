"""
Scheduler state management for API integration.

Provides singleton access to the SchedulerService and Settings.
Initialized during FastAPI lifespan, before the first request is served.

Usage:
    from ._scheduler_state import get_scheduler_service, init_scheduler_service

    # In lifespan:
    init_scheduler_service(settings)

    # In routers:
    service = get_scheduler_service()
"""

from typing import Optional

from message_scheduler.infra.config import Settings
from message_scheduler.scheduler.service import SchedulerService


# Global instances, one per process
_scheduler_service: Optional[SchedulerService] = None
_settings: Optional[Settings] = None


def init_scheduler_service(settings: Settings) -> SchedulerService:
    """
    Initialize the scheduler service singleton.

    Does NOT resume schedules; the lifespan does that explicitly so the
    ordering against request handling stays visible.

    Args:
        settings: Resolved process settings

    Returns:
        Initialized SchedulerService
    """
    global _scheduler_service, _settings

    if _scheduler_service is not None:
        return _scheduler_service

    _settings = settings
    _scheduler_service = SchedulerService.create(settings)
    return _scheduler_service


def get_scheduler_service() -> SchedulerService:
    """
    Get the scheduler service singleton.

    Raises:
        RuntimeError: If scheduler service not initialized
    """
    if _scheduler_service is None:
        raise RuntimeError(
            "Scheduler service not initialized. "
            "Ensure init_scheduler_service() is called during startup."
        )

    return _scheduler_service


def get_settings() -> Settings:
    """
    Get the settings the scheduler service was built from.

    Raises:
        RuntimeError: If scheduler service not initialized
    """
    if _settings is None:
        raise RuntimeError("Settings not initialized.")

    return _settings


async def shutdown_scheduler_service() -> None:
    """
    Shutdown the scheduler service.

    Called during FastAPI lifespan shutdown. Pending timers are dropped;
    they are rebuilt from the store on next start.
    """
    global _scheduler_service, _settings

    if _scheduler_service is not None:
        await _scheduler_service.shutdown()

    _scheduler_service = None
    _settings = None
