"""
Core lifespan management.

Handles startup and shutdown of all subsystems:
- Logging
- Database initialization
- Service container setup
- Legacy attachment migration
- Draining background widget refreshes on shutdown
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .core.config import Settings, get_settings
from .core.container import ServiceContainer, reset_container
from .core.database import close_database, get_session_factory, init_database
from .core.i18n import load_translations
from .core.services import Services, setup_services
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Session shared by every core service for the app's lifetime
_session: Optional[AsyncSession] = None


async def startup(
    settings: Optional[Settings] = None,
    configure_logging: bool = True,
    **collaborators: Any,
) -> ServiceContainer:
    """Bring up the core and return the populated service container.

    ``collaborators`` are forwarded to ``setup_services`` (notification
    center, calendar gateway, widget surface, text engines).
    """
    global _session

    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_to_file, settings.logs_dir)
    logger.info("PrayAnswer core starting up")

    load_translations()

    try:
        await init_database(settings.database_url)
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    _session = get_session_factory()()

    reset_container()
    container = setup_services(_session, settings=settings, **collaborators)
    logger.info("Service container initialized")

    migration = container.get(Services.MIGRATION)
    migrated = await migration.migrate_if_needed(container.get(Services.REPOSITORY))
    if migrated:
        logger.info(f"Migrated {migrated} legacy images")

    return container


async def shutdown(container: ServiceContainer, timeout: float = 5.0) -> None:
    """Finish in-flight background work and release the database."""
    global _session

    logger.info("PrayAnswer core shutting down")

    tracker = container.get(Services.TASK_TRACKER)
    await tracker.wait(timeout=timeout)
    if tracker.active_count:
        cancelled = await tracker.cancel_all(timeout=timeout)
        if cancelled:
            logger.warning(f"Cancelled {cancelled} background tasks")

    if _session is not None:
        await _session.close()
        _session = None

    await close_database()
    logger.info("Shutdown complete")


@asynccontextmanager
async def lifespan(
    settings: Optional[Settings] = None, **collaborators: Any
) -> AsyncIterator[ServiceContainer]:
    container = await startup(settings, **collaborators)
    try:
        yield container
    finally:
        await shutdown(container)
