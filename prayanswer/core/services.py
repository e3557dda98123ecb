"""
Service Registry - Central service configuration and registration.

This module wires up all core services with their dependencies. Platform
collaborators (notification center, calendar, widget surface, engines)
are passed in by the host app; in-process defaults are used otherwise.

Usage:
    from prayanswer.core.services import setup_services, get_service

    # At startup
    setup_services(session)

    # Get a service anywhere
    prayers = get_service(Services.PRAYERS)
"""

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .container import ServiceContainer, get_container

logger = logging.getLogger(__name__)


# Service name constants for type safety
class Services:
    """Constants for service names."""

    SETTINGS = "settings"
    EVENT_BUS = "event_bus"
    TASK_TRACKER = "task_tracker"
    REPOSITORY = "repository"
    SHARED_STORE = "shared_store"
    ATTACHMENTS = "attachments"
    MIGRATION = "migration"
    NOTIFICATION_CENTER = "notification_center"
    REMINDERS = "reminders"
    CALENDAR = "calendar"
    WIDGET = "widget"
    TEXT_RECOGNITION = "text_recognition"
    TEXT_CLEANER = "text_cleaner"
    PRAYERS = "prayers"


def setup_services(
    session: AsyncSession,
    settings: Optional[Settings] = None,
    notification_center: Any = None,
    calendar_gateway: Any = None,
    widget_surface: Any = None,
    text_recognizer: Any = None,
    text_rewriter: Any = None,
    container: Optional[ServiceContainer] = None,
) -> ServiceContainer:
    """
    Register all core services in the container.

    Services are registered lazily - they won't be instantiated until
    first accessed via get_service(). Returns the container used.
    """
    container = container or get_container()
    settings = settings or get_settings()

    # ========================================================================
    # Core Services (no dependencies)
    # ========================================================================

    container.register_instance(Services.SETTINGS, settings)

    def create_event_bus(c):
        from ..domain.events import get_event_bus

        return get_event_bus()

    container.register(Services.EVENT_BUS, create_event_bus)

    def create_task_tracker(c):
        from ..utils.task_tracker import TaskTracker

        return TaskTracker()

    container.register(Services.TASK_TRACKER, create_task_tracker)

    # ========================================================================
    # Storage Layer
    # ========================================================================

    def create_repository(c):
        from ..infrastructure.repositories import SqlAlchemyPrayerRepository

        return SqlAlchemyPrayerRepository(session)

    container.register(Services.REPOSITORY, create_repository)

    def create_shared_store(c):
        from ..utils.shared_store import SharedStore

        return SharedStore(settings.shared_store_path)

    container.register(Services.SHARED_STORE, create_shared_store)

    def create_attachment_store(c):
        from ..services.attachment_store import AttachmentStore

        size = settings.thumbnail_size
        return AttachmentStore(
            settings.attachment_dir,
            max_file_size=settings.max_attachment_bytes,
            image_quality=settings.image_quality,
            thumbnail_size=(size, size),
        )

    container.register(Services.ATTACHMENTS, create_attachment_store)

    def create_migration(c):
        from ..services.attachment_migration import AttachmentMigration

        return AttachmentMigration(
            c.get(Services.ATTACHMENTS),
            c.get(Services.SHARED_STORE),
            settings.legacy_image_dir,
        )

    container.register(Services.MIGRATION, create_migration)

    # ========================================================================
    # Platform Integrations
    # ========================================================================

    def create_notification_center(c):
        if notification_center is not None:
            return notification_center
        from ..services.scheduler import InMemoryNotificationCenter

        return InMemoryNotificationCenter()

    container.register(Services.NOTIFICATION_CENTER, create_notification_center)

    def create_reminders(c):
        from ..services.reminder_scheduler import ReminderScheduler

        return ReminderScheduler(c.get(Services.NOTIFICATION_CENTER), locale=settings.locale)

    container.register(Services.REMINDERS, create_reminders)

    def create_calendar(c):
        if calendar_gateway is None:
            return None
        from ..services.calendar_service import CalendarService

        return CalendarService(calendar_gateway, locale=settings.locale)

    container.register(Services.CALENDAR, create_calendar)

    def create_widget(c):
        from ..services.widget_publisher import WidgetSnapshotPublisher

        return WidgetSnapshotPublisher(
            c.get(Services.SHARED_STORE),
            surface=widget_surface,
            tracker=c.get(Services.TASK_TRACKER),
            max_items=settings.widget_max_items,
        )

    container.register(Services.WIDGET, create_widget)

    # ========================================================================
    # Text Extraction Pipeline
    # ========================================================================

    def create_text_recognition(c):
        from ..services.text_recognition import (
            LiteLLMVisionRecognizer,
            TextRecognitionService,
        )

        recognizer = text_recognizer or LiteLLMVisionRecognizer(settings.ocr_model)
        return TextRecognitionService(recognizer)

    container.register(Services.TEXT_RECOGNITION, create_text_recognition)

    def create_text_cleaner(c):
        from ..services.prayer_text_cleaner import LiteLLMTextRewriter, PrayerTextCleaner

        rewriter = text_rewriter
        if rewriter is None and settings.ai_cleanup_model:
            rewriter = LiteLLMTextRewriter(settings.ai_cleanup_model)
        return PrayerTextCleaner(
            rewriter,
            user_enabled=settings.ai_cleanup_enabled,
            locale=settings.locale,
        )

    container.register(Services.TEXT_CLEANER, create_text_cleaner)

    # ========================================================================
    # Business Logic Services
    # ========================================================================

    def create_prayer_service(c):
        from ..services.prayer_service import PrayerService

        return PrayerService(
            repository=c.get(Services.REPOSITORY),
            reminders=c.get(Services.REMINDERS),
            widget=c.get(Services.WIDGET),
            attachments=c.get(Services.ATTACHMENTS),
            calendar=c.get(Services.CALENDAR),
            event_bus=c.get(Services.EVENT_BUS),
            locale=settings.locale,
        )

    container.register(Services.PRAYERS, create_prayer_service)

    logger.info("Core services registered")
    return container


def get_service(name: str) -> Any:
    """
    Get a service by name from the container.

    Raises:
        KeyError: If service is not registered
    """
    return get_container().get(name)
