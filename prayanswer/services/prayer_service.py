"""
Prayer lifecycle service.

Every mutation follows the same sequence: validate, change the record,
commit, then apply side effects (reminders, calendar, attachment files)
and finally kick off a widget refresh. The session is shared, so all
database work is serialized through one asyncio.Lock; the widget refresh
is spawned after the lock is released and never awaited by the caller.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..core.i18n import t
from ..domain.errors import (
    CalendarEventNotFound,
    ContentRequired,
    ContentTooLong,
    DomainError,
    PermissionRequired,
    PersistenceError,
    TitleTooLong,
)
from ..domain.events import EventBus, PermissionDenied, PrayerDeleted
from ..domain.repositories import PrayerRepository
from ..models.attachment import Attachment
from ..models.base import local_now
from ..models.enums import PrayerCategory, PrayerStorage
from ..models.notification_settings import NotificationSettings
from ..models.prayer import MAX_CONTENT_LENGTH, MAX_TITLE_LENGTH, Prayer, new_prayer_id
from .attachment_store import AttachmentSaveResult, AttachmentStore
from .calendar_service import CalendarService
from .reminder_scheduler import ReminderScheduler
from .widget_publisher import WidgetSnapshotPublisher

logger = logging.getLogger(__name__)

T = TypeVar("T")


def generate_title(target: str, category: PrayerCategory, locale: Optional[str] = None) -> str:
    """Title shown for a prayer; users never type one themselves."""
    category_name = t(f"category.{category.value}", locale)
    target = (target or "").strip()
    if target:
        return t("target.title_format", locale, target=target, category=category_name)
    return t("target.title_format_self", locale, category=category_name)


def validate_prayer_input(content: str, title: str) -> None:
    """Raise a ValidationError subclass if the prayer cannot be saved."""
    stripped = (content or "").strip()
    if not stripped:
        raise ContentRequired()
    if len(stripped) > MAX_CONTENT_LENGTH:
        raise ContentTooLong(len(stripped), MAX_CONTENT_LENGTH)
    if len(title) > MAX_TITLE_LENGTH:
        raise TitleTooLong(len(title), MAX_TITLE_LENGTH)


class PrayerService:
    """Create, edit, move, favorite and delete prayers with their side effects."""

    def __init__(
        self,
        repository: PrayerRepository,
        reminders: ReminderScheduler,
        widget: WidgetSnapshotPublisher,
        attachments: AttachmentStore,
        calendar: Optional[CalendarService] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = local_now,
        locale: Optional[str] = None,
    ):
        self.repository = repository
        self.reminders = reminders
        self.widget = widget
        self.attachments = attachments
        self.calendar = calendar
        self.event_bus = event_bus or EventBus()
        self._clock = clock
        self.locale = locale
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    async def create(
        self,
        content: str,
        category: PrayerCategory,
        target: str = "",
        target_date: Optional[date] = None,
        notification_enabled: bool = False,
        notification_settings: Optional[NotificationSettings] = None,
        attachments: Optional[Sequence[AttachmentSaveResult]] = None,
    ) -> Prayer:
        """Persist a new prayer in the waiting storage.

        Raises:
            ValidationError: content or generated title is invalid
            PersistenceError: the commit failed (nothing was saved)
        """
        target = (target or "").strip()
        title = generate_title(target, category, self.locale)
        validate_prayer_input(content, title)

        async with self._lock:
            now = self._clock()
            prayer = Prayer(
                id=new_prayer_id(),
                title=title,
                content=content.strip(),
                category=category,
                target=target,
                storage=PrayerStorage.WAITING,
                is_favorite=False,
                created_at=now,
                target_date=target_date,
                notification_enabled=notification_enabled,
                notification_settings=notification_settings or NotificationSettings(),
            )
            for index, saved in enumerate(attachments or ()):
                prayer.attachments.append(self._attachment_from(saved, index, now))

            self.repository.add(prayer)
            await self._commit("create")
            logger.info(f"Created prayer {prayer.id}: '{title}'")

            denied = await self._apply_reminders(prayer)

        await self._after_mutation(prayer, denied)
        return prayer

    async def update(
        self,
        prayer: Prayer,
        content: str,
        category: PrayerCategory,
        target: str,
        target_date: Optional[date],
        notification_enabled: bool,
        notification_settings: Optional[NotificationSettings] = None,
    ) -> None:
        """Edit a prayer; reminders are cancelled and rebuilt from scratch.

        Raises:
            ValidationError: content or generated title is invalid
            PersistenceError: the commit failed; the record is reloaded
        """
        target = (target or "").strip()
        title = generate_title(target, category, self.locale)
        validate_prayer_input(content, title)

        async with self._lock:
            date_changed = prayer.target_date != target_date

            prayer.title = title
            prayer.content = content.strip()
            prayer.category = category
            prayer.target = target
            prayer.target_date = target_date
            prayer.notification_enabled = notification_enabled
            if notification_settings is not None:
                prayer.notification_settings = notification_settings
            prayer.modified_at = self._clock()

            await self._commit("update", prayer)
            logger.info(f"Updated prayer {prayer.id}: '{title}'")

            denied = await self._apply_reminders(prayer)
            if date_changed and prayer.calendar_event_id and self.calendar is not None:
                await self._resync_calendar_event(prayer)

        await self._after_mutation(prayer, denied)

    async def move(self, prayer: Prayer, storage: PrayerStorage) -> None:
        """Move a prayer to another storage; reminders are left alone."""
        async with self._lock:
            previous = prayer.storage
            prayer.storage = storage
            prayer.moved_at = self._clock()
            await self._commit("move", prayer)
            logger.info(f"Moved prayer {prayer.id}: {previous.value} -> {storage.value}")

        await self._after_mutation(prayer)

    async def toggle_favorite(self, prayer: Prayer) -> None:
        async with self._lock:
            prayer.is_favorite = not prayer.is_favorite
            prayer.modified_at = self._clock()
            await self._commit("update", prayer)
            logger.info(f"Prayer {prayer.id} favorite={prayer.is_favorite}")

        await self._after_mutation(prayer)

    async def delete(self, prayer: Prayer) -> None:
        """Delete a prayer with its reminders, calendar event and files.

        Reminder and calendar cleanup are best-effort; attachment files are
        removed only once the row is gone.

        Raises:
            PersistenceError: the commit failed; the record is reloaded
        """
        async with self._lock:
            prayer_id, title = prayer.id, prayer.title
            file_names = [a.file_name for a in prayer.attachments]

            await self._cancel_reminders(prayer_id)
            await self._remove_calendar_event(prayer)

            await self.repository.delete(prayer)
            await self._commit("delete", prayer)
            logger.info(f"Deleted prayer {prayer_id}: '{title}'")

        if file_names:
            await asyncio.to_thread(self.attachments.delete_many, file_names)

        await self.event_bus.publish(PrayerDeleted(prayer_id=prayer_id, title=title))
        await self._refresh_widget()

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    async def add_attachment(
        self,
        prayer: Prayer,
        saved: AttachmentSaveResult,
        ocr_text: Optional[str] = None,
    ) -> Attachment:
        """Link an already stored file to the prayer, after the current last one.

        On a failed commit the stored file is deleted again.
        """
        async with self._lock:
            now = self._clock()
            attachment = self._attachment_from(saved, 0, now)
            if ocr_text is not None:
                attachment.ocr_text = ocr_text
            prayer.add_attachment(attachment)
            prayer.modified_at = now
            try:
                await self._commit("update", prayer)
            except PersistenceError:
                await asyncio.to_thread(self.attachments.delete_many, [saved.file_name])
                raise
        return attachment

    async def remove_attachment(self, prayer: Prayer, attachment: Attachment) -> None:
        async with self._lock:
            file_name = attachment.file_name
            prayer.remove_attachment(attachment)
            prayer.modified_at = self._clock()
            await self._commit("update", prayer)

        await asyncio.to_thread(self.attachments.delete_many, [file_name])

    async def reorder_attachments(self, prayer: Prayer, file_names: Sequence[str]) -> None:
        """Apply a new display order given as a list of stored file names."""
        async with self._lock:
            by_name = {a.file_name: a for a in prayer.attachments}
            if set(file_names) != set(by_name) or len(file_names) != len(by_name):
                raise ValueError("file_names must list every attachment exactly once")
            for index, file_name in enumerate(file_names):
                by_name[file_name].order = index
            await self._commit("update", prayer)

    async def update_ocr_text(self, attachment: Attachment, text: Optional[str]) -> None:
        async with self._lock:
            attachment.ocr_text = text
            await self._commit("update")

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    async def add_to_calendar(self, prayer: Prayer) -> str:
        """Create the D-Day calendar event and remember its id.

        Raises:
            PermissionRequired: calendar access was denied
            CalendarError: the event could not be created
            PersistenceError: the event id could not be saved
        """
        if self.calendar is None:
            raise RuntimeError("Calendar integration is not configured")

        async with self._lock:
            if prayer.calendar_event_id:
                await self._remove_calendar_event(prayer)
            event_id = await self.calendar.add_dday_event(prayer)
            prayer.calendar_event_id = event_id
            await self._commit("update", prayer)
        return event_id

    async def remove_from_calendar(self, prayer: Prayer) -> None:
        if self.calendar is None or not prayer.calendar_event_id:
            return

        async with self._lock:
            try:
                await self.calendar.remove_event(prayer.calendar_event_id)
            except CalendarEventNotFound:
                logger.info(f"Calendar event for prayer {prayer.id} was already gone")
            prayer.calendar_event_id = None
            await self._commit("update", prayer)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def prayers_in_storage(self, storage: PrayerStorage) -> List[Prayer]:
        return await self._read(lambda: self.repository.list(storage=storage), [])

    async def prayers_by_category(self, category: PrayerCategory) -> List[Prayer]:
        return await self._read(lambda: self.repository.list(category=category), [])

    async def favorite_prayers(self) -> List[Prayer]:
        return await self._read(lambda: self.repository.list(is_favorite=True), [])

    async def favorites_in_storage(self, storage: PrayerStorage) -> List[Prayer]:
        return await self._read(
            lambda: self.repository.list(storage=storage, is_favorite=True), []
        )

    async def all_targets(self) -> List[str]:
        return await self._read(self.repository.targets, [])

    async def all_prayers(self) -> List[Prayer]:
        return await self._read(self.repository.list, [])

    async def prayers_for_target(self, target: str) -> List[Prayer]:
        return await self._read(lambda: self.repository.list(target=target), [])

    async def get(self, prayer_id: str) -> Optional[Prayer]:
        return await self._read(lambda: self.repository.get(prayer_id), None)

    async def favorites_by_storage(self) -> Dict[PrayerStorage, List[Prayer]]:
        favorites = await self.favorite_prayers()
        return self._group_by_storage(favorites)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _attachment_from(saved: AttachmentSaveResult, order: int, now: datetime) -> Attachment:
        return Attachment(
            file_name=saved.file_name,
            original_name=saved.original_name,
            type=saved.type,
            file_size=saved.size_bytes,
            order=order,
            ocr_text=saved.ocr_text,
            created_at=now,
        )

    @staticmethod
    def _group_by_storage(prayers: List[Prayer]) -> Dict[PrayerStorage, List[Prayer]]:
        groups: Dict[PrayerStorage, List[Prayer]] = {s: [] for s in PrayerStorage}
        for prayer in prayers:
            groups[prayer.storage].append(prayer)
        return groups

    async def _commit(self, operation: str, prayer: Optional[Prayer] = None) -> None:
        try:
            await self.repository.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation} prayer: {e}")
            await self.repository.rollback()
            if prayer is not None and operation != "create":
                await self._reload_after_rollback(prayer)
            raise PersistenceError(operation, e) from e

    async def _reload_after_rollback(self, prayer: Prayer) -> None:
        try:
            await self.repository.reload(prayer)
        except SQLAlchemyError as e:
            logger.warning(f"Could not reload prayer {prayer.id} after rollback: {e}")

    async def _read(self, query: Callable[[], Awaitable[T]], default: T) -> T:
        async with self._lock:
            try:
                return await query()
            except SQLAlchemyError as e:
                logger.error(f"Prayer query failed: {e}")
                return default

    async def _apply_reminders(self, prayer: Prayer) -> bool:
        """Cancel, then reschedule if enabled. Returns True if permission was denied."""
        await self._cancel_reminders(prayer.id)
        if not (prayer.notification_enabled and prayer.target_date):
            return False

        try:
            await self.reminders.schedule(prayer)
        except PermissionRequired:
            logger.warning(f"Notification permission denied; reminders skipped for {prayer.id}")
            return True
        except Exception:
            logger.exception(f"Failed to schedule reminders for prayer {prayer.id}")
        return False

    async def _cancel_reminders(self, prayer_id: str) -> None:
        try:
            await self.reminders.cancel(prayer_id)
        except Exception:
            logger.exception(f"Failed to cancel reminders for prayer {prayer_id}")

    async def _remove_calendar_event(self, prayer: Prayer) -> None:
        """Best-effort removal; a failure only leaves a stale calendar entry."""
        if self.calendar is None or not prayer.calendar_event_id:
            return
        try:
            await self.calendar.remove_event(prayer.calendar_event_id)
        except DomainError as e:
            logger.warning(f"Could not remove calendar event for prayer {prayer.id}: {e}")

    async def _resync_calendar_event(self, prayer: Prayer) -> None:
        if self.calendar is None:
            return
        await self._remove_calendar_event(prayer)
        prayer.calendar_event_id = None
        if prayer.target_date is not None:
            try:
                prayer.calendar_event_id = await self.calendar.add_dday_event(prayer)
            except DomainError as e:
                logger.warning(f"Could not move calendar event for prayer {prayer.id}: {e}")
        try:
            await self._commit("update", prayer)
        except PersistenceError:
            logger.warning(f"Calendar event id for prayer {prayer.id} was not saved")

    async def _after_mutation(self, prayer: Prayer, permission_denied: bool = False) -> None:
        if permission_denied:
            await self.event_bus.publish(
                PermissionDenied(kind="notifications", prayer_id=prayer.id)
            )
        await self._refresh_widget()

    async def _refresh_widget(self) -> None:
        """Spawn a widget refresh; a failed favorites read skips it."""
        async with self._lock:
            try:
                favorites = await self.repository.list(is_favorite=True)
            except SQLAlchemyError as e:
                logger.error(f"Skipping widget refresh, favorites query failed: {e}")
                return
        self.widget.refresh(self._group_by_storage(favorites))
