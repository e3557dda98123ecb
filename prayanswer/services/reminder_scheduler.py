"""
D-Day reminder scheduling.

``plan()`` is pure date arithmetic: given a target date, settings and
today, it returns the notification requests to register. ``schedule()``
and ``cancel()`` apply a plan to a NotificationCenter.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional

from ..core.i18n import t
from ..domain.ports import NotificationCenter
from ..models.notification_settings import (
    AVAILABLE_REMINDER_DAYS,
    DEFAULT_REMINDER_DAYS,
    NotificationSettings,
)
from ..utils.permissions import PermissionGate
from .scheduler.base import (
    NotificationRequest,
    ReminderKind,
    dday_identifier,
    prayer_prefix,
    repeat_identifier,
)

logger = logging.getLogger(__name__)

# Platform cap is 64 pending requests; keep headroom
MAX_PENDING_NOTIFICATIONS = 60
MAX_REPEAT_REMINDERS = 30

_OFFSET_MESSAGE_KEYS = {
    7: "dday.notification_week_before",
    3: "dday.notification_3days_before",
    1: "dday.notification_1day_before",
    0: "dday.notification_dday",
}


@dataclass
class ReminderSchedule:
    """Outcome of scheduling reminders for one prayer."""

    scheduled: List[NotificationRequest] = field(default_factory=list)
    dropped: int = 0

    @property
    def identifiers(self) -> List[str]:
        return [r.identifier for r in self.scheduled]


def _target_name(target: str, locale: Optional[str]) -> str:
    return target if target else t("target.myself", locale)


def _dday_message(days_before: int, target_name: str, locale: Optional[str]):
    if days_before == 0:
        title = t("dday.notification_dday_title", locale)
    else:
        title = t("dday.notification_title", locale)

    key = _OFFSET_MESSAGE_KEYS.get(days_before, "dday.notification_generic")
    body = t(key, locale, target=target_name, days=days_before)
    return title, body


def plan_reminders(
    prayer_id: str,
    target: str,
    target_date: date,
    settings: NotificationSettings,
    today: date,
    locale: Optional[str] = None,
) -> List[NotificationRequest]:
    """Compute the reminder requests for a prayer.

    One-shot reminders come first (earliest offset date first), then
    repeating reminders in date order. Nothing is ever planned before
    *today*; a D-Day in the past yields an empty plan.
    """
    settings = settings.effective()
    at = time(settings.hour, settings.minute)
    target_name = _target_name(target, locale)
    requests: List[NotificationRequest] = []

    for days_before in settings.reminder_day_offsets:
        fire_day = target_date - timedelta(days=days_before)
        if fire_day < today:
            continue
        title, body = _dday_message(days_before, target_name, locale)
        requests.append(
            NotificationRequest(
                identifier=dday_identifier(prayer_id, days_before),
                title=title,
                body=body,
                fire_at=datetime.combine(fire_day, at),
                prayer_id=prayer_id,
                kind=ReminderKind.DDAY,
                days_before=days_before,
            )
        )

    weekdays = settings.repeat_weekdays(today)
    if not weekdays:
        return requests

    end = target_date
    if settings.repeat_end_date is not None:
        end = min(end, settings.repeat_end_date)
    limit = min(settings.max_repeat_count or MAX_REPEAT_REMINDERS, MAX_REPEAT_REMINDERS)

    count = 0
    day = today
    while day <= end and count < limit:
        days_before = (target_date - day).days
        if day.weekday() in weekdays and days_before not in settings.reminder_day_offsets:
            title, body = _dday_message(days_before, target_name, locale)
            requests.append(
                NotificationRequest(
                    identifier=repeat_identifier(prayer_id, day),
                    title=t("dday.notification_title", locale),
                    body=body,
                    fire_at=datetime.combine(day, at),
                    prayer_id=prayer_id,
                    kind=ReminderKind.REPEAT,
                    days_before=days_before,
                )
            )
            count += 1
        day += timedelta(days=1)

    return requests


class ReminderScheduler:
    """Registers and removes D-Day reminders for prayers."""

    def __init__(
        self,
        center: NotificationCenter,
        permission_gate: Optional[PermissionGate] = None,
        today: Callable[[], date] = date.today,
        locale: Optional[str] = None,
        max_pending: int = MAX_PENDING_NOTIFICATIONS,
    ) -> None:
        self.center = center
        self.permission_gate = permission_gate or PermissionGate(
            "notifications", center.request_authorization
        )
        self._today = today
        self.locale = locale
        self.max_pending = max_pending

    def plan(
        self,
        prayer_id: str,
        target: str,
        target_date: date,
        settings: NotificationSettings,
        today: Optional[date] = None,
    ) -> List[NotificationRequest]:
        return plan_reminders(
            prayer_id,
            target,
            target_date,
            settings,
            today or self._today(),
            locale=self.locale,
        )

    async def schedule(self, prayer) -> ReminderSchedule:
        """Replace the prayer's pending reminders with a fresh plan.

        Raises:
            PermissionRequired: notification permission was denied
        """
        if not prayer.notification_enabled or prayer.target_date is None:
            await self.cancel(prayer.id)
            return ReminderSchedule()

        await self.permission_gate.ensure()
        await self.cancel(prayer.id)

        requests = self.plan(
            prayer.id, prayer.target, prayer.target_date, prayer.notification_settings
        )
        pending = len(await self.center.pending_identifiers())
        room = max(self.max_pending - pending, 0)
        accepted = requests[:room]

        for request in accepted:
            await self.center.schedule(request)

        dropped = len(requests) - len(accepted)
        if dropped:
            logger.warning(
                f"Pending notification cap reached, dropped {dropped} reminders for prayer {prayer.id}"
            )
        logger.info(f"Scheduled {len(accepted)} reminders for prayer {prayer.id}")
        return ReminderSchedule(scheduled=accepted, dropped=dropped)

    async def cancel(self, prayer_id: str) -> None:
        """Remove every pending reminder that belongs to the prayer."""
        prefix = prayer_prefix(prayer_id)
        identifiers = {i for i in await self.center.pending_identifiers() if i.startswith(prefix)}
        identifiers.update(
            dday_identifier(prayer_id, d)
            for d in set(AVAILABLE_REMINDER_DAYS) | set(DEFAULT_REMINDER_DAYS)
        )
        await self.center.cancel(sorted(identifiers))
        logger.debug(f"Cancelled reminders for prayer {prayer_id}")

    async def cancel_all(self) -> None:
        await self.center.cancel_all()
