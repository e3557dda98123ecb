"""D-Day events in the user's calendar."""

import logging
from datetime import timedelta
from typing import List, Optional

from ..core.i18n import t
from ..domain.errors import CalendarError, CalendarEventNotFound
from ..domain.ports import CalendarGateway
from ..utils.permissions import PermissionGate

logger = logging.getLogger(__name__)

# Calendar alarms at 09:00 on D-7, D-3 and D-1
ALARM_DAYS_BEFORE = (7, 3, 1)
ALARM_HOUR = 9


def dday_alarm_offsets() -> List[timedelta]:
    return [
        -timedelta(days=days) + timedelta(hours=ALARM_HOUR) for days in ALARM_DAYS_BEFORE
    ]


class CalendarService:
    """Adds and removes all-day D-Day events through a CalendarGateway."""

    def __init__(
        self,
        gateway: CalendarGateway,
        permission_gate: Optional[PermissionGate] = None,
        locale: Optional[str] = None,
    ) -> None:
        self.gateway = gateway
        self.permission_gate = permission_gate or PermissionGate(
            "calendar", gateway.request_access
        )
        self.locale = locale

    async def add_dday_event(self, prayer, add_alarms: bool = True) -> str:
        """Create the D-Day event for a prayer and return its identifier.

        Raises:
            ValueError: the prayer has no target date
            PermissionRequired: calendar access was denied
            CalendarError: the gateway failed to save the event
        """
        if prayer.target_date is None:
            raise ValueError("Prayer has no target date")

        await self.permission_gate.ensure()

        target_name = prayer.target or t("target.myself", self.locale)
        title = t("calendar.event_title", self.locale, target=target_name)
        notes = t("calendar.event_notes", self.locale, title=prayer.title, content=prayer.content)
        alarms = dday_alarm_offsets() if add_alarms else []

        try:
            event_id = await self.gateway.add_event(title, notes, prayer.target_date, alarms)
        except CalendarError:
            raise
        except Exception as e:
            logger.error(f"Failed to save calendar event for prayer {prayer.id}: {e}")
            raise CalendarError(f"Failed to save calendar event: {e}") from e

        logger.info(f"Added D-Day calendar event {event_id} for prayer {prayer.id}")
        return event_id

    async def remove_event(self, event_id: str) -> None:
        """Remove a D-Day event.

        Raises:
            PermissionRequired: calendar access was denied
            CalendarEventNotFound: the event no longer exists
            CalendarError: the gateway failed to remove the event
        """
        await self.permission_gate.ensure()
        try:
            await self.gateway.remove_event(event_id)
        except KeyError as e:
            raise CalendarEventNotFound(event_id) from e
        except CalendarError:
            raise
        except Exception as e:
            logger.error(f"Failed to remove calendar event {event_id}: {e}")
            raise CalendarError(f"Failed to remove calendar event: {e}") from e
        logger.info(f"Removed calendar event {event_id}")
