"""CalendarGateway port -- abstracts the device calendar."""

from datetime import date, timedelta
from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class CalendarGateway(Protocol):
    """Creates and removes all-day calendar events.

    ``alarm_offsets`` are relative to the start of the event day, so
    ``-timedelta(days=7) + timedelta(hours=9)`` is 09:00 a week before.
    """

    async def request_access(self) -> bool: ...

    async def add_event(
        self,
        title: str,
        notes: str,
        all_day_date: date,
        alarm_offsets: Sequence[timedelta],
    ) -> str:
        """Create the event and return its identifier."""
        ...

    async def remove_event(self, event_id: str) -> None:
        """Remove an event; raise KeyError if it no longer exists."""
        ...
