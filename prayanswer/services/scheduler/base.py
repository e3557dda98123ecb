"""
Reminder request types.

NotificationRequest describes one local notification: what to show and
when. Identifiers are derived from the prayer id so that scheduling the
same reminder twice replaces it instead of duplicating it.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime


class ReminderKind(enum.Enum):
    DDAY = "dday"
    REPEAT = "repeat"


@dataclass(frozen=True)
class NotificationRequest:
    """A one-shot local notification.

    fire_at is a naive local datetime; the device fires it at that wall
    clock time.
    """

    identifier: str
    title: str
    body: str
    fire_at: datetime
    prayer_id: str
    kind: ReminderKind
    days_before: int

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("identifier is required")
        if not self.identifier.startswith(prayer_prefix(self.prayer_id)):
            raise ValueError("identifier must carry the prayer prefix")
        if self.fire_at.tzinfo is not None:
            raise ValueError("fire_at must be a naive local datetime")
        if self.days_before < 0:
            raise ValueError("days_before must be non-negative")


def prayer_prefix(prayer_id: str) -> str:
    return f"prayer_{prayer_id}_"


def dday_identifier(prayer_id: str, days_before: int) -> str:
    return f"{prayer_prefix(prayer_id)}dday_d{days_before}"


def repeat_identifier(prayer_id: str, day: date) -> str:
    return f"{prayer_prefix(prayer_id)}repeat_{day:%Y%m%d}"
