"""
Local reminder scheduling primitives.

Provides:
- NotificationRequest and identifier helpers
- InMemoryNotificationCenter, the in-process NotificationCenter backend
"""

from .base import (
    NotificationRequest,
    ReminderKind,
    dday_identifier,
    prayer_prefix,
    repeat_identifier,
)
from .memory_backend import InMemoryNotificationCenter

__all__ = [
    "NotificationRequest",
    "ReminderKind",
    "InMemoryNotificationCenter",
    "dday_identifier",
    "repeat_identifier",
    "prayer_prefix",
]
