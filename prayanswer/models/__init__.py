from .attachment import Attachment
from .base import Base, TimestampMixin
from .enums import AttachmentType, PrayerCategory, PrayerStorage, RepeatRule
from .notification_settings import NotificationSettings
from .prayer import Prayer

__all__ = [
    "Base",
    "TimestampMixin",
    "Prayer",
    "Attachment",
    "NotificationSettings",
    "PrayerStorage",
    "PrayerCategory",
    "AttachmentType",
    "RepeatRule",
]
