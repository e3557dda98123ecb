"""
Enumerations shared by the prayer models.

Raw values are what gets persisted and what appears in widget snapshot keys,
so they must never change.
"""

import enum


class PrayerStorage(str, enum.Enum):
    """Lifecycle state of a prayer."""

    WAITING = "wait"
    ANSWERED = "yes"
    NOT_ANSWERED = "no"


class PrayerCategory(str, enum.Enum):
    PERSONAL = "personal"
    FAMILY = "family"
    HEALTH = "health"
    WORK = "work"
    RELATIONSHIP = "relationship"
    THANKSGIVING = "thanksgiving"
    VISION = "vision"
    OTHER = "other"


class AttachmentType(str, enum.Enum):
    IMAGE = "image"
    PDF = "pdf"


class RepeatRule(str, enum.Enum):
    """Repeating reminder rule applied between today and the D-Day."""

    NONE = "none"
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"
    CUSTOM = "custom"


def enum_values(enum_cls):
    """values_callable for SQLAlchemy Enum columns so raw values are stored."""
    return [member.value for member in enum_cls]
