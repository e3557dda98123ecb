"""Reminder settings value object, stored on the prayer row as JSON."""

from __future__ import annotations

from datetime import date
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import JSON
from sqlalchemy.types import TypeDecorator

from .enums import RepeatRule

AVAILABLE_REMINDER_DAYS: Tuple[int, ...] = (30, 14, 7, 5, 3, 2, 1, 0)
DEFAULT_REMINDER_DAYS: Tuple[int, ...] = (7, 3, 1, 0)

# custom_weekdays is indexed Sunday..Saturday; Python weekdays are Monday=0
_WEEKDAY_MASK_TO_PYTHON = (6, 0, 1, 2, 3, 4, 5)


class NotificationSettings(BaseModel):
    """Immutable reminder settings.

    Every change goes through a method that returns a new value, so a
    settings object held by a prayer is never mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    is_enabled: bool = False
    hour: int = Field(default=9, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    reminder_day_offsets: Tuple[int, ...] = DEFAULT_REMINDER_DAYS
    repeat_rule: RepeatRule = RepeatRule.NONE
    custom_weekdays: Tuple[bool, ...] = (False,) * 7
    repeat_end_date: Optional[date] = None
    max_repeat_count: Optional[int] = Field(default=None, ge=1)

    @field_validator("reminder_day_offsets")
    @classmethod
    def _normalize_offsets(cls, value: Tuple[int, ...]) -> Tuple[int, ...]:
        if any(day < 0 for day in value):
            raise ValueError("reminder day offsets must be non-negative")
        return tuple(sorted(set(value), reverse=True))

    @field_validator("custom_weekdays")
    @classmethod
    def _check_weekdays(cls, value: Tuple[bool, ...]) -> Tuple[bool, ...]:
        if len(value) != 7:
            raise ValueError("custom_weekdays needs exactly 7 entries (Sun..Sat)")
        return value

    # --- Presets ---

    @classmethod
    def default(cls) -> "NotificationSettings":
        """D-7, D-3, D-1, D-Day at 09:00."""
        return cls()

    @classmethod
    def simple(cls) -> "NotificationSettings":
        """D-1 and D-Day only."""
        return cls(is_enabled=True, reminder_day_offsets=(1, 0))

    @classmethod
    def intensive(cls) -> "NotificationSettings":
        """Default offsets plus a daily reminder until the D-Day."""
        return cls(
            is_enabled=True,
            reminder_day_offsets=DEFAULT_REMINDER_DAYS,
            repeat_rule=RepeatRule.DAILY,
        )

    # --- Pure transformations ---

    def replace(self, **changes) -> "NotificationSettings":
        """Return a validated copy with *changes* applied."""
        return type(self).model_validate({**self.model_dump(), **changes})

    def toggle_reminder_day(self, day: int) -> "NotificationSettings":
        if day in self.reminder_day_offsets:
            offsets = tuple(d for d in self.reminder_day_offsets if d != day)
        else:
            offsets = self.reminder_day_offsets + (day,)
        return self.replace(reminder_day_offsets=offsets)

    def is_reminder_day_selected(self, day: int) -> bool:
        return day in self.reminder_day_offsets

    def effective(self) -> "NotificationSettings":
        """Settings the scheduler actually applies; disabled means defaults."""
        return self if self.is_enabled else type(self).default()

    def repeat_weekdays(self, today: date) -> FrozenSet[int]:
        """Python weekday numbers (Monday=0) on which repeats fire."""
        if self.repeat_rule is RepeatRule.DAILY:
            return frozenset(range(7))
        if self.repeat_rule is RepeatRule.WEEKDAYS:
            return frozenset(range(5))
        if self.repeat_rule is RepeatRule.WEEKLY:
            return frozenset({today.weekday()})
        if self.repeat_rule is RepeatRule.CUSTOM:
            return frozenset(
                _WEEKDAY_MASK_TO_PYTHON[i]
                for i, selected in enumerate(self.custom_weekdays)
                if selected
            )
        return frozenset()


class NotificationSettingsType(TypeDecorator):
    """Stores NotificationSettings as a JSON document."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, dict):
            value = NotificationSettings.model_validate(value)
        return value.model_dump(mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return NotificationSettings()
        return NotificationSettings.model_validate(value)
