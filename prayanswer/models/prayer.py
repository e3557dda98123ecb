import uuid
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .attachment import Attachment
from .base import Base, TimestampMixin
from .enums import PrayerCategory, PrayerStorage, enum_values
from .notification_settings import NotificationSettings, NotificationSettingsType

MAX_TITLE_LENGTH = 100
MAX_CONTENT_LENGTH = 2000


def new_prayer_id() -> str:
    return str(uuid.uuid4())


class Prayer(Base, TimestampMixin):
    __tablename__ = "prayers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_prayer_id)
    title: Mapped[str] = mapped_column(String(MAX_TITLE_LENGTH), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[PrayerCategory] = mapped_column(
        Enum(PrayerCategory, values_callable=enum_values, native_enum=False),
        nullable=False,
        default=PrayerCategory.PERSONAL,
        index=True,
    )
    target: Mapped[str] = mapped_column(String(100), nullable=False, default="", index=True)
    storage: Mapped[PrayerStorage] = mapped_column(
        Enum(PrayerStorage, values_callable=enum_values, native_enum=False),
        nullable=False,
        default=PrayerStorage.WAITING,
        index=True,
    )
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Set on first edit / first storage transition
    modified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    moved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # D-Day
    target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notification_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notification_settings: Mapped[NotificationSettings] = mapped_column(
        NotificationSettingsType, nullable=False, default=lambda: NotificationSettings()
    )
    calendar_event_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Pre-attachment single image; only read by the migration
    image_file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    attachments: Mapped[List[Attachment]] = relationship(
        Attachment,
        back_populates="prayer",
        cascade="all, delete-orphan",
        order_by=Attachment.order,
        lazy="selectin",
    )

    @property
    def has_target(self) -> bool:
        return bool(self.target)

    @property
    def sorted_attachments(self) -> List[Attachment]:
        return sorted(self.attachments, key=lambda a: a.order)

    def days_until_target(self, today: date) -> Optional[int]:
        """Days from *today* to the D-Day; negative once it has passed."""
        if self.target_date is None:
            return None
        return (self.target_date - today).days

    def add_attachment(self, attachment: Attachment) -> None:
        """Append *attachment* after the current last one."""
        attachment.order = max((a.order for a in self.attachments), default=-1) + 1
        self.attachments.append(attachment)

    def remove_attachment(self, attachment: Attachment) -> None:
        self.attachments.remove(attachment)
        for index, remaining in enumerate(self.sorted_attachments):
            remaining.order = index

    def __repr__(self) -> str:
        return f"<Prayer(id={self.id}, title={self.title!r}, storage={self.storage}, favorite={self.is_favorite})>"
