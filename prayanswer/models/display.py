"""
Display metadata for enums.

Kept apart from the enums themselves: the enum is identity, this module is
presentation (localized name, SF-style icon name, color asset name).
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..core.i18n import t
from .enums import AttachmentType, PrayerCategory, PrayerStorage


@dataclass(frozen=True)
class DisplayMetadata:
    name: str
    icon: str
    color: str


_STORAGE_STYLE = {
    PrayerStorage.WAITING: ("clock.fill", "WaitColor"),
    PrayerStorage.ANSWERED: ("checkmark.circle.fill", "AnsweredColor"),
    PrayerStorage.NOT_ANSWERED: ("xmark.circle.fill", "NotAnsweredColor"),
}

_CATEGORY_STYLE = {
    PrayerCategory.PERSONAL: ("person.fill", "PersonalColor"),
    PrayerCategory.FAMILY: ("house.fill", "FamilyColor"),
    PrayerCategory.HEALTH: ("heart.fill", "HealthColor"),
    PrayerCategory.WORK: ("briefcase.fill", "WorkColor"),
    PrayerCategory.RELATIONSHIP: ("person.2.fill", "RelationshipColor"),
    PrayerCategory.THANKSGIVING: ("hands.sparkles.fill", "ThanksgivingColor"),
    PrayerCategory.VISION: ("eye.fill", "VisionColor"),
    PrayerCategory.OTHER: ("ellipsis.circle.fill", "OtherColor"),
}

_ATTACHMENT_STYLE = {
    AttachmentType.IMAGE: ("photo.fill", "SecondaryColor"),
    AttachmentType.PDF: ("doc.richtext.fill", "SecondaryColor"),
}


def display_metadata(
    kind: Union[PrayerStorage, PrayerCategory, AttachmentType],
    locale: Optional[str] = None,
) -> DisplayMetadata:
    """Look up the localized name, icon and color for an enum member."""
    if isinstance(kind, PrayerStorage):
        icon, color = _STORAGE_STYLE[kind]
        return DisplayMetadata(t(f"storage.{kind.value}", locale), icon, color)
    if isinstance(kind, PrayerCategory):
        icon, color = _CATEGORY_STYLE[kind]
        return DisplayMetadata(t(f"category.{kind.value}", locale), icon, color)
    if isinstance(kind, AttachmentType):
        icon, color = _ATTACHMENT_STYLE[kind]
        return DisplayMetadata(t(f"attachment.type_{kind.value}", locale), icon, color)
    raise TypeError(f"No display metadata for {kind!r}")


def storage_description(storage: PrayerStorage, locale: Optional[str] = None) -> str:
    return t(f"storage.description.{storage.value}", locale)
