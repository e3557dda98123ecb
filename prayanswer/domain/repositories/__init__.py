from .prayer_repository import PrayerRepository

__all__ = ["PrayerRepository"]
