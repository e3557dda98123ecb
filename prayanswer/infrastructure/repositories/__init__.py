from .sqlalchemy_prayer_repository import SqlAlchemyPrayerRepository

__all__ = ["SqlAlchemyPrayerRepository"]
