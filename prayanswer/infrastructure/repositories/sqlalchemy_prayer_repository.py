"""SQLAlchemy implementation of PrayerRepository."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.enums import PrayerCategory, PrayerStorage
from ...models.prayer import Prayer

logger = logging.getLogger(__name__)


class SqlAlchemyPrayerRepository:
    """Concrete PrayerRepository backed by a SQLAlchemy async session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def add(self, prayer: Prayer) -> None:
        self._session.add(prayer)

    async def delete(self, prayer: Prayer) -> None:
        await self._session.delete(prayer)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def reload(self, prayer: Prayer) -> None:
        await self._session.refresh(prayer)

    async def get(self, prayer_id: str) -> Optional[Prayer]:
        return await self._session.get(Prayer, prayer_id)

    async def list(
        self,
        storage: Optional[PrayerStorage] = None,
        category: Optional[PrayerCategory] = None,
        is_favorite: Optional[bool] = None,
        target: Optional[str] = None,
    ) -> List[Prayer]:
        stmt = select(Prayer)
        if storage is not None:
            stmt = stmt.where(Prayer.storage == storage)
        if category is not None:
            stmt = stmt.where(Prayer.category == category)
        if is_favorite is not None:
            stmt = stmt.where(Prayer.is_favorite.is_(is_favorite))
        if target is not None:
            stmt = stmt.where(Prayer.target == target)
        stmt = stmt.order_by(Prayer.created_at.desc())

        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def targets(self) -> List[str]:
        result = await self._session.execute(
            select(Prayer.target).where(Prayer.target != "").distinct().order_by(Prayer.target)
        )
        return list(result.scalars().all())

    async def legacy_image_candidates(self) -> List[Prayer]:
        result = await self._session.execute(
            select(Prayer)
            .where(Prayer.image_file_name.is_not(None))
            .where(Prayer.image_file_name != "")
            .order_by(Prayer.created_at)
        )
        # Already-migrated prayers keep the legacy name but have attachments
        return [p for p in result.scalars().all() if not p.attachments]
