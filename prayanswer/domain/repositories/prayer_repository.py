"""PrayerRepository protocol: defines the prayer persistence contract."""

from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class PrayerRepository(Protocol):
    """Repository interface for Prayer entity access.

    Mutations are staged with ``add``/``delete`` and only become durable on
    ``commit``. A failed commit must be followed by ``rollback``.
    """

    def add(self, prayer: object) -> None:
        """Stage a new or modified prayer (and its attachments)."""
        ...

    async def delete(self, prayer: object) -> None:
        """Stage removal of a prayer; attachments go with it."""
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...

    async def reload(self, prayer: object) -> None:
        """Re-read a prayer from the database, discarding unsaved changes."""
        ...

    async def get(self, prayer_id: str) -> Optional[object]:
        """Look up a prayer by its id, or None if not found."""
        ...

    async def list(
        self,
        storage: Optional[object] = None,
        category: Optional[object] = None,
        is_favorite: Optional[bool] = None,
        target: Optional[str] = None,
    ) -> List[object]:
        """Prayers matching every given filter, newest first."""
        ...

    async def targets(self) -> List[str]:
        """Distinct non-empty target names, sorted."""
        ...

    async def legacy_image_candidates(self) -> List[object]:
        """Prayers that still reference a pre-attachment image file."""
        ...
