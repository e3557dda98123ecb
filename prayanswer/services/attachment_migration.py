"""
One-time migration of single legacy images into attachments.

Older records kept one image in ``PrayerImages`` and referenced it by
``Prayer.image_file_name``. The migration copies each file into the
attachment directory under the same name and links an image attachment.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Union

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories import PrayerRepository
from ..models.attachment import Attachment
from ..models.enums import AttachmentType
from ..utils.shared_store import SharedStore
from .attachment_store import DEFAULT_IMAGE_NAME, AttachmentStore

logger = logging.getLogger(__name__)

MIGRATION_FLAG_KEY = "AttachmentMigrationCompleted_v1"


class AttachmentMigration:
    """Copies legacy images once, guarded by a flag in the shared store."""

    def __init__(
        self,
        store: AttachmentStore,
        shared_store: SharedStore,
        legacy_dir: Union[str, Path],
    ) -> None:
        self.store = store
        self.shared_store = shared_store
        self.legacy_dir = Path(legacy_dir)

    async def needs_migration(self) -> bool:
        done = await asyncio.to_thread(self.shared_store.get_bool, MIGRATION_FLAG_KEY)
        return not done

    async def migrate_if_needed(self, repository: PrayerRepository) -> int:
        """Migrate every pending record and return how many were linked.

        Records whose file is missing or cannot be copied are skipped. If
        the batch cannot be committed the flag stays unset and the next
        startup tries again.
        """
        if not await self.needs_migration():
            logger.debug("Attachment migration already completed")
            return 0

        logger.info("Starting attachment migration")
        try:
            candidates = await repository.legacy_image_candidates()
        except SQLAlchemyError as e:
            logger.error(f"Attachment migration could not load prayers: {e}")
            return 0

        migrated = 0
        for prayer in candidates:
            copied = await asyncio.to_thread(self._copy_legacy_file, prayer.image_file_name)
            if copied is None:
                continue

            file_name, size = copied
            prayer.add_attachment(
                Attachment(
                    file_name=file_name,
                    original_name=DEFAULT_IMAGE_NAME,
                    type=AttachmentType.IMAGE,
                    file_size=size,
                )
            )
            migrated += 1
            logger.info(f"Migrated image of prayer '{prayer.title}'")

        try:
            await repository.commit()
        except SQLAlchemyError as e:
            logger.error(f"Attachment migration commit failed: {e}")
            await repository.rollback()
            return 0

        await asyncio.to_thread(self.shared_store.set, MIGRATION_FLAG_KEY, True)
        logger.info(f"Attachment migration completed: {migrated} prayers")
        return migrated

    def _copy_legacy_file(self, file_name: str):
        """Copy one legacy file; returns (file_name, size) or None."""
        source = self.legacy_dir / file_name
        if not source.is_file():
            logger.warning(f"Legacy image {file_name} not found, skipping")
            return None

        try:
            destination = self.store.path_for(file_name)
            destination.parent.mkdir(parents=True, exist_ok=True)
            # An earlier interrupted run may already have copied it
            if not destination.exists():
                shutil.copy2(source, destination)
            return file_name, destination.stat().st_size
        except OSError as e:
            logger.error(f"Failed to copy legacy image {file_name}: {e}")
            return None

    async def reset(self) -> None:
        await asyncio.to_thread(self.shared_store.remove, MIGRATION_FLAG_KEY)
        logger.info("Attachment migration flag reset")
