"""
Home-screen widget snapshot publishing.

The widget process cannot read the database, so favorite prayers are
copied into the shared store as small JSON lists, one key per storage.
Publishing is fire-and-forget: a failed refresh is logged and never
fails the mutation that triggered it.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from ..domain.ports import WidgetSurface
from ..models.enums import PrayerCategory, PrayerStorage
from ..utils.shared_store import SharedStore
from ..utils.task_tracker import TaskTracker

logger = logging.getLogger(__name__)

SNAPSHOT_KEY_PREFIX = "FavoritePrayers"
MAX_WIDGET_ITEMS = 5
TITLE_LIMIT = 50
CONTENT_LIMIT = 100


def snapshot_key(storage: PrayerStorage) -> str:
    return f"{SNAPSHOT_KEY_PREFIX}_{storage.value}"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit]


@dataclass(frozen=True)
class WidgetPrayerItem:
    id: str
    title: str
    content: str
    category: str
    target: str
    storage: str
    created_at: str

    @classmethod
    def from_prayer(cls, prayer) -> "WidgetPrayerItem":
        return cls(
            id=prayer.id,
            title=_truncate(prayer.title, TITLE_LIMIT),
            content=_truncate(prayer.content, CONTENT_LIMIT),
            category=prayer.category.value,
            target=prayer.target,
            storage=prayer.storage.value,
            created_at=prayer.created_at.isoformat(),
        )

    @property
    def prayer_category(self) -> PrayerCategory:
        return PrayerCategory(self.category)

    @property
    def prayer_storage(self) -> PrayerStorage:
        return PrayerStorage(self.storage)

    @property
    def created(self) -> datetime:
        return datetime.fromisoformat(self.created_at)


def build_snapshot(
    favorites_by_storage: Mapping[PrayerStorage, Iterable],
    max_items: int = MAX_WIDGET_ITEMS,
) -> Dict[str, List[dict]]:
    """Serialize the newest favorites of every storage.

    Storages without favorites still get an (empty) entry so that
    un-favoriting the last prayer clears the widget.
    """
    snapshot: Dict[str, List[dict]] = {}
    for storage in PrayerStorage:
        prayers = sorted(
            favorites_by_storage.get(storage, ()),
            key=lambda p: p.created_at,
            reverse=True,
        )[:max_items]
        snapshot[snapshot_key(storage)] = [
            asdict(WidgetPrayerItem.from_prayer(p)) for p in prayers
        ]
    return snapshot


class WidgetSnapshotPublisher:
    """Writes widget snapshots off the event loop and signals the widget."""

    def __init__(
        self,
        store: SharedStore,
        surface: Optional[WidgetSurface] = None,
        tracker: Optional[TaskTracker] = None,
        max_items: int = MAX_WIDGET_ITEMS,
    ) -> None:
        self.store = store
        self.surface = surface
        self.tracker = tracker or TaskTracker()
        self.max_items = max_items
        # Keeps writes in the order refreshes were requested
        self._write_lock = asyncio.Lock()

    def refresh(self, favorites_by_storage: Mapping[PrayerStorage, Iterable]) -> asyncio.Task:
        """Start publishing a new snapshot and return the background task."""
        snapshot = build_snapshot(favorites_by_storage, self.max_items)
        return self.tracker.create(self._publish(snapshot), name="widget_refresh")

    async def _publish(self, snapshot: Dict[str, List[dict]]) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self.store.set_many, snapshot)
            except OSError as e:
                logger.error(f"Failed to write widget snapshot: {e}")
                return

        counts = {key: len(items) for key, items in snapshot.items()}
        logger.debug(f"Widget snapshot written: {counts}")

        # Back on the event loop; the widget surface is not thread-safe
        if self.surface is not None:
            self.surface.reload_all()

    def load(self, storage: PrayerStorage) -> List[WidgetPrayerItem]:
        """Read a published snapshot back (blocking)."""
        items = self.store.get(snapshot_key(storage), []) or []
        return [WidgetPrayerItem(**item) for item in items]

    async def wait_idle(self) -> None:
        """Wait for all in-flight refreshes to finish."""
        await self.tracker.wait()
