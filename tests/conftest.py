import logging
import logging.handlers
import os
from datetime import date, datetime, timedelta
from typing import List

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment variables
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["OPENAI_API_KEY"] = "test-key"

TODAY = date(2026, 3, 10)  # a Tuesday
NOW = datetime(2026, 3, 10, 8, 30)


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to logs/app.log."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


@pytest.fixture(autouse=True)
def _fresh_singletons():
    from prayanswer.core.container import reset_container
    from prayanswer.domain.events import reset_event_bus

    reset_event_bus()
    reset_container()
    yield
    reset_event_bus()
    reset_container()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def async_engine():
    """Create an in-memory async SQLite engine with all tables."""
    from prayanswer.models.base import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine):
    """Create an async session bound to the in-memory engine."""
    factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def repository(async_session):
    from prayanswer.infrastructure.repositories import SqlAlchemyPrayerRepository

    return SqlAlchemyPrayerRepository(async_session)


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeWidgetSurface:
    def __init__(self):
        self.reloads = 0

    def reload_all(self) -> None:
        self.reloads += 1


class FakeCalendarGateway:
    def __init__(self, granted: bool = True):
        self.granted = granted
        self.events = {}
        self.access_requests = 0
        self.fail_remove = False
        self._next_id = 0

    async def request_access(self) -> bool:
        self.access_requests += 1
        return self.granted

    async def add_event(self, title, notes, all_day_date, alarm_offsets) -> str:
        self._next_id += 1
        event_id = f"event-{self._next_id}"
        self.events[event_id] = {
            "title": title,
            "notes": notes,
            "date": all_day_date,
            "alarms": list(alarm_offsets),
        }
        return event_id

    async def remove_event(self, event_id: str) -> None:
        if self.fail_remove:
            raise RuntimeError("calendar store unavailable")
        if event_id not in self.events:
            raise KeyError(event_id)
        del self.events[event_id]


class FakeSpeechRecognizer:
    def __init__(self, speech: bool = True, microphone: bool = True, final: str = ""):
        self.speech = speech
        self.microphone = microphone
        self.final = final
        self.calls: List[str] = []
        self.on_partial = None

    async def request_authorization(self) -> bool:
        self.calls.append("speech")
        return self.speech

    async def request_microphone_access(self) -> bool:
        self.calls.append("microphone")
        return self.microphone

    async def start(self, on_partial) -> None:
        self.calls.append("start")
        self.on_partial = on_partial

    async def stop(self) -> str:
        self.calls.append("stop")
        return self.final


class StaticRecognizer:
    """TextRecognizer returning fixed lines (or raising)."""

    def __init__(self, lines=None, error: Exception = None):
        self.lines = list(lines or [])
        self.error = error
        self.calls = 0

    def recognize(self, image, languages):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.lines)


@pytest.fixture
def widget_surface():
    return FakeWidgetSurface()


@pytest.fixture
def calendar_gateway():
    return FakeCalendarGateway()


@pytest.fixture
def notification_center():
    from prayanswer.services.scheduler import InMemoryNotificationCenter

    return InMemoryNotificationCenter()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def shared_store(tmp_path):
    from prayanswer.utils.shared_store import SharedStore

    return SharedStore(tmp_path / "shared" / "widget.json")


@pytest.fixture
def attachment_store(tmp_path):
    from prayanswer.services.attachment_store import AttachmentStore

    return AttachmentStore(tmp_path / "PrayerAttachments")


@pytest.fixture
def reminder_scheduler(notification_center):
    from prayanswer.services.reminder_scheduler import ReminderScheduler

    return ReminderScheduler(notification_center, today=lambda: TODAY)


@pytest.fixture
def widget_publisher(shared_store, widget_surface):
    from prayanswer.services.widget_publisher import WidgetSnapshotPublisher

    return WidgetSnapshotPublisher(shared_store, surface=widget_surface)


@pytest.fixture
def calendar_service(calendar_gateway):
    from prayanswer.services.calendar_service import CalendarService

    return CalendarService(calendar_gateway)


@pytest.fixture
def clock():
    """Monotonic fake clock: each call is one minute after the previous one."""
    state = {"now": NOW}

    def tick():
        state["now"] += timedelta(minutes=1)
        return state["now"]

    return tick


@pytest.fixture
def prayer_service(
    repository,
    reminder_scheduler,
    widget_publisher,
    attachment_store,
    calendar_service,
    clock,
):
    from prayanswer.domain.events import EventBus
    from prayanswer.services.prayer_service import PrayerService

    return PrayerService(
        repository=repository,
        reminders=reminder_scheduler,
        widget=widget_publisher,
        attachments=attachment_store,
        calendar=calendar_service,
        event_bus=EventBus(),
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def image_bytes():
    from io import BytesIO

    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", (64, 48), (200, 30, 30)).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes():
    from io import BytesIO

    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", (200, 100), "white").save(buffer, "PDF")
    return buffer.getvalue()
