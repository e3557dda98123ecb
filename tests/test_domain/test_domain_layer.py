"""Tests for domain errors, events and port protocols."""

import pytest

from prayanswer.core.i18n import t
from prayanswer.domain import errors
from prayanswer.domain.events import (
    EventBus,
    PermissionDenied,
    PrayerDeleted,
    get_event_bus,
    reset_event_bus,
)
from prayanswer.domain.ports import (
    CalendarGateway,
    NotificationCenter,
    SpeechRecognizer,
    TextRecognizer,
    WidgetSurface,
)
from prayanswer.domain.repositories import PrayerRepository


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(errors.ContentTooLong, errors.ValidationError)
        assert issubclass(errors.AttachmentTooLarge, errors.AttachmentError)
        assert issubclass(errors.NoTextFound, errors.ExtractionError)
        assert issubclass(errors.SummarizationFailed, errors.CleanupError)
        assert issubclass(errors.CalendarEventNotFound, errors.CalendarError)
        for cls in (errors.ValidationError, errors.PersistenceError, errors.PermissionRequired):
            assert issubclass(cls, errors.DomainError)

    def test_carries_details(self):
        too_large = errors.AttachmentTooLarge(25, 20)
        assert (too_large.size, too_large.limit) == (25, 20)

        cause = RuntimeError("boom")
        failed = errors.SummarizationFailed(cause)
        assert failed.cause is cause

        assert errors.PermissionRequired("calendar").kind == "calendar"
        assert errors.PersistenceError("update", cause).operation == "update"

    @pytest.mark.parametrize(
        "error",
        [
            errors.ContentRequired(),
            errors.ContentTooLong(2001, 2000),
            errors.TitleTooLong(101, 100),
            errors.PersistenceError("create"),
            errors.AttachmentTooLarge(1, 0),
            errors.UnsupportedAttachmentFormat("x"),
            errors.InvalidAttachmentImage("x"),
            errors.AttachmentDirectoryCreationFailed("x"),
            errors.AttachmentWriteFailed("x"),
            errors.AttachmentLoadFailed("x"),
            errors.AttachmentDeleteFailed("x"),
            errors.InvalidImageError("x"),
            errors.RecognitionFailed("x"),
            errors.NoTextFound(),
            errors.EmptyInput(),
            errors.CleanupNotAvailable("off"),
            errors.SummarizationFailed(ValueError()),
            errors.PermissionRequired("notifications"),
            errors.CalendarError("x"),
            errors.CalendarEventNotFound("e1"),
        ],
    )
    def test_every_message_key_is_translated(self, error):
        assert t(error.message_key, "ko") != error.message_key
        assert t(error.message_key, "en") != error.message_key


class TestEventBus:
    async def test_publish_to_type_subscribers(self):
        bus = EventBus()
        received = []

        async def on_denied(event):
            received.append(event)

        bus.subscribe(PermissionDenied, on_denied)
        await bus.publish(PermissionDenied(kind="notifications", prayer_id="p1"))
        await bus.publish(PrayerDeleted(prayer_id="p1", title="t"))

        assert len(received) == 1
        assert received[0].kind == "notifications"

    async def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        received = []

        async def broken(event):
            raise RuntimeError("handler bug")

        async def working(event):
            received.append(event)

        bus.subscribe(PrayerDeleted, broken)
        bus.subscribe(PrayerDeleted, working)
        await bus.publish(PrayerDeleted(prayer_id="p1", title="t"))

        assert len(received) == 1

    def test_singleton(self):
        first = get_event_bus()
        assert get_event_bus() is first
        reset_event_bus()
        assert get_event_bus() is not first


class TestPorts:
    def test_fakes_satisfy_protocols(self, calendar_gateway, widget_surface, notification_center):
        from conftest import FakeSpeechRecognizer, StaticRecognizer

        assert isinstance(calendar_gateway, CalendarGateway)
        assert isinstance(widget_surface, WidgetSurface)
        assert isinstance(notification_center, NotificationCenter)
        assert isinstance(FakeSpeechRecognizer(), SpeechRecognizer)
        assert isinstance(StaticRecognizer(), TextRecognizer)

    def test_repository_satisfies_protocol(self, repository):
        assert isinstance(repository, PrayerRepository)
