"""Tests for reminder planning and scheduling."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from conftest import TODAY
from prayanswer.domain.errors import PermissionRequired
from prayanswer.models.enums import RepeatRule
from prayanswer.models.notification_settings import NotificationSettings
from prayanswer.services.reminder_scheduler import (
    ReminderScheduler,
    plan_reminders,
)
from prayanswer.services.scheduler import (
    InMemoryNotificationCenter,
    NotificationRequest,
    ReminderKind,
    dday_identifier,
)


def _prayer(prayer_id="p1", target="엄마", days_ahead=10, enabled=True, settings=None):
    return SimpleNamespace(
        id=prayer_id,
        target=target,
        target_date=TODAY + timedelta(days=days_ahead) if days_ahead is not None else None,
        notification_enabled=enabled,
        notification_settings=settings or NotificationSettings(),
    )


class TestPlan:
    def test_past_offsets_skipped(self):
        plan = plan_reminders("p1", "mom", TODAY + timedelta(days=3), NotificationSettings(), TODAY)

        assert [r.days_before for r in plan] == [3, 1, 0]
        assert [r.identifier for r in plan] == [
            "prayer_p1_dday_d3",
            "prayer_p1_dday_d1",
            "prayer_p1_dday_d0",
        ]

    def test_fire_time_and_messages(self):
        settings = NotificationSettings(is_enabled=True, hour=7, minute=15)
        plan = plan_reminders("p1", "엄마", TODAY + timedelta(days=7), settings, TODAY)

        first, *_, last = plan
        assert first.fire_at == datetime.combine(TODAY, datetime.min.time()).replace(hour=7, minute=15)
        assert first.body == "엄마을(를) 위한 기도 D-Day가 일주일 남았습니다"
        assert first.title == "기도 D-Day 알림"
        assert last.title == "오늘은 기도 D-Day입니다"
        assert last.kind is ReminderKind.DDAY

    def test_empty_target_uses_myself(self):
        plan = plan_reminders("p1", "", TODAY, NotificationSettings(), TODAY, locale="en")
        assert plan[0].body == "Today is the prayer D-Day for Me"

    def test_generic_offset_message(self):
        settings = NotificationSettings(is_enabled=True, reminder_day_offsets=(14,))
        plan = plan_reminders("p1", "mom", TODAY + timedelta(days=20), settings, TODAY, locale="en")
        assert plan[0].body == "14 days left until the prayer D-Day for mom"

    def test_past_target_date_yields_nothing(self):
        assert plan_reminders("p1", "", TODAY - timedelta(days=1), NotificationSettings(), TODAY) == []

    def test_disabled_settings_fall_back_to_defaults(self):
        settings = NotificationSettings(is_enabled=False, hour=22, reminder_day_offsets=(2,))
        plan = plan_reminders("p1", "", TODAY + timedelta(days=10), settings, TODAY)

        assert [r.days_before for r in plan] == [7, 3, 1, 0]
        assert all(r.fire_at.hour == 9 for r in plan)

    def test_daily_repeat_skips_offset_days(self):
        settings = NotificationSettings(
            is_enabled=True, reminder_day_offsets=(0,), repeat_rule=RepeatRule.DAILY
        )
        plan = plan_reminders("p1", "", TODAY + timedelta(days=3), settings, TODAY)

        repeats = [r for r in plan if r.kind is ReminderKind.REPEAT]
        assert [r.fire_at.date() for r in repeats] == [TODAY + timedelta(days=d) for d in range(3)]
        assert repeats[0].identifier == "prayer_p1_repeat_20260310"
        assert [r.kind for r in plan].count(ReminderKind.DDAY) == 1

    def test_no_offsets_only_repeats(self):
        settings = NotificationSettings(
            is_enabled=True, reminder_day_offsets=(), repeat_rule=RepeatRule.WEEKDAYS
        )
        # Tuesday to the following Tuesday
        plan = plan_reminders("p1", "", TODAY + timedelta(days=7), settings, TODAY)

        assert all(r.kind is ReminderKind.REPEAT for r in plan)
        assert all(r.fire_at.weekday() < 5 for r in plan)
        assert len(plan) == 6

    def test_repeat_bounded_by_end_date_and_count(self):
        settings = NotificationSettings(
            is_enabled=True,
            reminder_day_offsets=(),
            repeat_rule=RepeatRule.DAILY,
            repeat_end_date=TODAY + timedelta(days=4),
        )
        plan = plan_reminders("p1", "", TODAY + timedelta(days=30), settings, TODAY)
        assert len(plan) == 5

        capped = settings.replace(repeat_end_date=None, max_repeat_count=3)
        assert len(plan_reminders("p1", "", TODAY + timedelta(days=30), capped, TODAY)) == 3

    def test_repeat_never_exceeds_thirty(self):
        settings = NotificationSettings(
            is_enabled=True, reminder_day_offsets=(), repeat_rule=RepeatRule.DAILY
        )
        plan = plan_reminders("p1", "", TODAY + timedelta(days=90), settings, TODAY)
        assert len(plan) == 30

    def test_custom_weekdays(self):
        mask = (False, False, False, True, False, False, False)  # Wednesday only
        settings = NotificationSettings(
            is_enabled=True,
            reminder_day_offsets=(),
            repeat_rule=RepeatRule.CUSTOM,
            custom_weekdays=mask,
        )
        plan = plan_reminders("p1", "", TODAY + timedelta(days=14), settings, TODAY)
        assert [r.fire_at.date() for r in plan] == [date(2026, 3, 11), date(2026, 3, 18)]


class TestNotificationRequest:
    def test_rejects_foreign_identifier(self):
        with pytest.raises(ValueError):
            NotificationRequest(
                identifier="prayer_other_dday_d1",
                title="t",
                body="b",
                fire_at=datetime(2026, 3, 10, 9),
                prayer_id="p1",
                kind=ReminderKind.DDAY,
                days_before=1,
            )


class TestScheduler:
    async def test_schedule_registers_plan(self, reminder_scheduler, notification_center):
        result = await reminder_scheduler.schedule(_prayer(days_ahead=3))

        assert result.identifiers == ["prayer_p1_dday_d3", "prayer_p1_dday_d1", "prayer_p1_dday_d0"]
        assert sorted(await notification_center.pending_identifiers()) == sorted(result.identifiers)

    async def test_schedule_cancel_schedule_is_idempotent(self, reminder_scheduler, notification_center):
        prayer = _prayer()
        await reminder_scheduler.schedule(prayer)
        first = sorted(await notification_center.pending_identifiers())

        await reminder_scheduler.cancel(prayer.id)
        assert await notification_center.pending_identifiers() == []

        await reminder_scheduler.schedule(prayer)
        await reminder_scheduler.schedule(prayer)
        assert sorted(await notification_center.pending_identifiers()) == first

    async def test_reschedule_drops_stale_repeats(self, reminder_scheduler, notification_center):
        daily = NotificationSettings.intensive()
        await reminder_scheduler.schedule(_prayer(settings=daily))
        assert any("repeat" in i for i in await notification_center.pending_identifiers())

        await reminder_scheduler.schedule(_prayer(settings=NotificationSettings.simple()))

        assert sorted(await notification_center.pending_identifiers()) == [
            "prayer_p1_dday_d0",
            "prayer_p1_dday_d1",
        ]

    async def test_disabled_prayer_only_cancels(self, reminder_scheduler, notification_center):
        await reminder_scheduler.schedule(_prayer())
        result = await reminder_scheduler.schedule(_prayer(enabled=False))

        assert result.scheduled == []
        assert await notification_center.pending_identifiers() == []
        assert notification_center.authorization_requests == 1

    async def test_other_prayers_untouched(self, reminder_scheduler, notification_center):
        await reminder_scheduler.schedule(_prayer("p1"))
        await reminder_scheduler.schedule(_prayer("p2"))

        await reminder_scheduler.cancel("p1")

        pending = await notification_center.pending_identifiers()
        assert pending and all(i.startswith("prayer_p2_") for i in pending)

    async def test_permission_requested_once(self, reminder_scheduler, notification_center):
        await reminder_scheduler.schedule(_prayer("p1"))
        await reminder_scheduler.schedule(_prayer("p2"))
        assert notification_center.authorization_requests == 1

    async def test_permission_denied(self):
        center = InMemoryNotificationCenter(authorized=False)
        scheduler = ReminderScheduler(center, today=lambda: TODAY)

        with pytest.raises(PermissionRequired) as exc_info:
            await scheduler.schedule(_prayer())

        assert exc_info.value.kind == "notifications"
        assert await center.pending_identifiers() == []

    async def test_pending_cap(self):
        center = InMemoryNotificationCenter()
        scheduler = ReminderScheduler(center, today=lambda: TODAY, max_pending=5)

        await scheduler.schedule(_prayer("p1"))  # 4 reminders
        result = await scheduler.schedule(_prayer("p2"))

        assert len(result.scheduled) == 1
        assert result.dropped == 3
        assert len(await center.pending_identifiers()) == 5

    async def test_cancel_covers_every_offset(self, notification_center, reminder_scheduler):
        settings = NotificationSettings(is_enabled=True, reminder_day_offsets=(30, 14, 5, 2))
        await reminder_scheduler.schedule(_prayer(days_ahead=40, settings=settings))
        assert dday_identifier("p1", 30) in await notification_center.pending_identifiers()

        await reminder_scheduler.cancel("p1")

        assert await notification_center.pending_identifiers() == []

    async def test_cancel_all(self, reminder_scheduler, notification_center):
        await reminder_scheduler.schedule(_prayer("p1"))
        await reminder_scheduler.schedule(_prayer("p2"))
        await reminder_scheduler.cancel_all()
        assert await notification_center.pending_identifiers() == []
