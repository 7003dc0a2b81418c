"""
Tests for reminder scheduling and delivery.

Run with: pytest tests/test_reminders.py -v
"""
import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adapters.sqlite import SqliteAdapter
import core.reminders as reminders
from core.reminders import is_reminder_due, process_due_reminders, select_due_reminders, sunday_based_weekday

# 2024-06-02 is a Sunday
SUNDAY_NOON_UTC = datetime(2024, 6, 2, 12, 0, tzinfo=timezone.utc)


def reminder(**kw):
    base = {"enabled": True, "frequency": "weekly", "weekday": 0, "tz": "UTC", "channel": "email"}
    base.update(kw)
    return base


class TestIsReminderDue:

    def test_sunday_based_weekday(self):
        assert sunday_based_weekday(SUNDAY_NOON_UTC) == 0
        assert sunday_based_weekday(datetime(2024, 6, 8)) == 6

    def test_weekly(self):
        assert is_reminder_due(reminder(weekday=0), SUNDAY_NOON_UTC)
        assert not is_reminder_due(reminder(weekday=3), SUNDAY_NOON_UTC)

    def test_weekly_uses_local_timezone(self):
        # 02:00 UTC Sunday is still Saturday evening in New York
        early = datetime(2024, 6, 2, 2, 0, tzinfo=timezone.utc)
        assert is_reminder_due(reminder(weekday=6, tz="America/New_York"), early)
        assert not is_reminder_due(reminder(weekday=0, tz="America/New_York"), early)

    def test_daily_and_monthly(self):
        assert is_reminder_due(reminder(frequency="daily"), SUNDAY_NOON_UTC)
        assert not is_reminder_due(reminder(frequency="monthly"), SUNDAY_NOON_UTC)
        first = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert is_reminder_due(reminder(frequency="monthly"), first)

    def test_disabled_never_due(self):
        assert not is_reminder_due(reminder(enabled=False, frequency="daily"), SUNDAY_NOON_UTC)

    def test_naive_now_is_utc(self):
        assert is_reminder_due(reminder(weekday=0), datetime(2024, 6, 2, 12, 0))

    def test_select(self):
        due = select_due_reminders(
            [reminder(id="a"), reminder(id="b", weekday=2), reminder(id="c", frequency="daily")],
            SUNDAY_NOON_UTC,
        )
        assert [r["id"] for r in due] == ["a", "c"]


@pytest.fixture
def settings_stub():
    return SimpleNamespace(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user="",
        smtp_password="",
        smtp_from_email="reminders@sayso.app",
        smtp_from_name="SaySo",
        smtp_configured=lambda: True,
    )


class TestProcessDueReminders:

    def test_delivers_email_and_skips_sms(self, monkeypatch, settings_stub):
        storage = SqliteAdapter.from_url("sqlite://")
        household_id = storage.create_household("Nudge", "u1")["id"]
        storage.create_reminder(household_id, "u1", reminder(destination="parent@example.com"))
        storage.create_reminder(household_id, "u1", reminder(channel="sms", destination="+15551234567"))
        storage.create_reminder(household_id, "u1", reminder(weekday=4, destination="later@example.com"))
        storage.create_reminder(household_id, "u1", reminder(enabled=False, destination="off@example.com"))

        sent = []

        async def fake_send_email(**kwargs):
            sent.append(kwargs)
            return True

        monkeypatch.setattr(reminders, "send_email", fake_send_email)

        result = asyncio.run(process_due_reminders(storage, settings_stub, now=SUNDAY_NOON_UTC))
        assert result == {"processed": 2, "delivered": 1, "message": "Reminders processed"}
        assert [m["to_email"] for m in sent] == ["parent@example.com"]
        assert "Nudge" in sent[0]["body_html"]
        storage.engine.dispose()

    def test_no_smtp_means_no_delivery(self, monkeypatch, settings_stub):
        storage = SqliteAdapter.from_url("sqlite://")
        household_id = storage.create_household("Quiet", "u1")["id"]
        storage.create_reminder(household_id, "u1", reminder(frequency="daily", destination="p@example.com"))
        settings_stub.smtp_configured = lambda: False

        async def boom(**kwargs):
            raise AssertionError("should not send")

        monkeypatch.setattr(reminders, "send_email", boom)
        result = asyncio.run(process_due_reminders(storage, settings_stub, now=SUNDAY_NOON_UTC))
        assert result["processed"] == 1
        assert result["delivered"] == 0
        storage.engine.dispose()
