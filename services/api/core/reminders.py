# services/api/core/reminders.py
"""
"Capture a quote this week" nudges, fired by an external cron hitting
GET /cron/reminders.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.email_sender import send_email

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "What did they say this week?"


def local_now(now: datetime, tz: Optional[str]) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        return now.astimezone(ZoneInfo(tz or "UTC"))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown reminder timezone {tz!r}, using UTC")
        return now.astimezone(timezone.utc)


def sunday_based_weekday(moment: datetime) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def is_reminder_due(reminder: Dict[str, Any], now: datetime) -> bool:
    if not reminder.get("enabled"):
        return False

    local = local_now(now, reminder.get("tz"))
    frequency = reminder.get("frequency") or "weekly"
    if frequency == "daily":
        return True
    if frequency == "weekly":
        weekday = reminder.get("weekday")
        return weekday is not None and int(weekday) == sunday_based_weekday(local)
    if frequency == "monthly":
        return local.day == 1
    return False


def select_due_reminders(reminders: List[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
    return [r for r in reminders if is_reminder_due(r, now)]


def _reminder_body(household_name: str) -> str:
    return (
        f"<p>Hi there,</p>"
        f"<p>Anything funny, sweet or wise said around {household_name} lately? "
        f"Take a minute to save it in SaySo before it slips away.</p>"
        f"<p>- The SaySo team</p>"
    )


async def deliver_reminder(reminder: Dict[str, Any], *, household_name: str, settings: Any) -> bool:
    """
    Send one reminder. Email goes out over SMTP when it is configured;
    text-message delivery is not wired up, so SMS reminders are only logged.
    """
    destination = (reminder.get("destination") or "").strip()
    if not destination:
        logger.warning(f"Reminder {reminder.get('id')} has no destination, skipping")
        return False

    if reminder.get("channel") == "sms":
        logger.info(f"SMS reminder {reminder.get('id')} for {destination} not sent (no SMS provider)")
        return False

    if not settings.smtp_configured():
        logger.warning(f"SMTP not configured, reminder {reminder.get('id')} not sent")
        return False

    return await send_email(
        to_email=destination,
        subject=REMINDER_SUBJECT,
        body_html=_reminder_body(household_name),
        body_text="Anything worth remembering lately? Save it in SaySo.",
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
        from_name=settings.smtp_from_name,
    )


async def process_due_reminders(storage: Any, settings: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    due = select_due_reminders(storage.list_enabled_reminders(), now)

    delivered = 0
    for reminder in due:
        household = storage.get_household(reminder["household_id"]) or {}
        if await deliver_reminder(reminder, household_name=household.get("name") or "your home", settings=settings):
            delivered += 1

    logger.info(f"Reminders processed: {len(due)} due, {delivered} delivered")
    return {"processed": len(due), "delivered": delivered, "message": "Reminders processed"}
