# services/api/routers/reminders.py
from __future__ import annotations

import secrets
from logging import getLogger
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Header, HTTPException, status

from core.household import Household, HouseholdContext, Storage
from core.reminders import process_due_reminders
from core.validation import validate_timezone
from schemas.messaging import ReminderCreate, ReminderUpdate
from settings import get_settings

logger = getLogger(__name__)

router = APIRouter(tags=["reminders"])


def _load_reminder(storage: Any, ctx: HouseholdContext, reminder_id: str) -> Dict[str, Any]:
    reminder = storage.get_reminder(reminder_id)
    if (
        not reminder
        or reminder.get("household_id") != ctx.household_id
        or reminder.get("user_id") != ctx.user_id
    ):
        raise HTTPException(status_code=404, detail="Reminder not found")
    return reminder


@router.get("/reminders")
async def list_reminders(storage: Storage, ctx: Household) -> List[Dict[str, Any]]:
    return storage.list_reminders(ctx.household_id, user_id=ctx.user_id)


@router.post("/reminders", status_code=status.HTTP_201_CREATED)
async def create_reminder(body: ReminderCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    data = body.model_dump()
    data["tz"] = validate_timezone(body.tz)
    return storage.create_reminder(ctx.household_id, ctx.user_id, data)


@router.patch("/reminders/{reminder_id}")
async def update_reminder(reminder_id: str, body: ReminderUpdate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    current = _load_reminder(storage, ctx, reminder_id)

    updates = body.model_dump(exclude_unset=True)
    for key in ("channel", "frequency", "tz", "enabled"):
        if key in updates and updates[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    if "tz" in updates:
        validate_timezone(updates["tz"])

    frequency = updates.get("frequency", current.get("frequency"))
    weekday = updates["weekday"] if "weekday" in updates else current.get("weekday")
    if frequency == "weekly" and weekday is None:
        raise HTTPException(status_code=400, detail="weekday is required for weekly reminders")

    return storage.update_reminder(reminder_id, updates)


@router.delete("/reminders/{reminder_id}")
async def delete_reminder(reminder_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    _load_reminder(storage, ctx, reminder_id)
    storage.delete_reminder(reminder_id)
    return {"success": True}


@router.get("/cron/reminders")
async def run_reminders(
    storage: Storage,
    authorization: Annotated[Optional[str], Header()] = None,
) -> Dict[str, Any]:
    """Called by the scheduler with `Authorization: Bearer <CRON_SECRET>`."""
    settings = get_settings()
    expected = f"Bearer {settings.cron_secret}"
    if not settings.cron_secret or not secrets.compare_digest(authorization or "", expected):
        raise HTTPException(status_code=401, detail="Unauthorized")

    return await process_due_reminders(storage, settings)
