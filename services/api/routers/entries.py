"""
Entry capture and browsing endpoints.
"""
from __future__ import annotations

from datetime import date
from logging import getLogger
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, status

from core.household import Household, HouseholdContext, Storage, load_entry
from core.validation import normalize_tags, validate_entry_text
from schemas.entry import AttachmentCreate, EntryCreate, EntryUpdate
from settings import get_settings

logger = getLogger(__name__)
router = APIRouter(prefix="/entries", tags=["entries"])


def _check_said_by(storage: Any, ctx: HouseholdContext, person_id: Optional[str]) -> None:
    if not person_id:
        return
    person = storage.get_person(person_id)
    if not person or person.get("household_id") != ctx.household_id:
        raise HTTPException(status_code=400, detail="said_by must be a person in this household")


@router.get("")
async def list_entries(
    storage: Storage,
    ctx: Household,
    person_id: Optional[str] = Query(None, description="Only entries said by this person"),
    tag: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Case-insensitive text search"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
) -> Dict[str, Any]:
    limit = get_settings().entries_page_size
    rows, count = storage.list_entries(
        ctx.household_id,
        said_by=person_id,
        tag=(tag or "").strip() or None,
        q=(q or "").strip() or None,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {"data": rows, "count": count, "page": page, "limit": limit}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_entry(body: EntryCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    text = validate_entry_text(body.text, get_settings().max_entry_length)
    _check_said_by(storage, ctx, body.said_by)

    entry = storage.create_entry(
        household_id=ctx.household_id,
        text=text,
        said_by=body.said_by,
        captured_by=ctx.user_id,
        entry_type=body.entry_type,
        source="app",
        visibility=body.visibility,
        entry_date=body.entry_date or date.today(),
        tags=normalize_tags(body.tags),
    )
    logger.info(f"✓ Entry {entry['id']} captured in household {ctx.household_id}")
    return entry


@router.get("/{entry_id}")
async def get_entry(entry_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    return load_entry(storage, ctx, entry_id)


@router.patch("/{entry_id}")
async def update_entry(entry_id: str, body: EntryUpdate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    load_entry(storage, ctx, entry_id)

    updates = body.model_dump(exclude_unset=True, exclude={"tags"})
    if "text" in updates:
        updates["text"] = validate_entry_text(updates["text"], get_settings().max_entry_length)
    if "said_by" in updates:
        _check_said_by(storage, ctx, updates["said_by"])
    for key in ("entry_type", "visibility", "entry_date"):
        if key in updates and updates[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")

    tags = normalize_tags(body.tags) if body.tags is not None else None
    return storage.update_entry(entry_id, updates, tags=tags)


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    load_entry(storage, ctx, entry_id)
    storage.delete_entry(entry_id)
    return {"success": True}


@router.post("/{entry_id}/attachments", status_code=status.HTTP_201_CREATED)
async def add_attachment(entry_id: str, body: AttachmentCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    load_entry(storage, ctx, entry_id)
    return storage.create_attachment(
        entry_id,
        body.kind,
        body.url,
        width=body.width,
        height=body.height,
        duration_seconds=body.duration_seconds,
    )
