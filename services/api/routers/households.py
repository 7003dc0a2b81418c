# services/api/routers/households.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, status

from core.household import CurrentUser, Household, Storage, require_owner
from core.phone import normalize_phone_number
from schemas.household import HouseholdCreate, HouseholdUpdate, PhoneNumberCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/households", tags=["households"])


def _household_name(raw: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Household name is required")
    return name


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_household(body: HouseholdCreate, storage: Storage, user_id: CurrentUser) -> Dict[str, Any]:
    household = storage.create_household(_household_name(body.name), user_id)
    logger.info(f"✓ Household {household['id']} created by {user_id}")
    return {**household, "role": "owner"}


@router.get("/current")
async def get_current_household(storage: Storage, ctx: Household) -> Dict[str, Any]:
    household = storage.get_household(ctx.household_id)
    if not household:
        raise HTTPException(status_code=404, detail="No household found")
    return {**household, "role": ctx.role}


@router.patch("/current")
async def update_current_household(body: HouseholdUpdate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    require_owner(ctx)
    household = storage.update_household(ctx.household_id, {"name": _household_name(body.name)})
    if not household:
        raise HTTPException(status_code=404, detail="No household found")
    return {**household, "role": ctx.role}


# ====== Linked phone numbers (SMS capture) ======

@router.get("/current/phone-numbers")
async def list_phone_numbers(storage: Storage, ctx: Household) -> List[Dict[str, Any]]:
    return storage.list_phone_numbers(ctx.household_id)


@router.post("/current/phone-numbers", status_code=status.HTTP_201_CREATED)
async def add_phone_number(body: PhoneNumberCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    phone = normalize_phone_number(body.phone_number)
    if not phone:
        raise HTTPException(status_code=400, detail="Invalid phone number")
    return storage.add_phone_number(ctx.household_id, ctx.user_id, phone)


@router.delete("/current/phone-numbers/{phone_id}")
async def delete_phone_number(phone_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    owned = {p["id"] for p in storage.list_phone_numbers(ctx.household_id)}
    if phone_id not in owned:
        raise HTTPException(status_code=404, detail="Phone number not found")
    storage.delete_phone_number(phone_id)
    return {"success": True}
