# services/api/routers/persons.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, status

from core.household import Household, Storage, load_person
from core.people import decorate_person
from schemas.household import PersonCreate, PersonUpdate

router = APIRouter(prefix="/persons", tags=["persons"])


@router.get("")
async def list_persons(storage: Storage, ctx: Household) -> List[Dict[str, Any]]:
    return [decorate_person(p) for p in storage.list_persons(ctx.household_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_person(body: PersonCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    display_name = (body.display_name or "").strip()
    if not display_name:
        raise HTTPException(status_code=400, detail="Display name is required")

    person = storage.create_person(
        ctx.household_id,
        display_name,
        birthdate=body.birthdate,
        avatar_url=body.avatar_url,
    )
    return decorate_person(person)


@router.get("/{person_id}")
async def get_person(person_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    return decorate_person(load_person(storage, ctx, person_id))


@router.patch("/{person_id}")
async def update_person(person_id: str, body: PersonUpdate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    load_person(storage, ctx, person_id)
    updates = body.model_dump(exclude_unset=True)
    if "display_name" in updates:
        updates["display_name"] = (updates["display_name"] or "").strip()
        if not updates["display_name"]:
            raise HTTPException(status_code=400, detail="Display name is required")
    return decorate_person(storage.update_person(person_id, updates))


@router.delete("/{person_id}")
async def delete_person(person_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    load_person(storage, ctx, person_id)
    storage.delete_person(person_id)
    return {"success": True}
