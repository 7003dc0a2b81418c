# services/api/core/household.py
"""
Request-scoped identity and household ownership checks.

Sign-in lives upstream; the gateway forwards the caller's user id in the
X-User-Id header and every household-scoped route resolves it here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, Header, HTTPException

from main import get_storage_adapter  # DI helper from main

Storage = Annotated[object, Depends(get_storage_adapter)]


@dataclass(frozen=True)
class HouseholdContext:
    user_id: str
    household_id: str
    role: str

    @property
    def is_owner(self) -> bool:
        return self.role == "owner"


def get_current_user_id(x_user_id: Annotated[Optional[str], Header()] = None) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


CurrentUser = Annotated[str, Depends(get_current_user_id)]


def get_household_context(storage: Storage, user_id: CurrentUser) -> HouseholdContext:
    membership = storage.get_membership(user_id)
    if not membership:
        raise HTTPException(status_code=404, detail="No household found")
    return HouseholdContext(
        user_id=user_id,
        household_id=membership["household_id"],
        role=membership.get("role") or "member",
    )


Household = Annotated[HouseholdContext, Depends(get_household_context)]


def require_owner(ctx: HouseholdContext) -> None:
    if not ctx.is_owner:
        raise HTTPException(status_code=403, detail="Only the household owner can do this")


def load_book(storage: Any, ctx: HouseholdContext, book_id: str) -> Dict[str, Any]:
    """Book row if it belongs to the caller's household, else 404."""
    book = storage.get_book(book_id)
    if not book or book.get("household_id") != ctx.household_id:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


def load_entry(storage: Any, ctx: HouseholdContext, entry_id: str) -> Dict[str, Any]:
    entry = storage.get_entry(entry_id)
    if not entry or entry.get("household_id") != ctx.household_id:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


def load_person(storage: Any, ctx: HouseholdContext, person_id: str) -> Dict[str, Any]:
    person = storage.get_person(person_id)
    if not person or person.get("household_id") != ctx.household_id:
        raise HTTPException(status_code=404, detail="Person not found")
    return person
