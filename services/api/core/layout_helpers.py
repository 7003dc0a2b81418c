# services/api/core/layout_helpers.py
"""
Greedy assignment of book photos and entries into layout slots.

Content items are plain dicts so they can be stored as-is in the
`left_content` / `right_content` JSON columns:

    {"id": ..., "type": "photo"|"quote", "pageSide": ..., "slotId": ...,
     "position": {"x": .., "y": .., "width": .., "height": ..}}
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set

from models.layout import Layout, LayoutSlot

SQUARE = "square"
LANDSCAPE = "landscape"
PORTRAIT = "portrait"


def get_orientation(width: Optional[float], height: Optional[float]) -> str:
    """
    Orientation of a WxH box. Unknown or zero dimensions count as square.
    """
    if not width or not height or width == height:
        return SQUARE
    return LANDSCAPE if width > height else PORTRAIT


def get_photo_orientation(photo: Dict[str, Any]) -> str:
    return get_orientation(photo.get("width"), photo.get("height"))


def get_slot_orientation(slot: LayoutSlot) -> str:
    return get_orientation(slot.width_pct, slot.height_pct)


def pick_photo_for_slot(
    slot: LayoutSlot,
    candidates: Iterable[Dict[str, Any]],
    used: Set[str],
) -> Optional[Dict[str, Any]]:
    """
    First unused photo whose orientation matches the slot; a square slot
    accepts any non-square photo. Falls back to the first unused photo.
    """
    wanted = get_slot_orientation(slot)
    fallback: Optional[Dict[str, Any]] = None

    for photo in candidates:
        if photo.get("id") in used:
            continue
        if fallback is None:
            fallback = photo

        orientation = get_photo_orientation(photo)
        if orientation == wanted:
            return photo
        if wanted == SQUARE and orientation in (PORTRAIT, LANDSCAPE):
            return photo

    return fallback


def _content_item(item_id: str, item_type: str, slot: LayoutSlot) -> Dict[str, Any]:
    return {
        "id": item_id,
        "type": item_type,
        "pageSide": slot.page_side,
        "slotId": slot.id,
        "position": slot.position(),
    }


def _existing_by_slot(existing_content: Iterable[Dict[str, Any]], item_type: str) -> Dict[str, Dict[str, Any]]:
    by_slot: Dict[str, Dict[str, Any]] = {}
    for item in existing_content or []:
        if item.get("type") != item_type:
            continue
        slot_id = item.get("slotId")
        if slot_id and slot_id not in by_slot:
            by_slot[slot_id] = item
    return by_slot


def auto_assign_photos_to_slots(
    layout: Layout,
    existing_content: List[Dict[str, Any]],
    available_photos: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Fill the layout's photo slots. A slot that already holds a photo keeps
    it; the rest take the best orientation match not used anywhere in
    `existing_content`. Slots with nothing left to place are omitted.
    """
    existing_content = existing_content or []
    existing = _existing_by_slot(existing_content, "photo")
    used: Set[str] = {
        item["id"] for item in existing_content
        if item.get("type") == "photo" and item.get("id")
    }

    out: List[Dict[str, Any]] = []
    for slot in layout.photo_slots:
        kept = existing.get(slot.id)
        if kept is not None:
            out.append(dict(kept))
            continue

        photo = pick_photo_for_slot(slot, available_photos, used)
        if photo is None:
            continue
        used.add(photo["id"])
        out.append(_content_item(photo["id"], "photo", slot))

    return out


def auto_assign_entries_to_slots(
    layout: Layout,
    existing_content: List[Dict[str, Any]],
    available_entries: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Fill the layout's quote slots with entries in list order, skipping
    entries already placed in `existing_content`.
    """
    existing_content = existing_content or []
    existing = _existing_by_slot(existing_content, "quote")
    used: Set[str] = {
        item["id"] for item in existing_content
        if item.get("type") == "quote" and item.get("id")
    }

    out: List[Dict[str, Any]] = []
    cursor = 0
    for slot in layout.quote_slots:
        kept = existing.get(slot.id)
        if kept is not None:
            out.append(dict(kept))
            continue

        while cursor < len(available_entries) and available_entries[cursor].get("id") in used:
            cursor += 1
        if cursor >= len(available_entries):
            continue

        entry = available_entries[cursor]
        cursor += 1
        used.add(entry["id"])
        out.append(_content_item(entry["id"], "quote", slot))

    return out
