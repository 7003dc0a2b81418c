# services/api/core/spreads.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set

from core.layout_helpers import auto_assign_entries_to_slots, auto_assign_photos_to_slots
from core.layouts import get_layout, get_quote_layout_id_for_count
from models.layout import Layout


def used_content_ids(pages: Iterable[Dict[str, Any]], item_type: str, skip_page_id: Optional[str] = None) -> Set[str]:
    """Ids of `item_type` items placed on any page except `skip_page_id`."""
    used: Set[str] = set()
    for page in pages:
        if skip_page_id and page.get("id") == skip_page_id:
            continue
        for item in (page.get("left_content") or []) + (page.get("right_content") or []):
            if item.get("type") == item_type and item.get("id"):
                used.add(item["id"])
    return used


def _kept(items: Iterable[Dict[str, Any]], layout: Layout, item_type: str) -> List[Dict[str, Any]]:
    """Items whose slot survives, re-anchored to the new layout's geometry."""
    slots = {s.id: s for s in layout.slots}
    out: List[Dict[str, Any]] = []
    for item in items or []:
        slot = slots.get(item.get("slotId"))
        if item.get("type") != item_type or slot is None:
            continue
        out.append({**item, "pageSide": slot.page_side, "slotId": slot.id, "position": slot.position()})
    return out


def _fill_quotes(
    quote_layout: Optional[Layout],
    existing: List[Dict[str, Any]],
    entries: List[Dict[str, Any]],
    auto_fill: bool,
) -> List[Dict[str, Any]]:
    if quote_layout is None:
        return []
    kept = _kept(existing, quote_layout, "quote")
    if not auto_fill:
        return kept
    return auto_assign_entries_to_slots(quote_layout, kept, entries)


def apply_layout_to_spread(
    page: Dict[str, Any],
    layout_id: str,
    *,
    photos: List[Dict[str, Any]],
    entries: List[Dict[str, Any]],
    auto_fill: bool = True,
) -> Dict[str, Any]:
    """
    Page updates for switching a spread to `layout_id`.

    `photos` and `entries` are the candidates still free for this spread
    (anything already placed on other pages removed by the caller).
    Content is kept per slot id; items whose slot no longer exists are
    dropped.

    Raises:
        ValueError: unknown layout id
    """
    layout = get_layout(layout_id)
    if layout is None:
        raise ValueError(f"Unknown layout: {layout_id}")

    left = page.get("left_content") or []
    right = page.get("right_content") or []

    if layout.category == "cover":
        kept = _kept(left + right, layout, "photo")
        placed = auto_assign_photos_to_slots(layout, kept, photos) if auto_fill else kept
        return {
            "left_layout": layout.id,
            "right_layout": layout.id,
            "left_content": [i for i in placed if i.get("pageSide") == "left"],
            "right_content": [i for i in placed if i.get("pageSide") == "right"],
        }

    if layout.category == "photo":
        kept = _kept(left, layout, "photo")
        left_out = auto_assign_photos_to_slots(layout, kept, photos) if auto_fill else kept
        quote_layout_id = layout.paired_quote_layout_id or get_quote_layout_id_for_count(layout.quote_count)
        return {
            "left_layout": layout.id,
            "right_layout": quote_layout_id,
            "left_content": left_out,
            "right_content": _fill_quotes(get_layout(quote_layout_id), right, entries, auto_fill),
        }

    # quote layouts only touch the right page
    return {
        "right_layout": layout.id,
        "right_content": _fill_quotes(layout, right, entries, auto_fill),
    }
