# services/api/routers/pages.py
from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from core.household import Household, Storage, load_book
from core.layouts import get_layout
from core.spreads import apply_layout_to_spread, used_content_ids
from schemas.book import ApplyLayoutBody, PageUpdate, PageUpsert

logger = getLogger(__name__)

router = APIRouter(
    prefix="/books/{book_id}/pages",
    tags=["pages"],
)


def _check_layouts(fields: Dict[str, Any]) -> None:
    for key in ("left_layout", "right_layout"):
        layout_id = fields.get(key)
        if layout_id and get_layout(layout_id) is None:
            raise HTTPException(status_code=400, detail=f"Unknown layout: {layout_id}")


def _load_page(storage: Any, book_id: str, page_id: Optional[str]) -> Dict[str, Any]:
    if not page_id:
        raise HTTPException(status_code=400, detail="page_id is required")
    page = storage.get_page(page_id)
    if not page or page.get("book_id") != book_id:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@router.get("")
async def list_pages(book_id: str, storage: Storage, ctx: Household) -> List[Dict[str, Any]]:
    load_book(storage, ctx, book_id)
    return storage.list_pages(book_id)


@router.post("")
async def upsert_page(book_id: str, body: PageUpsert, storage: Storage, ctx: Household) -> Dict[str, Any]:
    """Create or replace the spread at `page_number`."""
    load_book(storage, ctx, book_id)
    if body.page_number is None:
        raise HTTPException(status_code=400, detail="page_number is required")

    fields = body.content_fields()
    _check_layouts(fields)
    return storage.upsert_page(book_id, body.page_number, fields)


@router.put("")
async def update_page(book_id: str, body: PageUpdate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    """Partial update of one spread, addressed by `page_id`."""
    load_book(storage, ctx, book_id)
    _load_page(storage, book_id, body.page_id)

    updates = body.content_fields()
    if body.page_number is not None:
        updates["page_number"] = body.page_number
    _check_layouts(updates)
    return storage.update_page(body.page_id, updates)


@router.delete("")
async def delete_page(
    book_id: str,
    storage: Storage,
    ctx: Household,
    page_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    load_book(storage, ctx, book_id)
    _load_page(storage, book_id, page_id)
    storage.delete_page(page_id)
    return {"success": True}


@router.post("/{page_id}/layout")
async def apply_layout(
    book_id: str,
    page_id: str,
    body: ApplyLayoutBody,
    storage: Storage,
    ctx: Household,
) -> Dict[str, Any]:
    """
    Switch a spread to another layout. With auto_fill, empty slots get the
    book's photos and the range's quotes not already placed elsewhere.
    """
    book = load_book(storage, ctx, book_id)
    page = _load_page(storage, book_id, page_id)
    pages = storage.list_pages(book_id)

    used_photos = used_content_ids(pages, "photo", skip_page_id=page_id)
    used_quotes = used_content_ids(pages, "quote", skip_page_id=page_id)

    photos = [p for p in storage.list_photos(book_id) if p["id"] not in used_photos]
    entries: List[Dict[str, Any]] = []
    if book.get("date_start") and book.get("date_end"):
        entries = [
            e for e in storage.list_entries_in_range(ctx.household_id, book["date_start"], book["date_end"])
            if e["id"] not in used_quotes
        ]

    try:
        updates = apply_layout_to_spread(
            page,
            body.layout_id,
            photos=photos,
            entries=entries,
            auto_fill=body.auto_fill,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"✓ Page {page_id}: layout {body.layout_id} applied")
    return storage.update_page(page_id, updates)
