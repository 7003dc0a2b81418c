"""
Book endpoints: CRUD, auto-generation from entries, rendering and download.
"""
from __future__ import annotations

import io
import re
from datetime import date
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from core.auto_generate import NoEntriesError, regenerate_book_from_entries
from core.book_render import NoEntriesToRender, remove_book_pdf, render_book
from core.household import Household, Storage, load_book
from core.validation import validate_date_range, validate_page_count
from schemas.book import AutoGenerateBody, BookCreate, BookUpdate
from settings import get_settings

logger = getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


def _public(book: Dict[str, Any]) -> Dict[str, Any]:
    """Drop server-side file paths from responses."""
    return {k: v for k, v in book.items() if k != "pdf_path"}


def _download_name(book: Dict[str, Any]) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "-", (book.get("title") or "sayso-book")).strip("-").lower()
    return f"{slug or 'sayso-book'}.pdf"


@router.get("")
async def list_books(storage: Storage, ctx: Household) -> List[Dict[str, Any]]:
    return [_public(b) for b in storage.list_books(ctx.household_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(body: BookCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    settings = get_settings()
    validate_date_range(body.date_start, body.date_end)

    page_count = body.page_count if body.page_count is not None else settings.default_book_page_count
    validate_page_count(page_count, settings.get_book_page_counts())

    data = body.model_dump(exclude={"page_count"})
    data.update(status="draft", design_mode="manual")

    book = storage.create_book(ctx.household_id, data, page_count=page_count)
    logger.info(f"✓ Book {book['id']} created with {page_count} pages")
    return _public(book)


@router.post("/auto-generate")
async def auto_generate_year_book(storage: Storage, ctx: Household, body: Optional[AutoGenerateBody] = None) -> Dict[str, Any]:
    """Build (or rebuild) the household's calendar-year book in auto mode."""
    year = (body.year if body and body.year else None) or date.today().year
    date_start, date_end = date(year, 1, 1), date(year, 12, 31)
    fields = {"title": f"{year} Family Quotes", "status": "draft", "design_mode": "auto"}

    book = storage.find_book_by_range(ctx.household_id, date_start, date_end)
    if book:
        book = storage.update_book(book["id"], fields)
    else:
        book = storage.create_book(
            ctx.household_id,
            {**fields, "date_start": date_start, "date_end": date_end},
        )

    try:
        _, pages = regenerate_book_from_entries(
            storage,
            book_id=book["id"],
            household_id=ctx.household_id,
            date_start=date_start,
            date_end=date_end,
        )
    except NoEntriesError:
        raise HTTPException(status_code=400, detail="No entries found for that year.")

    return {"book": _public(book), "pages": pages}


@router.get("/{book_id}")
async def get_book(book_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    return _public(load_book(storage, ctx, book_id))


@router.patch("/{book_id}")
async def update_book(book_id: str, body: BookUpdate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    load_book(storage, ctx, book_id)
    updates = body.model_dump(exclude_unset=True)
    for key in ("status", "design_mode", "theme", "cover_style"):
        if key in updates and updates[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    return _public(storage.update_book(book_id, updates))


@router.delete("/{book_id}")
async def delete_book(book_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    book = load_book(storage, ctx, book_id)
    remove_book_pdf(book.get("pdf_path"))
    storage.delete_book(book_id)
    logger.info(f"✓ Book {book_id} deleted")
    return {"success": True}


@router.post("/{book_id}/auto-generate")
async def auto_generate_book(book_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    book = load_book(storage, ctx, book_id)
    if not book.get("date_start") or not book.get("date_end"):
        raise HTTPException(status_code=400, detail="Book is missing a date range")

    try:
        _, pages = regenerate_book_from_entries(
            storage,
            book_id=book_id,
            household_id=ctx.household_id,
            date_start=book["date_start"],
            date_end=book["date_end"],
        )
    except NoEntriesError:
        raise HTTPException(status_code=400, detail="No entries found for that date range.")

    updated = storage.update_book(book_id, {"design_mode": "auto", "status": "draft"})
    return {"book": _public(updated), "pages": pages}


@router.post("/{book_id}/render")
async def render(book_id: str, storage: Storage, ctx: Household) -> Dict[str, Any]:
    book = load_book(storage, ctx, book_id)
    if not book.get("date_start") or not book.get("date_end"):
        raise HTTPException(status_code=400, detail="Book is missing a date range")

    settings = get_settings()
    try:
        updated = await render_book(
            storage,
            book,
            output_dir=settings.pdf_output_dir,
            photo_timeout=settings.photo_fetch_timeout,
        )
    except NoEntriesToRender as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to render book: {e}")

    return {"success": True, "pdf_url": updated.get("pdf_url"), "book": _public(updated)}


@router.get("/{book_id}/download")
async def download(book_id: str, storage: Storage, ctx: Household):
    book = load_book(storage, ctx, book_id)
    path = book.get("pdf_path")
    if not path or not Path(path).is_file():
        raise HTTPException(status_code=404, detail="PDF not available")

    return StreamingResponse(
        io.BytesIO(Path(path).read_bytes()),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_download_name(book)}"'},
    )
