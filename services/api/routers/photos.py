# services/api/routers/photos.py
from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from core.household import Household, Storage, load_book
from core.photos import probe_dimensions
from schemas.book import PhotoCreate
from settings import get_settings

logger = getLogger(__name__)

router = APIRouter(prefix="/books/{book_id}/photos", tags=["photos"])


@router.get("")
async def list_photos(book_id: str, storage: Storage, ctx: Household) -> List[Dict[str, Any]]:
    load_book(storage, ctx, book_id)
    return storage.list_photos(book_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_photo(book_id: str, body: PhotoCreate, storage: Storage, ctx: Household) -> Dict[str, Any]:
    """
    Register an already-uploaded photo by URL. With `probe`, missing
    dimensions are read from the image itself.
    """
    load_book(storage, ctx, book_id)

    url = (body.url or "").strip()
    filename = (body.filename or "").strip()
    if not url or not filename:
        raise HTTPException(status_code=400, detail="url and filename are required")

    width, height = body.width, body.height
    if body.probe and (width is None or height is None):
        size = await probe_dimensions(url, timeout=get_settings().photo_fetch_timeout)
        if size:
            width, height = size

    photo = storage.create_photo(book_id, url, filename, width=width, height=height)
    logger.info(f"✓ Photo {photo['id']} added to book {book_id} ({width}x{height})")
    return photo


@router.delete("")
async def delete_photo(
    book_id: str,
    storage: Storage,
    ctx: Household,
    photo_id: Optional[str] = Query(None),
) -> Dict[str, Any]:
    load_book(storage, ctx, book_id)
    if not photo_id:
        raise HTTPException(status_code=400, detail="photo_id is required")

    photo = storage.get_photo(photo_id)
    if not photo or photo.get("book_id") != book_id:
        raise HTTPException(status_code=404, detail="Photo not found")

    storage.delete_photo(photo_id)
    return {"success": True}
