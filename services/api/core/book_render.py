# services/api/core/book_render.py
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from PIL import Image

from core.book_pdf import generate_book_pdf, generate_designed_book_pdf, page_has_design
from core.photos import load_images

logger = logging.getLogger(__name__)

ImageLoader = Callable[[Iterable[str], float], Awaitable[Dict[str, Image.Image]]]


class NoEntriesToRender(ValueError):
    pass


def download_url(book_id: str) -> str:
    return f"/books/{book_id}/download"


def write_book_pdf(output_dir: str, book_id: str, data: bytes) -> str:
    folder = Path(output_dir) / "books" / book_id
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / f"{int(time.time() * 1000)}.pdf"
    tmp = path.with_suffix(".tmp")
    tmp.write_bytes(data)
    tmp.replace(path)
    return str(path)


def remove_book_pdf(path: Optional[str]) -> None:
    """Best-effort cleanup of a previously rendered file."""
    if not path:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove old PDF {path}: {e}")


def uses_designed_pages(book: Dict[str, Any], pages: Iterable[Dict[str, Any]]) -> bool:
    return book.get("design_mode") == "manual" and any(page_has_design(p) for p in pages)


async def render_book(
    storage: Any,
    book: Dict[str, Any],
    *,
    output_dir: str,
    photo_timeout: float = 20.0,
    image_loader: Optional[ImageLoader] = None,
) -> Dict[str, Any]:
    """
    Render a book to disk and move it through rendering -> ready.
    Any failure leaves the book in `error`.

    Raises:
        NoEntriesToRender: nothing in the book's date range
    """
    book_id = book["id"]
    storage.update_book(book_id, {"status": "rendering"})

    try:
        entries = storage.list_entries_in_range(book["household_id"], book["date_start"], book["date_end"])
        if not entries:
            raise NoEntriesToRender("No entries found for date range")

        persons = storage.list_persons(book["household_id"])
        pages = storage.list_pages(book_id)

        if uses_designed_pages(book, pages):
            photos_by_id = {p["id"]: p for p in storage.list_photos(book_id)}
            placed_photo_ids = {
                item["id"]
                for page in pages
                for item in (page.get("left_content") or []) + (page.get("right_content") or [])
                if item.get("type") == "photo" and item.get("id") in photos_by_id
            }
            loader = image_loader or load_images
            images = await loader([photos_by_id[pid]["url"] for pid in placed_photo_ids], photo_timeout)
            entries_by_id = {e["id"]: e for e in storage.list_all_entries(book["household_id"])}
            pdf_bytes = generate_designed_book_pdf(
                book=book,
                pages=pages,
                entries_by_id=entries_by_id,
                persons=persons,
                photos_by_id=photos_by_id,
                images_by_url=images,
            )
        else:
            tags = storage.get_tags_for_entries([e["id"] for e in entries])
            pdf_bytes = generate_book_pdf(book=book, entries=entries, persons=persons, tags=tags)

        path = write_book_pdf(output_dir, book_id, pdf_bytes)
    except NoEntriesToRender:
        storage.update_book(book_id, {"status": "error"})
        raise
    except Exception as e:
        logger.error(f"✗ Render failed for book {book_id}: {e}", exc_info=True)
        storage.update_book(book_id, {"status": "error"})
        raise

    if book.get("pdf_path") != path:
        remove_book_pdf(book.get("pdf_path"))
    updated = storage.update_book(
        book_id,
        {"status": "ready", "pdf_url": download_url(book_id), "pdf_path": path},
    )
    logger.info(f"✓ Book {book_id} rendered ({len(pdf_bytes)} bytes) -> {path}")
    return updated
