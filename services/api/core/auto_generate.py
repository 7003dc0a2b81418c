# services/api/core/auto_generate.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Tuple

from core.layouts import DEFAULT_INTERIOR_QUOTE_LAYOUT_ID

logger = logging.getLogger(__name__)


class NoEntriesError(ValueError):
    """The household has nothing to put in the book for that range."""


def build_auto_pages(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Page 1 is a blank cover, then one quote page per entry in order.
    """
    pages: List[Dict[str, Any]] = [
        {
            "page_number": 1,
            "left_layout": None,
            "right_layout": None,
            "left_content": [],
            "right_content": [],
        }
    ]
    for index, entry in enumerate(entries):
        pages.append(
            {
                "page_number": index + 2,
                "left_layout": DEFAULT_INTERIOR_QUOTE_LAYOUT_ID,
                "right_layout": None,
                "left_content": [{"id": entry["id"], "type": "quote"}],
                "right_content": [],
            }
        )
    return pages


def regenerate_book_from_entries(
    storage: Any,
    *,
    book_id: str,
    household_id: str,
    date_start: date,
    date_end: date,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Rebuild a book's pages and entry list from the household's entries in
    [date_start, date_end], oldest first.

    Raises:
        NoEntriesError: nothing in range; the book is left untouched
    """
    entries = storage.list_entries_in_range(household_id, date_start, date_end)
    if not entries:
        raise NoEntriesError("No entries found for that date range.")

    pages = storage.replace_pages(book_id, build_auto_pages(entries))
    storage.replace_book_entries(book_id, [e["id"] for e in entries])

    logger.info(f"✓ Book {book_id} regenerated: {len(entries)} entries, {len(pages)} pages")
    return entries, pages
