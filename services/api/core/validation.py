"""
Validation utilities for SaySo.
Ensures data integrity and provides clear error messages.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import HTTPException

from models.enums import ENTRY_TYPES


def validate_entry_text(text: Optional[str], max_length: int = 500) -> str:
    """
    Trim and validate entry text.

    Rules:
    - Must not be empty after trimming
    - Must be at most `max_length` characters

    Raises:
        HTTPException: 400 if validation fails
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise HTTPException(status_code=400, detail="Text is required")
    if len(trimmed) > max_length:
        raise HTTPException(
            status_code=400,
            detail=f"Text must be {max_length} characters or less"
        )
    return trimmed


def normalize_tags(tags: Optional[Iterable[Any]]) -> List[str]:
    """
    Trim, lowercase and de-duplicate tags, keeping first-seen order.
    Empty tags are dropped.
    """
    out: List[str] = []
    seen = set()
    for raw in tags or []:
        if raw is None:
            continue
        tag = str(raw).strip().lower()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    return out


def validate_date_range(date_start: Optional[date], date_end: Optional[date]) -> None:
    """
    Book date ranges need both ends and must not run backwards.

    Raises:
        HTTPException: 400 if validation fails
    """
    if date_start is None or date_end is None:
        raise HTTPException(
            status_code=400,
            detail="date_start and date_end are required"
        )
    if date_start > date_end:
        raise HTTPException(
            status_code=400,
            detail=f"date_start ({date_start}) must not be after date_end ({date_end})"
        )


def validate_page_count(page_count: int, allowed: List[int]) -> None:
    if page_count not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"page_count must be one of {', '.join(str(c) for c in allowed)}"
        )


def validate_timezone(tz: str) -> str:
    """Return the IANA name if it resolves, else raise 400."""
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {tz}")
    return tz


def coerce_entry_type(entry_type: str | None) -> str:
    """
    Coerce a free-form type (e.g. from a CSV column) to an entry type.
    Unknown values become "quote".
    """
    if not entry_type:
        return "quote"

    lowered = entry_type.lower().strip()
    if lowered in ENTRY_TYPES:
        return lowered

    return "quote"
