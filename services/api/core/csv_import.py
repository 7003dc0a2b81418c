# services/api/core/csv_import.py
"""
Bulk import of quotes from a spreadsheet export.

Expected columns (header row, any order, case-insensitive):
    text (required), said_by, date, tags, type, notes
"""
from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from core.validation import coerce_entry_type, normalize_tags

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 500

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
)

_TAG_SPLIT = re.compile(r"[,;]")


@dataclass
class CsvParseResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    skipped: int = 0
    warnings: List[str] = field(default_factory=list)


def parse_import_date(value: Optional[str], today: Optional[date] = None) -> date:
    """Best-effort date parse; anything unreadable becomes today."""
    fallback = today or date.today()
    raw = (value or "").strip()
    if not raw:
        return fallback

    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    logger.info(f"Unparseable import date {raw!r}, using {fallback.isoformat()}")
    return fallback


def split_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return normalize_tags(value)
    return normalize_tags(_TAG_SPLIT.split(str(value)))


def parse_csv(content: str, max_length: int = MAX_TEXT_LENGTH) -> CsvParseResult:
    """
    Parse CSV text into import rows.

    Raises:
        ValueError: no data rows, or no `text` column
    """
    content = (content or "").lstrip("\ufeff")
    reader = csv.reader(io.StringIO(content))
    all_rows = [r for r in reader if any(cell.strip() for cell in r)]
    if len(all_rows) < 2:
        raise ValueError("CSV must have a header row and at least one data row")

    headers = [h.strip().lower() for h in all_rows[0]]
    if "text" not in headers:
        raise ValueError('CSV must have a "text" column')

    result = CsvParseResult()
    for line_no, cells in enumerate(all_rows[1:], start=2):
        record = {
            headers[i]: (cells[i].strip() if i < len(cells) else "")
            for i in range(len(headers))
        }
        text = record.get("text", "")
        if not text:
            result.skipped += 1
            continue
        if len(text) > max_length:
            result.skipped += 1
            result.warnings.append(f"Row {line_no}: Text exceeds {max_length} characters, skipping")
            continue

        result.rows.append(
            {
                "text": text,
                "said_by": record.get("said_by") or None,
                "date": record.get("date") or None,
                "tags": split_tags(record.get("tags")),
                "type": record.get("type") or None,
                "notes": record.get("notes") or None,
            }
        )

    return result


def import_entries(
    storage: Any,
    *,
    household_id: str,
    user_id: str,
    rows: List[Dict[str, Any]],
    max_length: int = MAX_TEXT_LENGTH,
    today: Optional[date] = None,
) -> Dict[str, int]:
    """
    Create one entry per row. Speakers are matched to persons by
    case-insensitive display name and created when missing. A failing row
    is counted in `errors` and the batch keeps going.
    """
    persons_by_name: Dict[str, str] = {
        (p.get("display_name") or "").strip().lower(): p["id"]
        for p in storage.list_persons(household_id)
    }

    created = 0
    errors = 0
    for row in rows:
        text = (row.get("text") or "").strip()
        if not text or len(text) > max_length:
            errors += 1
            continue

        try:
            said_by = None
            speaker = (row.get("said_by") or "").strip()
            if speaker:
                key = speaker.lower()
                said_by = persons_by_name.get(key)
                if said_by is None:
                    person = storage.create_person(household_id, speaker)
                    said_by = person["id"]
                    persons_by_name[key] = said_by

            storage.create_entry(
                household_id=household_id,
                text=text,
                said_by=said_by,
                captured_by=user_id,
                entry_type=coerce_entry_type(row.get("type")),
                source="import",
                visibility="household",
                entry_date=parse_import_date(row.get("date"), today=today),
                tags=split_tags(row.get("tags")),
            )
            created += 1
        except Exception as e:
            logger.error(f"✗ Import row failed: {e}")
            errors += 1

    logger.info(f"✓ CSV import: {created} created, {errors} errors, {len(rows)} total")
    return {"created": created, "errors": errors, "total": len(rows)}
