# services/api/core/export.py
"""
Household data export: a full JSON snapshot and an Excel sheet of entries.
"""
from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ENTRY_COLUMNS = [
    ("Date", 14),
    ("Said by", 20),
    ("Type", 12),
    ("Source", 10),
    ("Text", 80),
    ("Tags", 30),
]


def build_export_payload(storage: Any, household_id: str) -> Dict[str, Any]:
    household = storage.get_household(household_id)
    persons = storage.list_persons(household_id)
    entries = storage.list_all_entries(household_id)
    entry_ids = [e["id"] for e in entries]
    books = storage.list_books(household_id)

    return {
        "household": household,
        "persons": persons,
        "entries": [{k: v for k, v in e.items() if k != "tags"} for e in entries],
        "books": [{k: v for k, v in b.items() if k != "pdf_path"} for b in books],
        "book_entries": [row for b in books for row in storage.list_book_entries(b["id"])],
        "tags": storage.list_entry_tags(entry_ids),
        "attachments": storage.list_attachments(entry_ids),
        "exported_at": datetime.now(timezone.utc).isoformat(),
    }


def export_filename(ext: str) -> str:
    return f"sayso-export-{int(datetime.now(timezone.utc).timestamp() * 1000)}.{ext}"


def build_entries_workbook(entries: List[Dict[str, Any]], persons: List[Dict[str, Any]]) -> bytes:
    """One row per entry, oldest first, with a bold frozen header."""
    names = {p["id"]: p.get("display_name") or "" for p in persons}

    wb = Workbook()
    ws = wb.active
    ws.title = "Entries"

    header_fill = PatternFill(start_color="F5F0E6", end_color="F5F0E6", fill_type="solid")
    for col, (label, width) in enumerate(ENTRY_COLUMNS, start=1):
        cell = ws.cell(row=1, column=col, value=label)
        cell.font = Font(bold=True)
        cell.fill = header_fill
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.freeze_panes = "A2"

    for row, entry in enumerate(entries, start=2):
        ws.cell(row=row, column=1, value=entry.get("entry_date") or "")
        ws.cell(row=row, column=2, value=names.get(entry.get("said_by"), ""))
        ws.cell(row=row, column=3, value=entry.get("entry_type") or "")
        ws.cell(row=row, column=4, value=entry.get("source") or "")
        text_cell = ws.cell(row=row, column=5, value=entry.get("text") or "")
        text_cell.alignment = Alignment(wrap_text=True, vertical="top")
        ws.cell(row=row, column=6, value=", ".join(entry.get("tags") or []))

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
