"""
Bulk CSV import of entries.
"""
from __future__ import annotations

from logging import getLogger
from typing import Any, Dict

from fastapi import APIRouter, File, HTTPException, UploadFile

from core.csv_import import import_entries, parse_csv
from core.household import Household, Storage
from schemas.entry import CsvImportBody
from settings import get_settings

logger = getLogger(__name__)
router = APIRouter(prefix="/import", tags=["import"])


@router.post("/csv")
async def import_csv_rows(body: CsvImportBody, storage: Storage, ctx: Household) -> Dict[str, Any]:
    """Import rows the client already parsed from a spreadsheet."""
    return import_entries(
        storage,
        household_id=ctx.household_id,
        user_id=ctx.user_id,
        rows=[row.model_dump() for row in body.entries],
        max_length=get_settings().max_entry_length,
    )


@router.post("/csv/file")
async def import_csv_file(storage: Storage, ctx: Household, file: UploadFile = File(...)) -> Dict[str, Any]:
    """Upload a .csv file; rows are parsed server-side."""
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file")

    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")

    max_length = get_settings().max_entry_length
    try:
        parsed = parse_csv(content, max_length=max_length)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not parsed.rows:
        raise HTTPException(status_code=400, detail="No valid entries found in CSV")

    result = import_entries(
        storage,
        household_id=ctx.household_id,
        user_id=ctx.user_id,
        rows=parsed.rows,
        max_length=max_length,
    )
    logger.info(f"✓ CSV file {file.filename!r}: {parsed.skipped} rows skipped")
    return {**result, "skipped": parsed.skipped, "warnings": parsed.warnings}
