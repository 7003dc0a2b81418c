# services/api/routers/export.py
from __future__ import annotations

import io
import json
from logging import getLogger

from fastapi import APIRouter
from fastapi.responses import Response, StreamingResponse

from core.export import XLSX_MEDIA_TYPE, build_entries_workbook, build_export_payload, export_filename
from core.household import Household, Storage, require_owner

logger = getLogger(__name__)

router = APIRouter(prefix="/export", tags=["export"])


@router.get("")
async def export_household(storage: Storage, ctx: Household):
    """Full JSON snapshot of the household, as a file download."""
    require_owner(ctx)
    payload = build_export_payload(storage, ctx.household_id)
    logger.info(f"✓ Export of household {ctx.household_id}: {len(payload['entries'])} entries")
    return Response(
        content=json.dumps(payload, indent=2, default=str),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("json")}"'},
    )


@router.get("/entries.xlsx")
async def export_entries_excel(storage: Storage, ctx: Household):
    require_owner(ctx)
    excel_bytes = build_entries_workbook(
        storage.list_all_entries(ctx.household_id),
        storage.list_persons(ctx.household_id),
    )
    return StreamingResponse(
        io.BytesIO(excel_bytes),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename("xlsx")}"'},
    )
