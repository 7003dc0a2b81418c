# services/api/routers/sms.py
from __future__ import annotations

from logging import getLogger
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from core.household import Storage
from core.sms import MSG_SAVE_FAILED, SmsSaveError, ingest_sms
from schemas.messaging import InboundSms
from settings import get_settings

logger = getLogger(__name__)

router = APIRouter(prefix="/sms", tags=["sms"])


@router.post("/inbound")
async def inbound_sms(body: InboundSms, storage: Storage) -> Dict[str, Any]:
    """
    Text-to-save: "<Kid>: <quote>" from a linked parent phone.
    Returns the reply the gateway should send back.
    """
    try:
        result = ingest_sms(
            storage,
            from_number=body.from_number,
            body=body.body,
            sent_at=body.timestamp,
            preview_chars=get_settings().sms_reply_preview_chars,
        )
    except SmsSaveError:
        raise HTTPException(status_code=500, detail=MSG_SAVE_FAILED)

    return {
        "message": result.message,
        "saved": result.saved,
        "entry_id": result.entry["id"] if result.entry else None,
    }
