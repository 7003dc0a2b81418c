# services/api/core/sms.py
"""
Text-message capture: a parent texts "Kid: what they said" and the quote
is saved for that kid.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from core.phone import normalize_phone_number

logger = logging.getLogger(__name__)

_SMS_PATTERN = re.compile(r"^\s*([^:-]+?)\s*[:\-]\s*(.+)$", re.DOTALL)
_NON_WORD_RUN = re.compile(r"[\W_]+")

MSG_NOT_LINKED = "This number isn't linked to a SaySo account yet."
MSG_FORMAT_HINT = 'Please start your message with the child\'s name, e.g. "Zeke: Do ya like jazz".'
MSG_NO_KIDS = "No kids are set up yet. Add them in the SaySo app to start saving quotes."
MSG_SAVE_FAILED = "Sorry, we couldn't save that right now. Please try again."


@dataclass
class SmsResult:
    message: str
    entry: Optional[Dict[str, Any]] = None

    @property
    def saved(self) -> bool:
        return self.entry is not None


class SmsSaveError(RuntimeError):
    """Storage refused the entry; the sender should retry."""


def parse_sms_body(message: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    "Zeke: Do ya like jazz" -> ("Zeke", "Do ya like jazz").
    Accepts ':' or '-' as the separator.
    """
    if not message:
        return None
    match = _SMS_PATTERN.match(message)
    if not match:
        return None
    kid_name = match.group(1).strip()
    content = match.group(2).strip()
    if not kid_name or not content:
        return None
    return kid_name, content


def normalize_display_name(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value or "")
    return _NON_WORD_RUN.sub(" ", decomposed).strip().lower()


def _parse_sent_at(sent_at: Optional[str]) -> Optional[datetime]:
    if not sent_at:
        return None
    try:
        parsed = datetime.fromisoformat(sent_at.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _preview(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    return f"{content[:limit]}…"


def ingest_sms(
    storage: Any,
    *,
    from_number: Optional[str],
    body: Optional[str],
    sent_at: Optional[str] = None,
    preview_chars: int = 140,
) -> SmsResult:
    """
    Resolve the sender, match the kid, and save the quote.

    Raises:
        SmsSaveError: the entry could not be written
    """
    phone = normalize_phone_number(from_number)
    link = storage.find_phone_number(phone) if phone else None
    if not link:
        logger.info(f"SMS from unlinked number {phone or from_number!r}")
        return SmsResult(MSG_NOT_LINKED)

    parsed = parse_sms_body(body)
    if not parsed:
        return SmsResult(MSG_FORMAT_HINT)
    kid_name, content = parsed

    kids = storage.list_persons(link["household_id"])
    if not kids:
        return SmsResult(MSG_NO_KIDS)

    wanted = normalize_display_name(kid_name)
    match = next(
        (k for k in kids if normalize_display_name(k.get("display_name") or "") == wanted),
        None,
    )
    if match is None:
        names = ", ".join(k["display_name"] for k in kids)
        return SmsResult(f'I couldn\'t find "{kid_name}". Kids on this account: {names}.')

    created_at = _parse_sent_at(sent_at) or datetime.now(timezone.utc).replace(tzinfo=None)
    try:
        entry = storage.create_entry(
            household_id=link["household_id"],
            text=content,
            said_by=match["id"],
            captured_by=link["user_id"],
            entry_type="quote",
            source="sms",
            visibility="household",
            entry_date=created_at.date(),
            created_at=created_at,
        )
    except Exception as e:
        logger.error(f"✗ SMS entry insert failed: {e}")
        raise SmsSaveError(str(e)) from e

    logger.info(f"✓ SMS quote saved for {match['display_name']} ({entry['id']})")
    return SmsResult(
        f'Saved for {match["display_name"]} ✅ – "{_preview(content, preview_chars)}"',
        entry=entry,
    )
