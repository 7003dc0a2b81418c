# services/api/core/phone.py
from __future__ import annotations

import re
from typing import Optional

_NON_DIAL_CHARS = re.compile(r"[^\d+]")
_NON_DIGITS = re.compile(r"\D")


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a user-typed or carrier-supplied number to E.164.

    Bare 10-digit numbers are assumed to be North American (+1).
    Returns None when nothing dialable is left.
    """
    if raw is None:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None

    cleaned = _NON_DIAL_CHARS.sub("", trimmed)
    if not cleaned:
        return None
    if cleaned.startswith("+"):
        return cleaned

    digits = _NON_DIGITS.sub("", cleaned)
    if not digits:
        return None
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"
