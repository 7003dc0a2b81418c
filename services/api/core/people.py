# services/api/core/people.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

BRAND_COLORS: List[str] = [
    "#C19548",
    "#EF6938",
    "#B26347",
    "#565645",
    "#D1BAD6",
    "#6B343D",
    "#565645",
    "#D18AD6",
    "#6B343D",
]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _string_hash(value: str) -> int:
    h = 0
    for ch in value:
        h = _to_int32(ord(ch) + ((h << 5) - h))
    return h


def get_person_color(person_id: str) -> str:
    """Stable palette color for a person id."""
    return BRAND_COLORS[abs(_string_hash(person_id or "")) % len(BRAND_COLORS)]


def get_first_name(display_name: Optional[str]) -> str:
    if not display_name:
        return ""
    parts = display_name.split()
    return parts[0] if parts else ""


def decorate_person(person: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a person row with the UI helpers attached."""
    out = dict(person)
    out["color"] = get_person_color(str(person.get("id", "")))
    out["first_name"] = get_first_name(person.get("display_name"))
    return out
