# services/api/models/enums.py
"""
Closed vocabularies shared by schemas, adapters and the renderer.
"""
from __future__ import annotations

from typing import Dict, Literal, Tuple

EntryType = Literal["quote", "note", "milestone"]
EntrySource = Literal["app", "sms", "import"]
EntryVisibility = Literal["household", "private"]
BookSize = Literal["6x9", "8x10"]
BookTheme = Literal["classic", "playful"]
BookCoverStyle = Literal["linen", "solid", "gradient"]
BookStatus = Literal["draft", "rendering", "ready", "error"]
BookDesignMode = Literal["auto", "manual"]
ReminderChannel = Literal["email", "sms"]
ReminderFrequency = Literal["daily", "weekly", "monthly"]
HouseholdRole = Literal["owner", "admin", "member"]
AttachmentKind = Literal["image", "audio"]
ContentType = Literal["photo", "quote"]
PageSide = Literal["left", "right"]

ENTRY_TYPES: Tuple[str, ...] = ("quote", "note", "milestone")

# PDF points (1/72 inch), width x height
BOOK_PAGE_SIZES_PT: Dict[str, Tuple[float, float]] = {
    "6x9": (432.0, 648.0),
    "8x10": (576.0, 720.0),
}
