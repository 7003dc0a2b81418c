from __future__ import annotations

from .enums import (
    BOOK_PAGE_SIZES_PT,
    ENTRY_TYPES,
    BookCoverStyle,
    BookDesignMode,
    BookSize,
    BookStatus,
    BookTheme,
    EntrySource,
    EntryType,
    EntryVisibility,
    HouseholdRole,
    ReminderChannel,
    ReminderFrequency,
)
from .layout import Layout, LayoutSlot

__all__ = [
    "BOOK_PAGE_SIZES_PT",
    "ENTRY_TYPES",
    "BookCoverStyle",
    "BookDesignMode",
    "BookSize",
    "BookStatus",
    "BookTheme",
    "EntrySource",
    "EntryType",
    "EntryVisibility",
    "HouseholdRole",
    "Layout",
    "LayoutSlot",
    "ReminderChannel",
    "ReminderFrequency",
]
