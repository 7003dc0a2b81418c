"""
Pydantic schemas for API request/response validation.
"""
from .book import (
    ApplyLayoutBody,
    AutoGenerateBody,
    BookCreate,
    BookUpdate,
    PageContentItem,
    PageUpdate,
    PageUpsert,
    PhotoCreate,
)
from .entry import AttachmentCreate, CsvImportBody, CsvImportRow, EntryCreate, EntryUpdate
from .household import HouseholdCreate, HouseholdUpdate, PersonCreate, PersonUpdate, PhoneNumberCreate
from .messaging import InboundSms, ReminderCreate, ReminderUpdate

__all__ = [
    "ApplyLayoutBody",
    "AttachmentCreate",
    "AutoGenerateBody",
    "BookCreate",
    "BookUpdate",
    "CsvImportBody",
    "CsvImportRow",
    "EntryCreate",
    "EntryUpdate",
    "HouseholdCreate",
    "HouseholdUpdate",
    "InboundSms",
    "PageContentItem",
    "PageUpdate",
    "PageUpsert",
    "PersonCreate",
    "PersonUpdate",
    "PhoneNumberCreate",
    "PhotoCreate",
    "ReminderCreate",
    "ReminderUpdate",
]
