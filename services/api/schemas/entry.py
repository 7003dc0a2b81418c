"""
Pydantic schemas for entries, attachments and CSV import.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models.enums import AttachmentKind, EntryType, EntryVisibility


class EntryCreate(BaseModel):
    """Schema for capturing an entry in the app."""
    # text is checked by the route so a blank body is a 400, not a 422
    text: Optional[str] = Field(None, description="What was said")
    said_by: Optional[str] = Field(None, description="Person ID")
    entry_type: EntryType = "quote"
    visibility: EntryVisibility = "household"
    entry_date: Optional[date] = Field(None, description="Defaults to today")
    tags: List[str] = Field(default_factory=list)


class EntryUpdate(BaseModel):
    """Partial update; omitted fields are left alone."""
    text: Optional[str] = None
    said_by: Optional[str] = None
    entry_type: Optional[EntryType] = None
    visibility: Optional[EntryVisibility] = None
    entry_date: Optional[date] = None
    tags: Optional[List[str]] = None


class AttachmentCreate(BaseModel):
    kind: AttachmentKind
    url: str = Field(..., min_length=1)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    duration_seconds: Optional[float] = Field(None, ge=0)


class CsvImportRow(BaseModel):
    """One pre-parsed spreadsheet row."""
    text: str = ""
    said_by: Optional[str] = None
    date: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    type: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tag_string(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [t for t in v.replace(";", ",").split(",")]
        return v


class CsvImportBody(BaseModel):
    entries: List[CsvImportRow] = Field(..., min_length=1)
