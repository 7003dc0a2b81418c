"""
Pydantic schemas for books, their pages (spreads) and photos.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.enums import BookCoverStyle, BookDesignMode, BookSize, BookStatus, BookTheme, ContentType, PageSide


class BookCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    # required, but checked by the route so a missing date is a 400
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    size: BookSize = "6x9"
    theme: BookTheme = "classic"
    cover_style: BookCoverStyle = "linen"
    dedication: Optional[str] = Field(None, max_length=1000)
    page_count: Optional[int] = Field(None, description="One of the allowed starting page counts")


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    status: Optional[BookStatus] = None
    design_mode: Optional[BookDesignMode] = None
    theme: Optional[BookTheme] = None
    cover_style: Optional[BookCoverStyle] = None
    dedication: Optional[str] = Field(None, max_length=1000)


class AutoGenerateBody(BaseModel):
    year: Optional[int] = Field(None, ge=1900, le=2200)


class ContentPosition(BaseModel):
    x: float
    y: float
    width: float
    height: float


class PageContentItem(BaseModel):
    """An asset placed on a spread; photos and quotes share this shape."""
    id: str
    type: ContentType
    pageSide: Optional[PageSide] = None
    slotId: Optional[str] = None
    position: Optional[ContentPosition] = None


class PageUpsert(BaseModel):
    page_number: Optional[int] = Field(None, ge=1)
    left_layout: Optional[str] = None
    right_layout: Optional[str] = None
    left_content: Optional[List[PageContentItem]] = None
    right_content: Optional[List[PageContentItem]] = None

    def content_fields(self) -> Dict[str, Any]:
        """Only the fields the client actually sent, content as plain dicts."""
        data = self.model_dump(exclude_unset=True, exclude_none=False, exclude={"page_number", "page_id"})
        for key in ("left_content", "right_content"):
            if key in data:
                data[key] = [
                    {k: v for k, v in item.items() if v is not None}
                    for item in (data[key] or [])
                ]
        return data


class PageUpdate(PageUpsert):
    page_id: Optional[str] = None


class ApplyLayoutBody(BaseModel):
    layout_id: str = Field(..., min_length=1)
    auto_fill: bool = True


class PhotoCreate(BaseModel):
    url: Optional[str] = None
    filename: Optional[str] = None
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    probe: bool = Field(False, description="Fetch the image to read its size when width/height are missing")
