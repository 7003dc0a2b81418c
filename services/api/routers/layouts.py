# services/api/routers/layouts.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from core.layouts import filter_layouts, get_layout

router = APIRouter(prefix="/layouts", tags=["layouts"])


@router.get("")
async def list_layouts(
    category: Optional[str] = Query(None, description="cover | photo | quote"),
    photo_count: Optional[int] = Query(None, ge=0),
) -> List[Dict[str, Any]]:
    return [layout.to_dict() for layout in filter_layouts(category=category, photo_count=photo_count)]


@router.get("/{layout_id}")
async def get_layout_by_id(layout_id: str) -> Dict[str, Any]:
    layout = get_layout(layout_id)
    if layout is None:
        raise HTTPException(status_code=404, detail="Layout not found")
    return layout.to_dict()
