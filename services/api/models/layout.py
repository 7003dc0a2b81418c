# services/api/models/layout.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class LayoutSlot:
    """
    One rectangle on a spread page, in percent (0..100) of that page,
    origin top-left.
    """
    id: str
    kind: str          # "photo" | "quote"
    page_side: str     # "left" | "right"
    x_pct: float
    y_pct: float
    width_pct: float
    height_pct: float

    def position(self) -> Dict[str, float]:
        return {
            "x": self.x_pct,
            "y": self.y_pct,
            "width": self.width_pct,
            "height": self.height_pct,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "page_side": self.page_side,
            "x_pct": self.x_pct,
            "y_pct": self.y_pct,
            "width_pct": self.width_pct,
            "height_pct": self.height_pct,
        }


@dataclass(frozen=True)
class Layout:
    """
    A named arrangement of slots. Interior photo layouts sit on the left
    page and point at the quote layout that fills the facing right page.
    """
    id: str
    name: str
    category: str      # "cover" | "photo" | "quote"
    photo_count: int
    quote_count: int
    slots: Tuple[LayoutSlot, ...] = field(default_factory=tuple)
    paired_quote_layout_id: Optional[str] = None

    @property
    def photo_slots(self) -> List[LayoutSlot]:
        return [s for s in self.slots if s.kind == "photo"]

    @property
    def quote_slots(self) -> List[LayoutSlot]:
        return [s for s in self.slots if s.kind == "quote"]

    def slot_ids(self) -> List[str]:
        return [s.id for s in self.slots]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "photo_count": self.photo_count,
            "quote_count": self.quote_count,
            "paired_quote_layout_id": self.paired_quote_layout_id,
            "slots": [s.to_dict() for s in self.slots],
        }
