# services/api/core/layouts.py
"""
Static catalog of spread layouts for the book designer.

A spread is two facing pages. Interior photo layouts fill the LEFT page and
name the quote layout that fills the RIGHT page. Cover layouts wrap the
back (left) and front (right) covers. All slot geometry is in percent of a
single page, origin top-left.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from models.layout import Layout, LayoutSlot

DEFAULT_INTERIOR_PHOTO_LAYOUT_ID = "photo-1-full-bleed"
DEFAULT_INTERIOR_QUOTE_LAYOUT_ID = "quote-1-centered"


def _photo(slot_id: str, x: float, y: float, w: float, h: float, side: str = "left") -> LayoutSlot:
    return LayoutSlot(slot_id, "photo", side, x, y, w, h)


def _quote(slot_id: str, x: float, y: float, w: float, h: float) -> LayoutSlot:
    return LayoutSlot(slot_id, "quote", "right", x, y, w, h)


# ============ Covers ============

COVER_LAYOUTS: List[Layout] = [
    Layout(
        id="cover-wrap-photo",
        name="Wrap Photo",
        category="cover",
        photo_count=2,
        quote_count=0,
        slots=(
            _photo("cover-photo-back", 0, 0, 100, 100, side="left"),
            _photo("cover-photo-front", 0, 0, 100, 100, side="right"),
        ),
    ),
    Layout(
        id="cover-photo-band",
        name="Photo + Band",
        category="cover",
        photo_count=1,
        quote_count=0,
        slots=(_photo("cover-photo-front", 0, 0, 100, 65, side="right"),),
    ),
    Layout(
        id="cover-mosaic",
        name="Photo Mosaic",
        category="cover",
        photo_count=3,
        quote_count=0,
        slots=(
            _photo("cover-photo-front-large", 0, 0, 60, 100, side="right"),
            _photo("cover-photo-front-top", 65, 5, 30, 42, side="right"),
            _photo("cover-photo-front-bottom", 65, 53, 30, 42, side="right"),
        ),
    ),
]

# ============ Interior: quotes (right page) ============

QUOTE_LAYOUTS: List[Layout] = [
    Layout(
        id="quote-1-centered",
        name="Centered",
        category="quote",
        photo_count=0,
        quote_count=1,
        slots=(_quote("right-quote-1", 20, 20, 60, 60),),
    ),
    Layout(
        id="quote-2-stack",
        name="Two Stack",
        category="quote",
        photo_count=0,
        quote_count=2,
        slots=(
            _quote("right-quote-1", 15, 10, 70, 35),
            _quote("right-quote-2", 15, 55, 70, 35),
        ),
    ),
    Layout(
        id="quote-3-stack",
        name="Three Stack",
        category="quote",
        photo_count=0,
        quote_count=3,
        slots=(
            _quote("right-quote-1", 12, 6, 76, 26),
            _quote("right-quote-2", 12, 36, 76, 26),
            _quote("right-quote-3", 12, 66, 76, 26),
        ),
    ),
]

# ============ Interior: photos (left page) ============

PHOTO_LAYOUTS: List[Layout] = [
    Layout(
        id="photo-1-full-bleed",
        name="Full Bleed",
        category="photo",
        photo_count=1,
        quote_count=1,
        paired_quote_layout_id="quote-1-centered",
        slots=(_photo("left-photo-1", 0, 0, 100, 100),),
    ),
    Layout(
        id="photo-1-wide-border",
        name="Wide Border",
        category="photo",
        photo_count=1,
        quote_count=1,
        paired_quote_layout_id="quote-1-centered",
        slots=(_photo("left-photo-1", 10, 8, 80, 84),),
    ),
    Layout(
        id="photo-1-upper-two-thirds",
        name="Upper Two Thirds",
        category="photo",
        photo_count=1,
        quote_count=1,
        paired_quote_layout_id="quote-1-centered",
        slots=(_photo("left-photo-1", 6, 4, 88, 66),),
    ),
    Layout(
        id="photo-1-small-centered",
        name="Small Center",
        category="photo",
        photo_count=1,
        quote_count=1,
        paired_quote_layout_id="quote-1-centered",
        slots=(_photo("left-photo-1", 20, 20, 60, 60),),
    ),
    Layout(
        id="photo-2-stack",
        name="Stacked",
        category="photo",
        photo_count=2,
        quote_count=2,
        paired_quote_layout_id="quote-2-stack",
        slots=(
            _photo("left-photo-1", 8, 4, 84, 42),
            _photo("left-photo-2", 8, 54, 84, 42),
        ),
    ),
    Layout(
        id="photo-2-columns",
        name="Columns",
        category="photo",
        photo_count=2,
        quote_count=2,
        paired_quote_layout_id="quote-2-stack",
        slots=(
            _photo("left-photo-1", 6, 8, 40, 84),
            _photo("left-photo-2", 54, 8, 40, 84),
        ),
    ),
    Layout(
        id="photo-2-emphasis",
        name="Large + Small",
        category="photo",
        photo_count=2,
        quote_count=2,
        paired_quote_layout_id="quote-2-stack",
        slots=(
            _photo("left-photo-1", 6, 6, 70, 82),
            _photo("left-photo-2", 78, 50, 16, 36),
        ),
    ),
    Layout(
        id="photo-3-stack",
        name="Three Stack",
        category="photo",
        photo_count=3,
        quote_count=3,
        paired_quote_layout_id="quote-3-stack",
        slots=(
            _photo("left-photo-1", 10, 4, 80, 28),
            _photo("left-photo-2", 10, 36, 80, 28),
            _photo("left-photo-3", 10, 68, 80, 28),
        ),
    ),
    Layout(
        id="photo-3-large-top",
        name="Hero + Pair",
        category="photo",
        photo_count=3,
        quote_count=3,
        paired_quote_layout_id="quote-3-stack",
        slots=(
            _photo("left-photo-1", 8, 6, 84, 45),
            _photo("left-photo-2", 8, 56, 40, 34),
            _photo("left-photo-3", 52, 56, 40, 34),
        ),
    ),
    Layout(
        id="photo-4-grid",
        name="Grid",
        category="photo",
        photo_count=4,
        quote_count=3,
        paired_quote_layout_id="quote-3-stack",
        slots=(
            _photo("left-photo-1", 6, 6, 40, 40),
            _photo("left-photo-2", 52, 6, 40, 40),
            _photo("left-photo-3", 6, 52, 40, 40),
            _photo("left-photo-4", 52, 52, 40, 40),
        ),
    ),
    Layout(
        id="photo-4-hero-grid",
        name="Hero + Trio",
        category="photo",
        photo_count=4,
        quote_count=3,
        paired_quote_layout_id="quote-3-stack",
        slots=(
            _photo("left-photo-1", 6, 6, 60, 60),
            _photo("left-photo-2", 70, 6, 24, 24),
            _photo("left-photo-3", 70, 36, 24, 24),
            _photo("left-photo-4", 20, 70, 60, 24),
        ),
    ),
]

ALL_LAYOUTS: List[Layout] = [*COVER_LAYOUTS, *PHOTO_LAYOUTS, *QUOTE_LAYOUTS]

LAYOUTS_BY_ID: Dict[str, Layout] = {layout.id: layout for layout in ALL_LAYOUTS}

QUOTE_LAYOUT_BY_COUNT: Dict[int, str] = {
    1: "quote-1-centered",
    2: "quote-2-stack",
    3: "quote-3-stack",
}


# ============ Lookups ============

def get_layout(layout_id: Optional[str]) -> Optional[Layout]:
    if not layout_id:
        return None
    return LAYOUTS_BY_ID.get(layout_id)


def get_photo_layouts(count: int) -> List[Layout]:
    """Interior photo layouts that hold exactly `count` photos."""
    return [layout for layout in PHOTO_LAYOUTS if layout.photo_count == count]


def get_quote_layouts(count: int) -> List[Layout]:
    """Interior quote layouts that hold exactly `count` quotes."""
    return [layout for layout in QUOTE_LAYOUTS if layout.quote_count == count]


def get_cover_layouts() -> List[Layout]:
    return list(COVER_LAYOUTS)


def get_quote_layout_id_for_count(count: int) -> str:
    if count <= 1:
        return QUOTE_LAYOUT_BY_COUNT[1]
    if count == 2:
        return QUOTE_LAYOUT_BY_COUNT[2]
    return QUOTE_LAYOUT_BY_COUNT[3]


def filter_layouts(
    *,
    category: Optional[str] = None,
    photo_count: Optional[int] = None,
) -> List[Layout]:
    out = ALL_LAYOUTS
    if category:
        out = [layout for layout in out if layout.category == category]
    if photo_count is not None:
        out = [layout for layout in out if layout.photo_count == photo_count]
    return list(out)
