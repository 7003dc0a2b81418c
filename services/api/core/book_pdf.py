# services/api/core/book_pdf.py
"""
Printable book PDFs (fpdf2).

Two renderers share one page builder:
  - generate_book_pdf: the automatic book (cover, title page, a divider per
    month, one page per entry).
  - generate_designed_book_pdf: spreads laid out in the designer, each book
    page becoming a left and a right PDF page with slots placed by percent.
"""
from __future__ import annotations

import calendar
import io
import logging
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from fpdf import FPDF
from PIL import Image

from core.layouts import get_layout
from core.typography import (
    ATTRIBUTION_STYLE,
    get_full_page_quote_style,
    get_partial_page_quote_style,
)
from models.enums import BOOK_PAGE_SIZES_PT
from models.layout import Layout, LayoutSlot

logger = logging.getLogger(__name__)

PULL_QUOTE_MAX_CHARS = 180
PAGE_MARGIN_PT = 54.0
MIN_FONT_PT = 8.0
MAX_EMBED_PX = 1600

# theme -> (core font family, quote size in pt)
THEME_FONTS: Dict[str, Tuple[str, float]] = {
    "classic": ("Times", 22.0),
    "playful": ("Helvetica", 26.0),
}

RGB = Tuple[int, int, int]

INK: RGB = (34, 34, 34)
MUTED: RGB = (110, 110, 110)
RULE: RGB = (193, 149, 72)
PLACEHOLDER: RGB = (225, 225, 225)

# cover_style -> (background top, background bottom, text)
COVER_COLORS: Dict[str, Tuple[RGB, RGB, RGB]] = {
    "linen": ((245, 240, 230), (245, 240, 230), INK),
    "solid": ((107, 52, 61), (107, 52, 61), (255, 255, 255)),
    "gradient": ((239, 105, 56), (193, 149, 72), (255, 255, 255)),
}

_PDF_TEXT_FOLD = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u2022": "\u00b7",
}


# ---------- Text helpers -----------------------------------------------------

def pdf_safe(text: Optional[str]) -> str:
    """Fold text into the Latin-1 repertoire of the PDF core fonts."""
    if not text:
        return ""
    folded = "".join(_PDF_TEXT_FOLD.get(ch, ch) for ch in text)
    return folded.encode("latin-1", "replace").decode("latin-1")


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def format_long_date(value: Any) -> str:
    d = _as_date(value)
    if d is None:
        return ""
    return f"{calendar.month_name[d.month]} {d.day}, {d.year}"


def format_date_range(date_start: Any, date_end: Any) -> str:
    """'2024' when both ends share a year, else 'March 1, 2024 - May 2, 2025'."""
    start, end = _as_date(date_start), _as_date(date_end)
    if start is None or end is None:
        return ""
    if start.year == end.year:
        return str(start.year)
    return f"{format_long_date(start)} - {format_long_date(end)}"


def month_label(key: str) -> str:
    """'2024-03' -> 'March 2024'."""
    year, month = key.split("-")
    return f"{calendar.month_name[int(month)]} {year}"


def group_entries_by_month(entries: List[Dict[str, Any]]) -> "OrderedDict[str, List[Dict[str, Any]]]":
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for entry in entries:
        key = str(entry.get("entry_date") or "")[:7]
        if len(key) != 7:
            continue
        groups.setdefault(key, []).append(entry)
    return OrderedDict(sorted(groups.items()))


# ---------- Page builder -----------------------------------------------------

class _BookBuilder:
    """
    Thin wrapper over FPDF in points with absolute positioning; pages never
    auto-break.
    """

    def __init__(self, *, size: str, theme: str, title: str):
        self.page_w, self.page_h = BOOK_PAGE_SIZES_PT.get(size) or BOOK_PAGE_SIZES_PT["6x9"]
        self.family, self.quote_size = THEME_FONTS.get(theme) or THEME_FONTS["classic"]

        self._pdf = FPDF(orientation="P", unit="pt", format=(self.page_w, self.page_h))
        self._pdf.set_auto_page_break(auto=False)
        self._pdf.set_margins(PAGE_MARGIN_PT, PAGE_MARGIN_PT, PAGE_MARGIN_PT)
        self._pdf.set_title(pdf_safe(title))
        self._pdf.set_author("SaySo")
        self._pdf.set_creator("SaySo")

        self.content_w = self.page_w - 2 * PAGE_MARGIN_PT

    @property
    def page_count(self) -> int:
        return self._pdf.page

    # ---- primitives ----

    def _font(self, size: float, style: str = "", color: RGB = INK):
        self._pdf.set_font(self.family, style, size)
        self._pdf.set_text_color(*color)

    def wrap(self, text: str, width: float) -> List[str]:
        """Greedy word wrap with the current font; overlong words are split."""
        lines: List[str] = []
        for paragraph in pdf_safe(text).split("\n"):
            current = ""
            for word in paragraph.split():
                candidate = f"{current} {word}" if current else word
                if self._pdf.get_string_width(candidate) <= width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                current = ""
                while self._pdf.get_string_width(word) > width and len(word) > 1:
                    cut = len(word)
                    while cut > 1 and self._pdf.get_string_width(word[:cut]) > width:
                        cut -= 1
                    lines.append(word[:cut])
                    word = word[cut:]
                current = word
            lines.append(current)
        return lines

    def _lines(self, lines: List[str], *, x: float, y: float, w: float, line_h: float, align: str = "C") -> float:
        for line in lines:
            self._pdf.set_xy(x, y)
            self._pdf.cell(w, line_h, line, align=align)
            y += line_h
        return y

    def _rule(self, y: float, w: float = 60.0):
        self._pdf.set_draw_color(*RULE)
        self._pdf.set_line_width(1.0)
        x0 = (self.page_w - w) / 2
        self._pdf.line(x0, y, x0 + w, y)

    def _background(self, top: RGB, bottom: RGB):
        if top == bottom:
            self._pdf.set_fill_color(*top)
            self._pdf.rect(0, 0, self.page_w, self.page_h, style="F")
            return
        bands = 48
        band_h = self.page_h / bands
        for i in range(bands):
            t = i / (bands - 1)
            color = tuple(int(round(a + (b - a) * t)) for a, b in zip(top, bottom))
            self._pdf.set_fill_color(*color)
            self._pdf.rect(0, i * band_h, self.page_w, band_h + 0.5, style="F")

    # ---- auto book pages ----

    def add_cover(self, *, title: str, subtitle: str, cover_style: str):
        self._pdf.add_page()
        top, bottom, ink = COVER_COLORS.get(cover_style) or COVER_COLORS["linen"]
        self._background(top, bottom)

        self._font(36, "B", ink)
        title_lines = self.wrap(title, self.content_w)
        y = self.page_h * 0.38 - len(title_lines) * 22
        y = self._lines(title_lines, x=PAGE_MARGIN_PT, y=y, w=self.content_w, line_h=44)

        if subtitle:
            self._font(16, "", ink)
            self._lines([pdf_safe(subtitle)], x=PAGE_MARGIN_PT, y=y + 18, w=self.content_w, line_h=20)

        self._font(11, "I", ink)
        self._lines(
            ["A Collection of Memories"],
            x=PAGE_MARGIN_PT, y=self.page_h - PAGE_MARGIN_PT - 14, w=self.content_w, line_h=14,
        )

    def add_title_page(self, *, title: str, date_range: str, dedication: Optional[str]):
        self._pdf.add_page()
        self._font(24, "B")
        y = self._lines(self.wrap(title, self.content_w), x=PAGE_MARGIN_PT, y=self.page_h * 0.3,
                        w=self.content_w, line_h=30)
        if date_range:
            self._font(13, "", MUTED)
            y = self._lines([pdf_safe(date_range)], x=PAGE_MARGIN_PT, y=y + 10, w=self.content_w, line_h=16)
        if dedication:
            self._rule(y + 36)
            self._font(13, "I")
            self._lines(self.wrap(dedication, self.content_w * 0.8), x=PAGE_MARGIN_PT, y=y + 56,
                        w=self.content_w, line_h=18)

    def add_month_divider(self, label: str):
        self._pdf.add_page()
        self._font(28, "B")
        y = self.page_h / 2 - 20
        self._lines([pdf_safe(label)], x=PAGE_MARGIN_PT, y=y, w=self.content_w, line_h=34)
        self._rule(y + 48, w=80)

    def add_pull_quote_page(self, *, text: str, author: str, date_label: str):
        self._pdf.add_page()
        size = self.quote_size
        self._font(size, "I")
        lines = self.wrap(f'"{text}"', self.content_w)
        line_h = size * 1.3
        block_h = len(lines) * line_h + 60
        y = max(PAGE_MARGIN_PT, (self.page_h - block_h) / 2)
        y = self._lines(lines, x=PAGE_MARGIN_PT, y=y, w=self.content_w, line_h=line_h)

        self._font(13, "B")
        y = self._lines([pdf_safe(f"- {author}")], x=PAGE_MARGIN_PT, y=y + 20, w=self.content_w, line_h=16)
        if date_label:
            self._font(10, "", MUTED)
            self._lines([pdf_safe(date_label)], x=PAGE_MARGIN_PT, y=y + 4, w=self.content_w, line_h=14)

    def add_body_page(self, *, text: str, author: str, tags: List[str], date_label: str):
        self._pdf.add_page()
        y = PAGE_MARGIN_PT + 20
        self._rule(y, w=self.content_w)

        self._font(14, "B")
        y = self._lines([pdf_safe(author)], x=PAGE_MARGIN_PT, y=y + 16, w=self.content_w, line_h=18, align="L")

        self._font(12)
        y = self._lines(self.wrap(text, self.content_w), x=PAGE_MARGIN_PT, y=y + 12,
                        w=self.content_w, line_h=17, align="L")

        if tags:
            self._font(10, "I", MUTED)
            y = self._lines(self.wrap(" · ".join(tags), self.content_w), x=PAGE_MARGIN_PT, y=y + 14,
                            w=self.content_w, line_h=14, align="L")
        if date_label:
            self._font(10, "", MUTED)
            self._lines([pdf_safe(date_label)], x=PAGE_MARGIN_PT, y=y + 8, w=self.content_w, line_h=14, align="L")

    # ---- designed spreads ----

    def _slot_rect(self, slot: LayoutSlot) -> Tuple[float, float, float, float]:
        return (
            self.page_w * slot.x_pct / 100.0,
            self.page_h * slot.y_pct / 100.0,
            self.page_w * slot.width_pct / 100.0,
            self.page_h * slot.height_pct / 100.0,
        )

    def _place_photo(self, rect: Tuple[float, float, float, float], image: Optional[Image.Image]):
        x, y, w, h = rect
        if image is None:
            self._pdf.set_fill_color(*PLACEHOLDER)
            self._pdf.rect(x, y, w, h, style="F")
            return
        bio = io.BytesIO()
        _cover_crop(image, w / h).save(bio, format="JPEG", quality=88)
        bio.seek(0)
        self._pdf.image(bio, x=x, y=y, w=w, h=h)

    def _place_quote(self, rect: Tuple[float, float, float, float], text: str, author: str, full_page: bool):
        x, y, w, h = rect
        style = get_full_page_quote_style(text) if full_page else get_partial_page_quote_style(text)
        max_w = w * style.max_width_pct / 100.0
        attribution_size = ATTRIBUTION_STYLE.font_size_pt * 0.85
        attribution_h = attribution_size * ATTRIBUTION_STYLE.line_height

        size = style.font_size_pt
        while True:
            self._font(size, "I")
            lines = self.wrap(f'"{text}"', max_w)
            line_h = size * style.line_height
            block_h = len(lines) * line_h + (attribution_h + 6 if author else 0)
            if block_h <= h or size <= MIN_FONT_PT:
                break
            size = max(MIN_FONT_PT, size - 1)

        top = y + max(0.0, (h - block_h) / 2)
        bottom = self._lines(lines, x=x + (w - max_w) / 2, y=top, w=max_w, line_h=line_h)
        if author:
            self._font(attribution_size, "B", MUTED)
            self._lines([pdf_safe(f"- {author}")], x=x, y=bottom + 6, w=w, line_h=attribution_h)

    def add_spread_side(
        self,
        *,
        layout: Optional[Layout],
        side: str,
        items: List[Dict[str, Any]],
        entries_by_id: Dict[str, Dict[str, Any]],
        author_for: Any,
        images_by_photo_id: Dict[str, Image.Image],
    ):
        self._pdf.add_page()
        if layout is None:
            return

        by_slot = {i.get("slotId"): i for i in items if i.get("slotId")}
        full_page = layout.category == "quote" and layout.quote_count == 1
        for slot in layout.slots:
            if slot.page_side != side:
                continue
            rect = self._slot_rect(slot)
            item = by_slot.get(slot.id)
            if slot.kind == "photo":
                photo_id = item.get("id") if item else None
                self._place_photo(rect, images_by_photo_id.get(photo_id) if photo_id else None)
            elif item is not None:
                entry = entries_by_id.get(item.get("id"))
                if entry:
                    self._place_quote(rect, entry.get("text") or "", author_for(entry), full_page)

    def build(self) -> bytes:
        data = self._pdf.output()
        if isinstance(data, str):
            return data.encode("latin-1")
        return bytes(data)


def _cover_crop(image: Image.Image, target_ratio: float) -> Image.Image:
    """Center-crop to `target_ratio` (w/h) and cap the long side."""
    img = image.convert("RGB")
    w, h = img.size
    if w == 0 or h == 0:
        return img
    ratio = w / h
    if ratio > target_ratio:
        new_w = int(round(h * target_ratio))
        left = (w - new_w) // 2
        img = img.crop((left, 0, left + new_w, h))
    elif ratio < target_ratio:
        new_h = int(round(w / target_ratio))
        top = (h - new_h) // 2
        img = img.crop((0, top, w, top + new_h))

    if max(img.size) > MAX_EMBED_PX:
        img.thumbnail((MAX_EMBED_PX, MAX_EMBED_PX))
    return img


def _author_lookup(persons: List[Dict[str, Any]]):
    names = {p["id"]: p.get("display_name") or "" for p in persons}

    def author_for(entry: Dict[str, Any]) -> str:
        return names.get(entry.get("said_by")) or "Unknown"

    return author_for


# ---------- Public API -------------------------------------------------------

def generate_book_pdf(
    *,
    book: Dict[str, Any],
    entries: List[Dict[str, Any]],
    persons: List[Dict[str, Any]],
    tags: Optional[Dict[str, List[str]]] = None,
) -> bytes:
    """
    Render the automatic book for `entries` (already in chronological order).

    Args:
        book: book row (title, date_start, date_end, size, theme, cover_style, dedication)
        entries: entry rows; `tags` falls back to each entry's own "tags"
        persons: household persons, used for attribution
        tags: optional entry_id -> tags map
    """
    title = book.get("title") or "SaySo"
    builder = _BookBuilder(size=book.get("size") or "6x9", theme=book.get("theme") or "classic", title=title)
    author_for = _author_lookup(persons)
    tags = tags or {}
    date_range = format_date_range(book.get("date_start"), book.get("date_end"))

    builder.add_cover(title=title, subtitle=date_range, cover_style=book.get("cover_style") or "linen")
    builder.add_title_page(title=title, date_range=date_range, dedication=book.get("dedication"))

    for key, month_entries in group_entries_by_month(entries).items():
        builder.add_month_divider(month_label(key))
        for entry in month_entries:
            text = (entry.get("text") or "").strip()
            author = author_for(entry)
            date_label = format_long_date(entry.get("entry_date"))
            if len(text) <= PULL_QUOTE_MAX_CHARS:
                builder.add_pull_quote_page(text=text, author=author, date_label=date_label)
            else:
                builder.add_body_page(
                    text=text,
                    author=author,
                    tags=tags.get(entry["id"], entry.get("tags") or []),
                    date_label=date_label,
                )

    logger.info(f"Rendered auto book {book.get('id')}: {builder.page_count} pages, {len(entries)} entries")
    return builder.build()


def page_has_design(page: Dict[str, Any]) -> bool:
    return bool(
        page.get("left_layout") or page.get("right_layout")
        or page.get("left_content") or page.get("right_content")
    )


def generate_designed_book_pdf(
    *,
    book: Dict[str, Any],
    pages: List[Dict[str, Any]],
    entries_by_id: Dict[str, Dict[str, Any]],
    persons: List[Dict[str, Any]],
    photos_by_id: Dict[str, Dict[str, Any]],
    images_by_url: Dict[str, Image.Image],
) -> bytes:
    """
    Render designer spreads. Each book page gives a left and a right PDF
    page. Empty spreads are skipped, except an empty first spread which
    becomes the plain cover.
    """
    title = book.get("title") or "SaySo"
    builder = _BookBuilder(size=book.get("size") or "6x9", theme=book.get("theme") or "classic", title=title)
    author_for = _author_lookup(persons)

    images_by_photo_id: Dict[str, Image.Image] = {}
    for photo_id, photo in photos_by_id.items():
        image = images_by_url.get(photo.get("url"))
        if image is not None:
            images_by_photo_id[photo_id] = image

    for page in sorted(pages, key=lambda p: p.get("page_number") or 0):
        if not page_has_design(page):
            if page.get("page_number") == 1:
                builder.add_cover(
                    title=title,
                    subtitle=format_date_range(book.get("date_start"), book.get("date_end")),
                    cover_style=book.get("cover_style") or "linen",
                )
            continue

        left_layout = get_layout(page.get("left_layout"))
        right_layout = get_layout(page.get("right_layout"))
        content = (page.get("left_content") or []) + (page.get("right_content") or [])
        for side, layout in (("left", left_layout), ("right", right_layout)):
            builder.add_spread_side(
                layout=layout,
                side=side,
                items=[i for i in content if i.get("pageSide", side) == side],
                entries_by_id=entries_by_id,
                author_for=author_for,
                images_by_photo_id=images_by_photo_id,
            )

    logger.info(f"Rendered designed book {book.get('id')}: {builder.page_count} pages")
    return builder.build()
