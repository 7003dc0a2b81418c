# services/api/core/typography.py
"""
Quote sizing rules shared by the designer preview and the PDF renderer.
Sizes are in rem; the renderer converts with `rem_to_pt`.
"""
from __future__ import annotations

from dataclasses import dataclass

PT_PER_REM = 12.0


@dataclass(frozen=True)
class TextStyle:
    font_size_rem: float
    line_height: float
    max_width_pct: float = 100.0

    @property
    def font_size_pt(self) -> float:
        return rem_to_pt(self.font_size_rem)


def rem_to_pt(rem: float) -> float:
    return rem * PT_PER_REM


def calculate_font_size(text: str, min_size: float, max_size: float) -> float:
    """Shorter quotes get bigger type."""
    length = len(text or "")
    if length < 30:
        return max_size
    if length < 50:
        return max_size * 0.9
    if length < 100:
        return max_size * 0.75
    if length < 150:
        return max_size * 0.65
    return min_size


def get_full_page_quote_style(text: str) -> TextStyle:
    return TextStyle(
        font_size_rem=calculate_font_size(text, 1.2, 2.5),
        line_height=1.3,
        max_width_pct=80.0,
    )


def get_partial_page_quote_style(text: str) -> TextStyle:
    return TextStyle(
        font_size_rem=calculate_font_size(text, 1.0, 1.5),
        line_height=1.4,
        max_width_pct=90.0,
    )


ATTRIBUTION_STYLE = TextStyle(font_size_rem=1.0, line_height=1.5)
PAGE_LABEL_STYLE = TextStyle(font_size_rem=0.875, line_height=1.4)
