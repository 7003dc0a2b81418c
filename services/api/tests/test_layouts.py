"""
Tests for the layout catalog, slot assignment and spread updates.

Run with: pytest tests/test_layouts.py -v
"""
import copy

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.layouts import (
    ALL_LAYOUTS,
    LAYOUTS_BY_ID,
    DEFAULT_INTERIOR_PHOTO_LAYOUT_ID,
    DEFAULT_INTERIOR_QUOTE_LAYOUT_ID,
    filter_layouts,
    get_cover_layouts,
    get_layout,
    get_photo_layouts,
    get_quote_layout_id_for_count,
    get_quote_layouts,
)
from core.layout_helpers import (
    auto_assign_entries_to_slots,
    auto_assign_photos_to_slots,
    get_orientation,
    pick_photo_for_slot,
)
from core.spreads import apply_layout_to_spread, used_content_ids


def photo(pid, w, h):
    return {"id": pid, "width": w, "height": h}


class TestCatalog:
    """Catalog-wide invariants."""

    def test_ids_unique(self):
        assert len(LAYOUTS_BY_ID) == len(ALL_LAYOUTS)

    def test_slots_inside_page(self):
        for layout in ALL_LAYOUTS:
            for slot in layout.slots:
                assert 0 <= slot.x_pct and 0 <= slot.y_pct, layout.id
                assert slot.x_pct + slot.width_pct <= 100, (layout.id, slot.id)
                assert slot.y_pct + slot.height_pct <= 100, (layout.id, slot.id)

    def test_photo_slot_count_matches(self):
        for layout in ALL_LAYOUTS:
            assert len(layout.photo_slots) == layout.photo_count, layout.id

    def test_quote_layouts_slot_count(self):
        for layout in ALL_LAYOUTS:
            if layout.category == "quote":
                assert len(layout.quote_slots) == layout.quote_count, layout.id
                assert all(s.page_side == "right" for s in layout.slots)

    def test_photo_layouts_on_left_and_paired(self):
        for layout in ALL_LAYOUTS:
            if layout.category == "photo":
                assert all(s.page_side == "left" for s in layout.slots)
                paired = get_layout(layout.paired_quote_layout_id)
                assert paired is not None and paired.category == "quote"

    def test_four_photo_layouts_pair_with_three_quotes(self):
        for layout in get_photo_layouts(4):
            assert layout.quote_count == 3
            assert layout.paired_quote_layout_id == "quote-3-stack"

    def test_defaults_exist(self):
        assert get_layout(DEFAULT_INTERIOR_PHOTO_LAYOUT_ID).category == "photo"
        assert get_layout(DEFAULT_INTERIOR_QUOTE_LAYOUT_ID).category == "quote"


class TestLookups:

    def test_photo_layouts_by_count(self):
        ids = [layout.id for layout in get_photo_layouts(1)]
        assert ids == [
            "photo-1-full-bleed",
            "photo-1-wide-border",
            "photo-1-upper-two-thirds",
            "photo-1-small-centered",
        ]
        assert len(get_photo_layouts(2)) == 3
        assert len(get_photo_layouts(3)) == 2
        assert get_photo_layouts(7) == []

    def test_quote_layouts_by_count(self):
        assert [layout.id for layout in get_quote_layouts(2)] == ["quote-2-stack"]

    def test_cover_layouts(self):
        assert {layout.id for layout in get_cover_layouts()} == {
            "cover-wrap-photo", "cover-photo-band", "cover-mosaic",
        }

    def test_cover_layout_names(self):
        assert [layout.name for layout in get_cover_layouts()] == ["Wrap Photo", "Photo + Band", "Photo Mosaic"]

    @pytest.mark.parametrize("count,expected", [
        (0, "quote-1-centered"),
        (1, "quote-1-centered"),
        (2, "quote-2-stack"),
        (3, "quote-3-stack"),
        (4, "quote-3-stack"),
    ])
    def test_quote_layout_for_count(self, count, expected):
        assert get_quote_layout_id_for_count(count) == expected

    def test_unknown_layout(self):
        assert get_layout("nope") is None
        assert get_layout(None) is None

    def test_filter(self):
        assert all(layout.category == "cover" for layout in filter_layouts(category="cover"))
        two = filter_layouts(category="photo", photo_count=2)
        assert [layout.id for layout in two] == ["photo-2-stack", "photo-2-columns", "photo-2-emphasis"]


class TestOrientation:

    def test_orientation_rules(self):
        assert get_orientation(None, 100) == "square"
        assert get_orientation(0, 100) == "square"
        assert get_orientation(50, 50) == "square"
        assert get_orientation(300, 200) == "landscape"
        assert get_orientation(200, 300) == "portrait"

    def test_pick_prefers_matching_orientation(self):
        slot = get_layout("photo-2-columns").photo_slots[0]  # portrait slot
        candidates = [photo("wide", 400, 300), photo("tall", 300, 400)]
        assert pick_photo_for_slot(slot, candidates, set())["id"] == "tall"

    def test_pick_falls_back_to_first_unused(self):
        slot = get_layout("photo-2-columns").photo_slots[0]
        candidates = [photo("a", 400, 300), photo("b", 500, 300)]
        assert pick_photo_for_slot(slot, candidates, {"a"})["id"] == "b"

    def test_square_slot_takes_non_square(self):
        slot = get_layout("photo-1-small-centered").photo_slots[0]  # 60x60
        candidates = [photo("land", 400, 300), photo("sq", 100, 100)]
        assert pick_photo_for_slot(slot, candidates, set())["id"] == "land"

    def test_pick_none_when_all_used(self):
        slot = get_layout("photo-1-full-bleed").photo_slots[0]
        assert pick_photo_for_slot(slot, [photo("a", 1, 2)], {"a"}) is None


class TestAutoAssign:

    def test_photos_fill_slots_with_positions(self):
        layout = get_layout("photo-2-stack")
        photos = [photo("p1", 400, 300), photo("p2", 400, 300), photo("p3", 400, 300)]
        out = auto_assign_photos_to_slots(layout, [], photos)
        assert [i["id"] for i in out] == ["p1", "p2"]
        assert out[0] == {
            "id": "p1",
            "type": "photo",
            "pageSide": "left",
            "slotId": "left-photo-1",
            "position": {"x": 8, "y": 4, "width": 84, "height": 42},
        }

    def test_existing_slot_is_kept_and_counts_as_used(self):
        layout = get_layout("photo-2-stack")
        existing = [{"id": "p2", "type": "photo", "slotId": "left-photo-1"}]
        photos = [photo("p2", 400, 300), photo("p5", 400, 300)]
        out = auto_assign_photos_to_slots(layout, existing, photos)
        assert [(i["slotId"], i["id"]) for i in out] == [("left-photo-1", "p2"), ("left-photo-2", "p5")]

    def test_slots_without_photo_are_left_out(self):
        layout = get_layout("photo-4-grid")
        out = auto_assign_photos_to_slots(layout, [], [photo("only", 10, 10)])
        assert len(out) == 1

    def test_inputs_not_mutated(self):
        layout = get_layout("photo-2-stack")
        existing = [{"id": "p1", "type": "photo", "slotId": "left-photo-1"}]
        photos = [photo("p1", 1, 1), photo("p2", 1, 1)]
        before = copy.deepcopy((existing, photos))
        out = auto_assign_photos_to_slots(layout, existing, photos)
        out[0]["id"] = "changed"
        assert (existing, photos) == before

    def test_entries_in_order_skipping_used(self):
        layout = get_layout("quote-3-stack")
        existing = [{"id": "e1", "type": "quote", "slotId": "right-quote-2"}]
        entries = [{"id": "e1"}, {"id": "e2"}, {"id": "e3"}, {"id": "e4"}]
        out = auto_assign_entries_to_slots(layout, existing, entries)
        assert [(i["slotId"], i["id"]) for i in out] == [
            ("right-quote-1", "e2"),
            ("right-quote-2", "e1"),
            ("right-quote-3", "e3"),
        ]
        assert all(i["type"] == "quote" for i in out)
        assert [i.get("pageSide") for i in out] == ["right", None, "right"]


class TestApplyLayoutToSpread:

    def test_photo_layout_sets_paired_quote_layout(self):
        page = {"id": "pg", "left_content": [], "right_content": []}
        photos = [photo("p1", 400, 300), photo("p2", 400, 300)]
        entries = [{"id": "e1"}, {"id": "e2"}, {"id": "e3"}]
        updates = apply_layout_to_spread(page, "photo-2-stack", photos=photos, entries=entries)
        assert updates["left_layout"] == "photo-2-stack"
        assert updates["right_layout"] == "quote-2-stack"
        assert [i["id"] for i in updates["left_content"]] == ["p1", "p2"]
        assert [i["id"] for i in updates["right_content"]] == ["e1", "e2"]

    def test_quote_layout_only_touches_right_page(self):
        page = {"left_layout": "photo-1-full-bleed", "left_content": [{"id": "p1", "type": "photo"}]}
        updates = apply_layout_to_spread(page, "quote-1-centered", photos=[], entries=[{"id": "e9"}])
        assert set(updates) == {"right_layout", "right_content"}
        assert updates["right_content"][0]["id"] == "e9"

    def test_cover_layout_sets_both_sides(self):
        page = {"left_content": [], "right_content": []}
        photos = [photo("back", 300, 400), photo("front", 300, 400)]
        updates = apply_layout_to_spread(page, "cover-wrap-photo", photos=photos, entries=[])
        assert updates["left_layout"] == updates["right_layout"] == "cover-wrap-photo"
        assert [i["id"] for i in updates["left_content"]] == ["back"]
        assert [i["id"] for i in updates["right_content"]] == ["front"]

    def test_items_in_missing_slots_are_dropped(self):
        page = {
            "left_content": [
                {"id": "p1", "type": "photo", "slotId": "left-photo-1"},
                {"id": "p2", "type": "photo", "slotId": "left-photo-2"},
            ],
            "right_content": [],
        }
        updates = apply_layout_to_spread(page, "photo-1-full-bleed", photos=[], entries=[], auto_fill=False)
        assert [i["id"] for i in updates["left_content"]] == ["p1"]
        assert updates["right_content"] == []

    def test_kept_items_take_new_slot_geometry(self):
        page = {
            "left_content": [
                {"id": "p1", "type": "photo", "pageSide": "left", "slotId": "left-photo-1",
                 "position": {"x": 8, "y": 4, "width": 84, "height": 42}},
            ],
            "right_content": [
                {"id": "e1", "type": "quote", "pageSide": "right", "slotId": "right-quote-1",
                 "position": {"x": 15, "y": 10, "width": 70, "height": 35}},
            ],
        }
        updates = apply_layout_to_spread(page, "photo-1-full-bleed", photos=[], entries=[])
        assert updates["left_content"] == [{
            "id": "p1", "type": "photo", "pageSide": "left", "slotId": "left-photo-1",
            "position": {"x": 0, "y": 0, "width": 100, "height": 100},
        }]
        assert updates["right_content"][0]["position"] == {"x": 20, "y": 20, "width": 60, "height": 60}

        back = apply_layout_to_spread({**page, **updates}, "photo-2-stack", photos=[], entries=[])
        assert back["left_content"][0]["position"] == {"x": 8, "y": 4, "width": 84, "height": 42}

    def test_unknown_layout_raises(self):
        with pytest.raises(ValueError):
            apply_layout_to_spread({}, "not-a-layout", photos=[], entries=[])

    def test_used_content_ids_skips_current_page(self):
        pages = [
            {"id": "a", "left_content": [{"id": "p1", "type": "photo"}], "right_content": [{"id": "e1", "type": "quote"}]},
            {"id": "b", "left_content": [{"id": "p2", "type": "photo"}], "right_content": []},
        ]
        assert used_content_ids(pages, "photo") == {"p1", "p2"}
        assert used_content_ids(pages, "photo", skip_page_id="b") == {"p1"}
        assert used_content_ids(pages, "quote") == {"e1"}
