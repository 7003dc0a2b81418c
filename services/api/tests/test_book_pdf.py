"""
Tests for book PDF rendering, auto-generation and the render pipeline.

Run with: pytest tests/test_book_pdf.py -v
"""
import asyncio
from datetime import date

import pytest
from PIL import Image

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adapters.sqlite import SqliteAdapter
from core.auto_generate import NoEntriesError, build_auto_pages, regenerate_book_from_entries
from core.book_pdf import (
    format_date_range,
    format_long_date,
    generate_book_pdf,
    generate_designed_book_pdf,
    group_entries_by_month,
    month_label,
    page_has_design,
    pdf_safe,
)
from core.book_render import NoEntriesToRender, render_book, uses_designed_pages


def entry(eid, text, day, said_by=None):
    return {"id": eid, "text": text, "entry_date": day, "said_by": said_by, "tags": []}


class TestTextHelpers:

    def test_pdf_safe_folds_typography(self):
        assert pdf_safe("\u201cHi\u201d \u2013 it\u2019s me\u2026") == '"Hi" - it\'s me...'
        assert pdf_safe(None) == ""

    def test_pdf_safe_replaces_unencodable(self):
        assert pdf_safe("ok \U0001F600") == "ok ?"

    def test_date_range(self):
        assert format_date_range("2024-01-01", "2024-12-31") == "2024"
        assert format_date_range(date(2023, 3, 1), date(2024, 5, 2)) == "March 1, 2023 - May 2, 2024"
        assert format_date_range(None, "2024-01-01") == ""

    def test_long_date(self):
        assert format_long_date("2024-07-04") == "July 4, 2024"

    def test_group_by_month(self):
        groups = group_entries_by_month([
            entry("b", "x", "2024-03-09"),
            entry("a", "x", "2024-01-02"),
            entry("c", "x", "2024-03-01"),
        ])
        assert list(groups) == ["2024-01", "2024-03"]
        assert [e["id"] for e in groups["2024-03"]] == ["b", "c"]
        assert month_label("2024-03") == "March 2024"


class TestGenerateBookPdf:

    def test_auto_book(self):
        book = {
            "id": "b1",
            "title": "Our Year",
            "date_start": "2024-01-01",
            "date_end": "2024-12-31",
            "size": "8x10",
            "theme": "playful",
            "cover_style": "gradient",
            "dedication": "For Grandma",
        }
        persons = [{"id": "p1", "display_name": "Zeke"}]
        entries = [
            entry("e1", "Do ya like jazz?", "2024-01-05", "p1"),
            entry("e2", "word " * 60, "2024-02-10", "p1"),
        ]
        data = generate_book_pdf(book=book, entries=entries, persons=persons, tags={"e2": ["long", "story"]})
        assert data.startswith(b"%PDF")
        # cover, title page, two month dividers, two entry pages
        assert b"/Count 6" in data

    def test_defaults_for_minimal_book(self):
        data = generate_book_pdf(book={"date_start": "2024-01-01", "date_end": "2025-01-01"},
                                 entries=[entry("e1", "Hi", "2024-05-05")], persons=[])
        assert data.startswith(b"%PDF")


class TestDesignedBookPdf:

    def test_spreads_with_photo_and_placeholder(self):
        book = {"id": "b1", "title": "Designed", "size": "6x9", "theme": "classic"}
        pages = [
            {"page_number": 1, "left_layout": None, "right_layout": None, "left_content": [], "right_content": []},
            {
                "page_number": 2,
                "left_layout": "photo-2-stack",
                "right_layout": "quote-2-stack",
                "left_content": [
                    {"id": "ph1", "type": "photo", "pageSide": "left", "slotId": "left-photo-1"},
                    {"id": "ph2", "type": "photo", "pageSide": "left", "slotId": "left-photo-2"},
                ],
                "right_content": [
                    {"id": "e1", "type": "quote", "pageSide": "right", "slotId": "right-quote-1"},
                ],
            },
            {"page_number": 3, "left_layout": None, "right_layout": None, "left_content": [], "right_content": []},
        ]
        photos = {
            "ph1": {"id": "ph1", "url": "http://img/1.jpg"},
            "ph2": {"id": "ph2", "url": "http://img/missing.jpg"},
        }
        data = generate_designed_book_pdf(
            book=book,
            pages=pages,
            entries_by_id={"e1": entry("e1", "The moon is following us", "2024-01-01")},
            persons=[],
            photos_by_id=photos,
            images_by_url={"http://img/1.jpg": Image.new("RGB", (400, 300), (200, 40, 40))},
        )
        assert data.startswith(b"%PDF")
        # plain cover + one spread (left and right); empty page 3 skipped
        assert b"/Count 3" in data

    def test_page_has_design(self):
        assert not page_has_design({"left_content": [], "right_content": []})
        assert page_has_design({"right_layout": "quote-1-centered"})
        assert page_has_design({"left_content": [{"id": "x"}]})


class TestAutoGenerate:

    def test_build_auto_pages(self):
        pages = build_auto_pages([{"id": "a"}, {"id": "b"}])
        assert [p["page_number"] for p in pages] == [1, 2, 3]
        assert pages[0]["left_layout"] is None and pages[0]["left_content"] == []
        assert pages[2] == {
            "page_number": 3,
            "left_layout": "quote-1-centered",
            "right_layout": None,
            "left_content": [{"id": "b", "type": "quote"}],
            "right_content": [],
        }

    def test_regenerate(self):
        storage = SqliteAdapter.from_url("sqlite://")
        household_id = storage.create_household("Gen", "u1")["id"]
        book = storage.create_book(household_id, {"date_start": date(2024, 1, 1), "date_end": date(2024, 12, 31)},
                                   page_count=24)
        late = storage.create_entry(household_id=household_id, text="late", said_by=None, captured_by="u1",
                                    entry_date=date(2024, 9, 1))
        early = storage.create_entry(household_id=household_id, text="early", said_by=None, captured_by="u1",
                                     entry_date=date(2024, 2, 1))
        storage.create_entry(household_id=household_id, text="other year", said_by=None, captured_by="u1",
                             entry_date=date(2023, 2, 1))

        entries, pages = regenerate_book_from_entries(
            storage, book_id=book["id"], household_id=household_id,
            date_start=date(2024, 1, 1), date_end=date(2024, 12, 31),
        )
        assert [e["id"] for e in entries] == [early["id"], late["id"]]
        assert len(storage.list_pages(book["id"])) == 3
        assert pages[1]["left_content"] == [{"id": early["id"], "type": "quote"}]
        assert [(r["entry_id"], r["position"]) for r in storage.list_book_entries(book["id"])] == [
            (early["id"], 1), (late["id"], 2),
        ]
        storage.engine.dispose()

    def test_regenerate_without_entries(self):
        storage = SqliteAdapter.from_url("sqlite://")
        household_id = storage.create_household("Empty", "u1")["id"]
        book = storage.create_book(household_id, {"date_start": date(2024, 1, 1), "date_end": date(2024, 12, 31)},
                                   page_count=24)
        with pytest.raises(NoEntriesError):
            regenerate_book_from_entries(storage, book_id=book["id"], household_id=household_id,
                                         date_start=date(2024, 1, 1), date_end=date(2024, 12, 31))
        assert len(storage.list_pages(book["id"])) == 24
        storage.engine.dispose()


@pytest.fixture
def render_store():
    storage = SqliteAdapter.from_url("sqlite://")
    household_id = storage.create_household("Render", "u1")["id"]
    yield storage, household_id
    storage.engine.dispose()


class TestRenderBook:

    def _book(self, storage, household_id, **extra):
        data = {"title": "Render Me", "date_start": date(2024, 1, 1), "date_end": date(2024, 12, 31),
                "design_mode": "manual", **extra}
        return storage.create_book(household_id, data, page_count=2)

    def test_renders_auto_when_no_design(self, render_store, tmp_path):
        storage, household_id = render_store
        book = self._book(storage, household_id)
        storage.create_entry(household_id=household_id, text="hello", said_by=None, captured_by="u1",
                             entry_date=date(2024, 4, 4))

        updated = asyncio.run(render_book(storage, book, output_dir=str(tmp_path)))
        assert updated["status"] == "ready"
        assert updated["pdf_url"] == f"/books/{book['id']}/download"
        with open(updated["pdf_path"], "rb") as f:
            assert f.read(4) == b"%PDF"
        assert not uses_designed_pages(book, storage.list_pages(book["id"]))

    def test_renders_designed_pages(self, render_store, tmp_path):
        storage, household_id = render_store
        book = self._book(storage, household_id)
        e = storage.create_entry(household_id=household_id, text="hello", said_by=None, captured_by="u1",
                                 entry_date=date(2024, 4, 4))
        ph = storage.create_photo(book["id"], "http://img/a.jpg", "a.jpg", width=400, height=300)
        storage.upsert_page(book["id"], 2, {
            "left_layout": "photo-1-full-bleed",
            "right_layout": "quote-1-centered",
            "left_content": [{"id": ph["id"], "type": "photo", "pageSide": "left", "slotId": "left-photo-1"}],
            "right_content": [{"id": e["id"], "type": "quote", "pageSide": "right", "slotId": "right-quote-1"}],
        })
        requested = []

        async def fake_loader(urls, timeout):
            requested.extend(urls)
            return {"http://img/a.jpg": Image.new("RGB", (400, 300))}

        updated = asyncio.run(render_book(storage, book, output_dir=str(tmp_path), image_loader=fake_loader))
        assert updated["status"] == "ready"
        assert requested == ["http://img/a.jpg"]

    def test_no_entries_sets_error(self, render_store, tmp_path):
        storage, household_id = render_store
        book = self._book(storage, household_id)
        with pytest.raises(NoEntriesToRender):
            asyncio.run(render_book(storage, book, output_dir=str(tmp_path)))
        assert storage.get_book(book["id"])["status"] == "error"

    def test_second_render_replaces_file(self, render_store, tmp_path):
        storage, household_id = render_store
        book = self._book(storage, household_id)
        storage.create_entry(household_id=household_id, text="hello", said_by=None, captured_by="u1",
                             entry_date=date(2024, 4, 4))
        first = asyncio.run(render_book(storage, book, output_dir=str(tmp_path)))
        second = asyncio.run(render_book(storage, storage.get_book(book["id"]), output_dir=str(tmp_path)))
        assert not os.path.exists(first["pdf_path"]) or first["pdf_path"] == second["pdf_path"]
        assert os.path.exists(second["pdf_path"])

    def test_storage_failure_sets_error(self, render_store, tmp_path, monkeypatch):
        storage, household_id = render_store
        book = self._book(storage, household_id)

        def db_down(*args, **kwargs):
            raise RuntimeError("db down")

        monkeypatch.setattr(type(storage), "list_entries_in_range", db_down)
        with pytest.raises(RuntimeError):
            asyncio.run(render_book(storage, book, output_dir=str(tmp_path)))
        assert storage.get_book(book["id"])["status"] == "error"
