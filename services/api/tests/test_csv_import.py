"""
Tests for CSV parsing and bulk entry import.

Run with: pytest tests/test_csv_import.py -v
"""
from datetime import date

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adapters.sqlite import SqliteAdapter
from core.csv_import import import_entries, parse_csv, parse_import_date, split_tags

TODAY = date(2024, 6, 1)


class TestParseImportDate:

    @pytest.mark.parametrize("raw,expected", [
        ("2023-04-05", date(2023, 4, 5)),
        ("2023-04-05T10:00:00Z", date(2023, 4, 5)),
        ("4/5/2023", date(2023, 4, 5)),
        ("04/05/23", date(2023, 4, 5)),
        ("April 5, 2023", date(2023, 4, 5)),
        ("Apr 5, 2023", date(2023, 4, 5)),
    ])
    def test_formats(self, raw, expected):
        assert parse_import_date(raw, today=TODAY) == expected

    @pytest.mark.parametrize("raw", [None, "", "someday", "13/45/2020"])
    def test_unparseable_is_today(self, raw):
        assert parse_import_date(raw, today=TODAY) == TODAY


class TestSplitTags:

    def test_split(self):
        assert split_tags("Funny; car, funny ,") == ["funny", "car"]
        assert split_tags(None) == []
        assert split_tags(["A", "a", "b"]) == ["a", "b"]


class TestParseCsv:

    def test_basic(self):
        content = (
            "Text,Said_By,Date,Tags\n"
            '"Hello, world",Zeke,2024-01-02,"funny;sweet"\n'
            "Bye,,,\n"
        )
        result = parse_csv(content)
        assert len(result.rows) == 2
        assert result.rows[0] == {
            "text": "Hello, world",
            "said_by": "Zeke",
            "date": "2024-01-02",
            "tags": ["funny", "sweet"],
            "type": None,
            "notes": None,
        }
        assert result.rows[1]["said_by"] is None

    def test_quoted_newline_and_escaped_quote(self):
        content = 'text\n"He said ""hi""\nthen left"\n'
        result = parse_csv(content)
        assert result.rows[0]["text"] == 'He said "hi"\nthen left'

    def test_skips_empty_and_long(self):
        content = "text,said_by\n,Zeke\n" + ("x" * 501) + ",Mia\nok,Mia\n"
        result = parse_csv(content)
        assert [r["text"] for r in result.rows] == ["ok"]
        assert result.skipped == 2
        assert result.warnings == ["Row 3: Text exceeds 500 characters, skipping"]

    def test_bom_is_ignored(self):
        result = parse_csv("\ufefftext\nhi\n")
        assert result.rows[0]["text"] == "hi"

    def test_requires_text_column(self):
        with pytest.raises(ValueError):
            parse_csv("quote,said_by\nhi,Zeke\n")

    def test_requires_data_row(self):
        with pytest.raises(ValueError):
            parse_csv("text\n")


@pytest.fixture
def store():
    storage = SqliteAdapter.from_url("sqlite://")
    household = storage.create_household("Import Family", "importer")
    yield storage, household["id"]
    storage.engine.dispose()


class TestImportEntries:

    def test_creates_entries_and_persons(self, store):
        storage, household_id = store
        existing = storage.create_person(household_id, "Zeke")
        rows = [
            {"text": "one", "said_by": "zeke", "date": "2024-01-02", "tags": ["A", "a"], "type": "milestone"},
            {"text": "two", "said_by": "Mia", "date": "garbage", "tags": "x;y", "type": "joke"},
            {"text": "three", "said_by": "MIA"},
        ]
        result = import_entries(storage, household_id=household_id, user_id="importer", rows=rows, today=TODAY)
        assert result == {"created": 3, "errors": 0, "total": 3}

        persons = storage.list_persons(household_id)
        assert sorted(p["display_name"] for p in persons) == ["Mia", "Zeke"]
        mia = next(p for p in persons if p["display_name"] == "Mia")

        entries = storage.list_all_entries(household_id)
        by_text = {e["text"]: e for e in entries}
        assert by_text["one"]["said_by"] == existing["id"]
        assert by_text["one"]["entry_type"] == "milestone"
        assert by_text["one"]["tags"] == ["a"]
        assert by_text["two"]["entry_type"] == "quote"
        assert by_text["two"]["entry_date"] == TODAY.isoformat()
        assert by_text["two"]["tags"] == ["x", "y"]
        assert by_text["three"]["said_by"] == mia["id"]
        assert all(e["source"] == "import" for e in entries)

    def test_bad_rows_counted(self, store):
        storage, household_id = store
        rows = [{"text": ""}, {"text": "y" * 501}, {"text": "fine"}]
        result = import_entries(storage, household_id=household_id, user_id="importer", rows=rows)
        assert result == {"created": 1, "errors": 2, "total": 3}
