"""
Tests for validation functions.

Run with: pytest tests/test_validation.py -v
"""
from datetime import date

import pytest
from fastapi import HTTPException

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.validation import (
    validate_entry_text,
    normalize_tags,
    validate_date_range,
    validate_page_count,
    validate_timezone,
    coerce_entry_type,
)


class TestValidateEntryText:
    """Tests for entry text validation."""

    def test_trims(self):
        assert validate_entry_text("  hello  ") == "hello"

    def test_empty_rejected(self):
        for value in (None, "", "   \n"):
            with pytest.raises(HTTPException) as exc:
                validate_entry_text(value)
            assert exc.value.status_code == 400

    def test_length_limit(self):
        assert validate_entry_text("x" * 500) == "x" * 500
        with pytest.raises(HTTPException) as exc:
            validate_entry_text("x" * 501)
        assert exc.value.status_code == 400
        assert "500" in exc.value.detail

    def test_custom_limit(self):
        with pytest.raises(HTTPException):
            validate_entry_text("abcdef", max_length=5)


class TestNormalizeTags:

    def test_trim_lower_dedupe(self):
        assert normalize_tags([" Funny", "funny", "", "  ", "Car Ride"]) == ["funny", "car ride"]

    def test_none(self):
        assert normalize_tags(None) == []
        assert normalize_tags([None, "a"]) == ["a"]


class TestValidateDateRange:

    def test_valid(self):
        validate_date_range(date(2024, 1, 1), date(2024, 12, 31))
        validate_date_range(date(2024, 5, 5), date(2024, 5, 5))

    def test_missing(self):
        with pytest.raises(HTTPException) as exc:
            validate_date_range(None, date(2024, 1, 1))
        assert exc.value.status_code == 400

    def test_backwards(self):
        with pytest.raises(HTTPException) as exc:
            validate_date_range(date(2024, 2, 1), date(2024, 1, 1))
        assert exc.value.status_code == 400


class TestValidatePageCount:

    def test_allowed(self):
        validate_page_count(40, [24, 40, 60])

    def test_not_allowed(self):
        with pytest.raises(HTTPException) as exc:
            validate_page_count(30, [24, 40, 60])
        assert exc.value.status_code == 400
        assert "24, 40, 60" in exc.value.detail


class TestValidateTimezone:

    def test_known(self):
        assert validate_timezone("America/New_York") == "America/New_York"
        assert validate_timezone("UTC") == "UTC"

    def test_unknown(self):
        with pytest.raises(HTTPException) as exc:
            validate_timezone("Mars/Olympus_Mons")
        assert exc.value.status_code == 400


class TestCoerceEntryType:
    """Tests for entry type coercion."""

    def test_valid_types(self):
        assert coerce_entry_type("quote") == "quote"
        assert coerce_entry_type("Milestone") == "milestone"
        assert coerce_entry_type(" note ") == "note"

    def test_unknown_becomes_quote(self):
        assert coerce_entry_type("joke") == "quote"
        assert coerce_entry_type(None) == "quote"
        assert coerce_entry_type("") == "quote"
