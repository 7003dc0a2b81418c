"""
JSON file storage adapter for SaySo.
Simple file-based storage for quick demos and testing.
Not production-ready (no proper locking, not suitable for concurrent access).
"""
import json
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import HTTPException

TABLES = (
    "households",
    "household_members",
    "persons",
    "entries",
    "entry_tags",
    "attachments",
    "books",
    "book_entries",
    "book_pages",
    "book_photos",
    "parent_phone_numbers",
    "reminders",
)

Row = Dict[str, Any]


def _now() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat()


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores one JSON array per table under the data directory.
    Uses atomic file operations for basic consistency.
    """

    def __init__(self, data_dir: str = "data/json"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Initialize files if they don't exist
        for table in TABLES:
            path = self._path(table)
            if not path.exists():
                self._write_file(path, [])

    def _path(self, table: str) -> Path:
        return self.data_dir / f"{table}.json"

    def _read_file(self, filepath: Path) -> List[Row]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return []

    def _write_file(self, filepath: Path, data: List[Row]) -> None:
        """Write data to a JSON file atomically."""
        # Write to temporary file first
        tmp_file = filepath.with_suffix(".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        # Atomic rename
        tmp_file.replace(filepath)

    # ---- generic table helpers ----

    def _all(self, table: str) -> List[Row]:
        return self._read_file(self._path(table))

    def _save(self, table: str, rows: List[Row]) -> None:
        self._write_file(self._path(table), rows)

    def _find(self, table: str, pred: Callable[[Row], bool]) -> Optional[Row]:
        return next((r for r in self._all(table) if pred(r)), None)

    def _filter(self, table: str, pred: Callable[[Row], bool]) -> List[Row]:
        return [r for r in self._all(table) if pred(r)]

    def _insert(self, table: str, row: Row) -> Row:
        rows = self._all(table)
        clean = {k: _iso(v) for k, v in row.items()}
        rows.append(clean)
        self._save(table, rows)
        return dict(clean)

    def _update_by_id(self, table: str, row_id: str, values: Row) -> Optional[Row]:
        rows = self._all(table)
        hit = None
        for r in rows:
            if r.get("id") == row_id:
                r.update({k: _iso(v) for k, v in values.items()})
                hit = r
                break
        if hit is None:
            return None
        self._save(table, rows)
        return dict(hit)

    def _delete_where(self, table: str, pred: Callable[[Row], bool]) -> int:
        rows = self._all(table)
        kept = [r for r in rows if not pred(r)]
        if len(kept) != len(rows):
            self._save(table, kept)
        return len(rows) - len(kept)

    @staticmethod
    def _only(values: Row, allowed) -> Row:
        return {k: v for k, v in values.items() if k in set(allowed)}

    def ping(self) -> bool:
        return self.data_dir.is_dir()

    # ========== Households ==========

    def create_household(self, name: str, owner_id: str) -> Row:
        if self._find("household_members", lambda m: m["user_id"] == owner_id):
            raise HTTPException(status_code=409, detail="User already belongs to a household")
        now = _now()
        household = self._insert(
            "households",
            {"id": str(uuid.uuid4()), "owner_id": owner_id, "name": name, "created_at": now},
        )
        self._insert(
            "household_members",
            {"household_id": household["id"], "user_id": owner_id, "role": "owner", "created_at": now},
        )
        return household

    def get_household(self, household_id: str) -> Optional[Row]:
        return self._find("households", lambda h: h["id"] == household_id)

    def update_household(self, household_id: str, updates: Row) -> Optional[Row]:
        return self._update_by_id("households", household_id, self._only(updates, {"name"}))

    def get_membership(self, user_id: str) -> Optional[Row]:
        return self._find("household_members", lambda m: m["user_id"] == user_id)

    # ========== Persons ==========

    def list_persons(self, household_id: str) -> List[Row]:
        rows = self._filter("persons", lambda p: p["household_id"] == household_id)
        return sorted(rows, key=lambda p: p.get("display_name") or "")

    def create_person(self, household_id: str, display_name: str, birthdate=None, avatar_url=None) -> Row:
        return self._insert(
            "persons",
            {
                "id": str(uuid.uuid4()),
                "household_id": household_id,
                "display_name": display_name,
                "birthdate": birthdate,
                "avatar_url": avatar_url,
                "created_at": _now(),
            },
        )

    def get_person(self, person_id: str) -> Optional[Row]:
        return self._find("persons", lambda p: p["id"] == person_id)

    def update_person(self, person_id: str, updates: Row) -> Optional[Row]:
        return self._update_by_id(
            "persons", person_id, self._only(updates, {"display_name", "birthdate", "avatar_url"})
        )

    def delete_person(self, person_id: str) -> bool:
        rows = self._all("entries")
        for r in rows:
            if r.get("said_by") == person_id:
                r["said_by"] = None
        self._save("entries", rows)
        return self._delete_where("persons", lambda p: p["id"] == person_id) > 0

    # ========== Entries ==========

    def _attach_tags(self, items: List[Row]) -> List[Row]:
        tags = self.get_tags_for_entries([i["id"] for i in items])
        return [{**i, "tags": tags.get(i["id"], [])} for i in items]

    def _set_tags(self, entry_id: str, tags: List[str]) -> None:
        rows = [t for t in self._all("entry_tags") if t["entry_id"] != entry_id]
        rows.extend({"entry_id": entry_id, "tag": t} for t in tags)
        self._save("entry_tags", rows)

    def create_entry(
        self,
        *,
        household_id: str,
        text: str,
        said_by: Optional[str],
        captured_by: Optional[str],
        entry_type: str = "quote",
        source: str = "app",
        visibility: str = "household",
        entry_date: date,
        tags: Optional[List[str]] = None,
        created_at: Optional[datetime] = None,
    ) -> Row:
        entry = self._insert(
            "entries",
            {
                "id": str(uuid.uuid4()),
                "household_id": household_id,
                "said_by": said_by,
                "captured_by": captured_by,
                "text": text,
                "entry_type": entry_type,
                "source": source,
                "visibility": visibility,
                "entry_date": entry_date,
                "created_at": created_at or _now(),
            },
        )
        if tags:
            self._set_tags(entry["id"], tags)
        return self._attach_tags([entry])[0]

    def get_entry(self, entry_id: str) -> Optional[Row]:
        entry = self._find("entries", lambda e: e["id"] == entry_id)
        return self._attach_tags([entry])[0] if entry else None

    def update_entry(self, entry_id: str, updates: Row, tags: Optional[List[str]] = None) -> Optional[Row]:
        values = self._only(updates, {"text", "said_by", "entry_type", "visibility", "entry_date"})
        entry = self._update_by_id("entries", entry_id, values)
        if entry is None:
            return None
        if tags is not None:
            self._set_tags(entry_id, tags)
        return self._attach_tags([entry])[0]

    def delete_entry(self, entry_id: str) -> bool:
        self._delete_where("entry_tags", lambda t: t["entry_id"] == entry_id)
        self._delete_where("attachments", lambda a: a["entry_id"] == entry_id)
        self._delete_where("book_entries", lambda b: b["entry_id"] == entry_id)
        return self._delete_where("entries", lambda e: e["id"] == entry_id) > 0

    def list_entries(
        self,
        household_id: str,
        *,
        said_by: Optional[str] = None,
        tag: Optional[str] = None,
        q: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Row], int]:
        rows = self._filter("entries", lambda e: e["household_id"] == household_id)
        if said_by:
            rows = [e for e in rows if e.get("said_by") == said_by]
        if tag:
            wanted = tag.strip().lower()
            tagged = {t["entry_id"] for t in self._all("entry_tags") if t["tag"] == wanted}
            rows = [e for e in rows if e["id"] in tagged]
        if q:
            needle = q.lower()
            rows = [e for e in rows if needle in (e.get("text") or "").lower()]
        if date_from:
            rows = [e for e in rows if e["entry_date"] >= _iso(date_from)]
        if date_to:
            rows = [e for e in rows if e["entry_date"] <= _iso(date_to)]

        rows.sort(key=lambda e: (e["entry_date"], e["created_at"]), reverse=True)
        return self._attach_tags(rows[offset:offset + limit]), len(rows)

    def list_entries_in_range(self, household_id: str, date_start: date, date_end: date) -> List[Row]:
        start, end = _iso(date_start), _iso(date_end)
        rows = self._filter(
            "entries",
            lambda e: e["household_id"] == household_id and start <= e["entry_date"] <= end,
        )
        rows.sort(key=lambda e: (e["entry_date"], e["created_at"]))
        return self._attach_tags(rows)

    def list_all_entries(self, household_id: str) -> List[Row]:
        rows = self._filter("entries", lambda e: e["household_id"] == household_id)
        rows.sort(key=lambda e: (e["entry_date"], e["created_at"]))
        return self._attach_tags(rows)

    def get_tags_for_entries(self, entry_ids: List[str]) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {eid: [] for eid in entry_ids}
        wanted = set(entry_ids)
        for t in self._all("entry_tags"):
            if t["entry_id"] in wanted:
                out.setdefault(t["entry_id"], []).append(t["tag"])
        for tags in out.values():
            tags.sort()
        return out

    def list_entry_tags(self, entry_ids: List[str]) -> List[Row]:
        wanted = set(entry_ids)
        return self._filter("entry_tags", lambda t: t["entry_id"] in wanted)

    # ========== Attachments ==========

    def create_attachment(self, entry_id, kind, url, width=None, height=None, duration_seconds=None) -> Row:
        return self._insert(
            "attachments",
            {
                "id": str(uuid.uuid4()),
                "entry_id": entry_id,
                "kind": kind,
                "url": url,
                "width": width,
                "height": height,
                "duration_seconds": duration_seconds,
                "created_at": _now(),
            },
        )

    def list_attachments(self, entry_ids: List[str]) -> List[Row]:
        wanted = set(entry_ids)
        return self._filter("attachments", lambda a: a["entry_id"] in wanted)

    # ========== Books ==========

    _BOOK_FIELDS = (
        "title", "date_start", "date_end", "size", "theme", "cover_style",
        "dedication", "status", "design_mode", "pdf_url", "pdf_path",
    )

    def create_book(self, household_id: str, data: Row, page_count: int = 0) -> Row:
        now = _now()
        row = {field: None for field in self._BOOK_FIELDS}
        row.update({"size": "6x9", "theme": "classic", "cover_style": "linen",
                    "status": "draft", "design_mode": "manual"})
        row.update(self._only(data, self._BOOK_FIELDS))
        book = self._insert(
            "books",
            {"id": str(uuid.uuid4()), "household_id": household_id, "created_at": now, "updated_at": now, **row},
        )
        if page_count > 0:
            self.replace_pages(book["id"], [{"page_number": n} for n in range(1, page_count + 1)])
        return book

    def get_book(self, book_id: str) -> Optional[Row]:
        return self._find("books", lambda b: b["id"] == book_id)

    def list_books(self, household_id: str) -> List[Row]:
        rows = self._filter("books", lambda b: b["household_id"] == household_id)
        return sorted(rows, key=lambda b: b["created_at"], reverse=True)

    def find_book_by_range(self, household_id: str, date_start: date, date_end: date) -> Optional[Row]:
        start, end = _iso(date_start), _iso(date_end)
        return self._find(
            "books",
            lambda b: b["household_id"] == household_id and b.get("date_start") == start and b.get("date_end") == end,
        )

    def update_book(self, book_id: str, updates: Row) -> Optional[Row]:
        values = self._only(updates, self._BOOK_FIELDS)
        if not values:
            return self.get_book(book_id)
        values["updated_at"] = _now()
        return self._update_by_id("books", book_id, values)

    def delete_book(self, book_id: str) -> bool:
        self._delete_where("book_pages", lambda p: p["book_id"] == book_id)
        self._delete_where("book_photos", lambda p: p["book_id"] == book_id)
        self._delete_where("book_entries", lambda b: b["book_id"] == book_id)
        return self._delete_where("books", lambda b: b["id"] == book_id) > 0

    def replace_book_entries(self, book_id: str, entry_ids: List[str]) -> None:
        rows = [b for b in self._all("book_entries") if b["book_id"] != book_id]
        rows.extend({"book_id": book_id, "entry_id": eid, "position": i + 1} for i, eid in enumerate(entry_ids))
        self._save("book_entries", rows)

    def list_book_entries(self, book_id: str) -> List[Row]:
        rows = self._filter("book_entries", lambda b: b["book_id"] == book_id)
        return sorted(rows, key=lambda b: b["position"])

    # ========== Book pages ==========

    @staticmethod
    def _page_out(page: Row) -> Row:
        page = dict(page)
        page["left_content"] = page.get("left_content") or []
        page["right_content"] = page.get("right_content") or []
        return page

    def list_pages(self, book_id: str) -> List[Row]:
        rows = self._filter("book_pages", lambda p: p["book_id"] == book_id)
        return [self._page_out(p) for p in sorted(rows, key=lambda p: p["page_number"])]

    def get_page(self, page_id: str) -> Optional[Row]:
        page = self._find("book_pages", lambda p: p["id"] == page_id)
        return self._page_out(page) if page else None

    def upsert_page(self, book_id: str, page_number: int, data: Row) -> Row:
        values = self._only(data, {"left_layout", "right_layout", "left_content", "right_content"})
        existing = self._find(
            "book_pages", lambda p: p["book_id"] == book_id and p["page_number"] == page_number
        )
        if existing:
            values["updated_at"] = _now()
            return self._page_out(self._update_by_id("book_pages", existing["id"], values))

        now = _now()
        row = {
            "id": str(uuid.uuid4()),
            "book_id": book_id,
            "page_number": page_number,
            "left_layout": None,
            "right_layout": None,
            "left_content": [],
            "right_content": [],
            "created_at": now,
            "updated_at": now,
        }
        row.update(values)
        return self._page_out(self._insert("book_pages", row))

    def update_page(self, page_id: str, updates: Row) -> Optional[Row]:
        values = self._only(updates, {"page_number", "left_layout", "right_layout", "left_content", "right_content"})
        page = self.get_page(page_id)
        if page is None:
            return None
        if "page_number" in values and values["page_number"] != page["page_number"]:
            clash = self._find(
                "book_pages",
                lambda p: p["book_id"] == page["book_id"] and p["page_number"] == values["page_number"],
            )
            if clash:
                raise HTTPException(status_code=409, detail="page_number already used in this book")
        values["updated_at"] = _now()
        return self._page_out(self._update_by_id("book_pages", page_id, values))

    def delete_page(self, page_id: str) -> bool:
        return self._delete_where("book_pages", lambda p: p["id"] == page_id) > 0

    def replace_pages(self, book_id: str, pages_in: List[Row]) -> List[Row]:
        now = _now()
        rows = [p for p in self._all("book_pages") if p["book_id"] != book_id]
        for p in pages_in:
            rows.append(
                {
                    "id": str(uuid.uuid4()),
                    "book_id": book_id,
                    "page_number": int(p["page_number"]),
                    "left_layout": p.get("left_layout"),
                    "right_layout": p.get("right_layout"),
                    "left_content": p.get("left_content") or [],
                    "right_content": p.get("right_content") or [],
                    "created_at": now,
                    "updated_at": now,
                }
            )
        self._save("book_pages", rows)
        return self.list_pages(book_id)

    # ========== Book photos ==========

    def list_photos(self, book_id: str) -> List[Row]:
        rows = self._filter("book_photos", lambda p: p["book_id"] == book_id)
        return sorted(rows, key=lambda p: p["created_at"], reverse=True)

    def create_photo(self, book_id, url, filename, width=None, height=None) -> Row:
        return self._insert(
            "book_photos",
            {
                "id": str(uuid.uuid4()),
                "book_id": book_id,
                "url": url,
                "filename": filename,
                "width": width,
                "height": height,
                "created_at": _now(),
            },
        )

    def get_photo(self, photo_id: str) -> Optional[Row]:
        return self._find("book_photos", lambda p: p["id"] == photo_id)

    def delete_photo(self, photo_id: str) -> bool:
        return self._delete_where("book_photos", lambda p: p["id"] == photo_id) > 0

    # ========== Phone numbers ==========

    def add_phone_number(self, household_id: str, user_id: str, phone_number: str) -> Row:
        if self.find_phone_number(phone_number):
            raise HTTPException(status_code=409, detail="Phone number already registered")
        return self._insert(
            "parent_phone_numbers",
            {
                "id": str(uuid.uuid4()),
                "household_id": household_id,
                "user_id": user_id,
                "phone_number": phone_number,
                "created_at": _now(),
            },
        )

    def find_phone_number(self, phone_number: str) -> Optional[Row]:
        return self._find("parent_phone_numbers", lambda p: p["phone_number"] == phone_number)

    def list_phone_numbers(self, household_id: str) -> List[Row]:
        return self._filter("parent_phone_numbers", lambda p: p["household_id"] == household_id)

    def delete_phone_number(self, phone_id: str) -> bool:
        return self._delete_where("parent_phone_numbers", lambda p: p["id"] == phone_id) > 0

    # ========== Reminders ==========

    _REMINDER_FIELDS = ("channel", "frequency", "weekday", "hour", "tz", "enabled", "destination")

    def create_reminder(self, household_id: str, user_id: str, data: Row) -> Row:
        row = {"channel": "email", "frequency": "weekly", "weekday": None, "hour": None,
               "tz": "UTC", "enabled": True, "destination": None}
        row.update(self._only(data, self._REMINDER_FIELDS))
        return self._insert(
            "reminders",
            {"id": str(uuid.uuid4()), "household_id": household_id, "user_id": user_id,
             "created_at": _now(), **row},
        )

    def get_reminder(self, reminder_id: str) -> Optional[Row]:
        return self._find("reminders", lambda r: r["id"] == reminder_id)

    def list_reminders(self, household_id: str, user_id: Optional[str] = None) -> List[Row]:
        return self._filter(
            "reminders",
            lambda r: r["household_id"] == household_id and (user_id is None or r["user_id"] == user_id),
        )

    def update_reminder(self, reminder_id: str, updates: Row) -> Optional[Row]:
        return self._update_by_id("reminders", reminder_id, self._only(updates, self._REMINDER_FIELDS))

    def delete_reminder(self, reminder_id: str) -> bool:
        return self._delete_where("reminders", lambda r: r["id"] == reminder_id) > 0

    def list_enabled_reminders(self) -> List[Row]:
        return self._filter("reminders", lambda r: bool(r.get("enabled")))
