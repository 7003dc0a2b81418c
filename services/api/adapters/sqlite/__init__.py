# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from fastapi import HTTPException
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)


def _is_memory_url(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///:memory:")


def make_engine(db_url: str) -> Engine:
    if _is_memory_url(db_url):
        # One shared connection, otherwise every checkout sees an empty DB
        engine = create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif db_url.startswith("sqlite"):
        # Create data dir if sqlite file
        if db_url.startswith("sqlite:///"):
            _ensure_dir(db_url.replace("sqlite:///", "", 1))
        engine = create_engine(
            db_url,
            future=True,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(
            db_url,
            future=True,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            if not _is_memory_url(db_url):
                cursor.execute("PRAGMA journal_mode=WAL;")
                cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

households = Table(
    "households",
    metadata,
    Column("id", String, primary_key=True),
    Column("owner_id", String, nullable=False),
    Column("name", String, nullable=False),
    Column("created_at", DateTime, nullable=False),
)

household_members = Table(
    "household_members",
    metadata,
    Column("household_id", String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", String, nullable=False),
    Column("role", String, nullable=False, default="member"),
    Column("created_at", DateTime, nullable=False),
    UniqueConstraint("user_id", name="uq_member_user"),
)

persons = Table(
    "persons",
    metadata,
    Column("id", String, primary_key=True),
    Column("household_id", String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
    Column("display_name", String, nullable=False),
    Column("birthdate", Date, nullable=True),
    Column("avatar_url", Text, nullable=True),
    Column("created_at", DateTime, nullable=False),
)

entries = Table(
    "entries",
    metadata,
    Column("id", String, primary_key=True),
    Column("household_id", String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
    Column("said_by", String, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True),
    Column("captured_by", String, nullable=True),
    Column("text", Text, nullable=False),
    Column("entry_type", String, nullable=False, default="quote"),
    Column("source", String, nullable=False, default="app"),
    Column("visibility", String, nullable=False, default="household"),
    Column("entry_date", Date, nullable=False),
    Column("created_at", DateTime, nullable=False),
)

entry_tags = Table(
    "entry_tags",
    metadata,
    Column("entry_id", String, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
    Column("tag", String, nullable=False),
    UniqueConstraint("entry_id", "tag", name="uq_entry_tag"),
)

attachments = Table(
    "attachments",
    metadata,
    Column("id", String, primary_key=True),
    Column("entry_id", String, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
    Column("kind", String, nullable=False),
    Column("url", Text, nullable=False),
    Column("width", Integer, nullable=True),
    Column("height", Integer, nullable=True),
    Column("duration_seconds", Float, nullable=True),
    Column("created_at", DateTime, nullable=False),
)

books = Table(
    "books",
    metadata,
    Column("id", String, primary_key=True),
    Column("household_id", String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
    Column("title", String, nullable=True),
    Column("date_start", Date, nullable=True),
    Column("date_end", Date, nullable=True),
    Column("size", String, nullable=False, default="6x9"),
    Column("theme", String, nullable=False, default="classic"),
    Column("cover_style", String, nullable=False, default="linen"),
    Column("dedication", Text, nullable=True),
    Column("status", String, nullable=False, default="draft"),
    Column("design_mode", String, nullable=False, default="manual"),
    Column("pdf_url", Text, nullable=True),
    Column("pdf_path", Text, nullable=True),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

book_entries = Table(
    "book_entries",
    metadata,
    Column("book_id", String, ForeignKey("books.id", ondelete="CASCADE"), nullable=False),
    Column("entry_id", String, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
    Column("position", Integer, nullable=False),
    UniqueConstraint("book_id", "entry_id", name="uq_book_entry"),
)

book_pages = Table(
    "book_pages",
    metadata,
    Column("id", String, primary_key=True),
    Column("book_id", String, ForeignKey("books.id", ondelete="CASCADE"), nullable=False),
    Column("page_number", Integer, nullable=False),
    Column("left_layout", String, nullable=True),
    Column("right_layout", String, nullable=True),
    Column("left_content", JSON, nullable=True),
    Column("right_content", JSON, nullable=True),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    UniqueConstraint("book_id", "page_number", name="uq_book_page_number"),
)

book_photos = Table(
    "book_photos",
    metadata,
    Column("id", String, primary_key=True),
    Column("book_id", String, ForeignKey("books.id", ondelete="CASCADE"), nullable=False),
    Column("url", Text, nullable=False),
    Column("filename", String, nullable=False),
    Column("width", Integer, nullable=True),
    Column("height", Integer, nullable=True),
    Column("created_at", DateTime, nullable=False),
)

parent_phone_numbers = Table(
    "parent_phone_numbers",
    metadata,
    Column("id", String, primary_key=True),
    Column("household_id", String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", String, nullable=False),
    Column("phone_number", String, nullable=False),
    Column("created_at", DateTime, nullable=False),
    UniqueConstraint("phone_number", name="uq_phone_number"),
)

reminders = Table(
    "reminders",
    metadata,
    Column("id", String, primary_key=True),
    Column("household_id", String, ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", String, nullable=False),
    Column("channel", String, nullable=False, default="email"),
    Column("frequency", String, nullable=False, default="weekly"),
    Column("weekday", Integer, nullable=True),
    Column("hour", Integer, nullable=True),
    Column("tz", String, nullable=False, default="UTC"),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("destination", String, nullable=True),
    Column("created_at", DateTime, nullable=False),
)

Index("idx_persons_household", persons.c.household_id)
Index("idx_entries_household_date", entries.c.household_id, entries.c.entry_date)
Index("idx_entries_said_by", entries.c.said_by)
Index("idx_entry_tags_tag", entry_tags.c.tag)
Index("idx_books_household", books.c.household_id)
Index("idx_book_pages_book", book_pages.c.book_id, book_pages.c.page_number)
Index("idx_book_photos_book", book_photos.c.book_id)
Index("idx_reminders_household", reminders.c.household_id)

# ---- Row helpers ------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _plain(row: Any) -> Dict[str, Any]:
    """Mapping row -> dict with ISO strings for dates, like the JSON store."""
    out: Dict[str, Any] = {}
    for key, value in dict(row).items():
        if isinstance(value, (datetime, date)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


def _page_dict(row: Any) -> Dict[str, Any]:
    page = _plain(row)
    page["left_content"] = page.get("left_content") or []
    page["right_content"] = page.get("right_content") or []
    return page


def _as_date(value: Any) -> Any:
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return value


def _only(updates: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    allowed = set(allowed)
    return {k: v for k, v in updates.items() if k in allowed}

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/sayso.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True

    # Households
    def create_household(self, name: str, owner_id: str) -> Dict[str, Any]:
        household_id = str(uuid4())
        now = _utcnow()
        with self.engine.begin() as conn:
            existing = conn.execute(
                select(household_members.c.household_id).where(household_members.c.user_id == owner_id)
            ).first()
            if existing:
                raise HTTPException(status_code=409, detail="User already belongs to a household")

            conn.execute(
                insert(households).values(id=household_id, owner_id=owner_id, name=name, created_at=now)
            )
            conn.execute(
                insert(household_members).values(
                    household_id=household_id, user_id=owner_id, role="owner", created_at=now
                )
            )
            row = conn.execute(select(households).where(households.c.id == household_id)).mappings().first()
        return _plain(row)

    def get_household(self, household_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(households).where(households.c.id == household_id)).mappings().first()
        return _plain(row) if row else None

    def update_household(self, household_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        values = _only(updates, {"name"})
        with self.engine.begin() as conn:
            if values:
                conn.execute(update(households).where(households.c.id == household_id).values(**values))
            row = conn.execute(select(households).where(households.c.id == household_id)).mappings().first()
        return _plain(row) if row else None

    def get_membership(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(household_members).where(household_members.c.user_id == user_id)
            ).mappings().first()
        return _plain(row) if row else None

    # Persons
    def list_persons(self, household_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(persons)
                .where(persons.c.household_id == household_id)
                .order_by(persons.c.display_name.asc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    def create_person(
        self,
        household_id: str,
        display_name: str,
        birthdate: Optional[date] = None,
        avatar_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        person_id = str(uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                insert(persons).values(
                    id=person_id,
                    household_id=household_id,
                    display_name=display_name,
                    birthdate=_as_date(birthdate),
                    avatar_url=avatar_url,
                    created_at=_utcnow(),
                )
            )
            row = conn.execute(select(persons).where(persons.c.id == person_id)).mappings().first()
        return _plain(row)

    def get_person(self, person_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(persons).where(persons.c.id == person_id)).mappings().first()
        return _plain(row) if row else None

    def update_person(self, person_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        values = _only(updates, {"display_name", "birthdate", "avatar_url"})
        if "birthdate" in values:
            values["birthdate"] = _as_date(values["birthdate"])
        with self.engine.begin() as conn:
            if values:
                conn.execute(update(persons).where(persons.c.id == person_id).values(**values))
            row = conn.execute(select(persons).where(persons.c.id == person_id)).mappings().first()
        return _plain(row) if row else None

    def delete_person(self, person_id: str) -> bool:
        with self.engine.begin() as conn:
            conn.execute(update(entries).where(entries.c.said_by == person_id).values(said_by=None))
            res = conn.execute(delete(persons).where(persons.c.id == person_id))
        return res.rowcount > 0

    # Entries
    def _tags_for(self, conn: Connection, entry_ids: List[str]) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {eid: [] for eid in entry_ids}
        if not entry_ids:
            return out
        rows = conn.execute(
            select(entry_tags.c.entry_id, entry_tags.c.tag)
            .where(entry_tags.c.entry_id.in_(entry_ids))
            .order_by(entry_tags.c.tag.asc())
        ).all()
        for r in rows:
            out.setdefault(r.entry_id, []).append(r.tag)
        return out

    def _with_tags(self, conn: Connection, rows: List[Any]) -> List[Dict[str, Any]]:
        items = [_plain(r) for r in rows]
        tags = self._tags_for(conn, [i["id"] for i in items])
        for item in items:
            item["tags"] = tags.get(item["id"], [])
        return items

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
    ) -> Dict[str, Any]:
        entry_id = str(uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                insert(entries).values(
                    id=entry_id,
                    household_id=household_id,
                    said_by=said_by,
                    captured_by=captured_by,
                    text=text,
                    entry_type=entry_type,
                    source=source,
                    visibility=visibility,
                    entry_date=_as_date(entry_date),
                    created_at=created_at or _utcnow(),
                )
            )
            if tags:
                conn.execute(entry_tags.insert(), [{"entry_id": entry_id, "tag": t} for t in tags])
            row = conn.execute(select(entries).where(entries.c.id == entry_id)).mappings().first()
            return self._with_tags(conn, [row])[0]

    def get_entry(self, entry_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(entries).where(entries.c.id == entry_id)).mappings().first()
            if not row:
                return None
            return self._with_tags(conn, [row])[0]

    def update_entry(
        self,
        entry_id: str,
        updates: Dict[str, Any],
        tags: Optional[List[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        values = _only(updates, {"text", "said_by", "entry_type", "visibility", "entry_date"})
        if "entry_date" in values:
            values["entry_date"] = _as_date(values["entry_date"])
        with self.engine.begin() as conn:
            if values:
                conn.execute(update(entries).where(entries.c.id == entry_id).values(**values))
            if tags is not None:
                conn.execute(delete(entry_tags).where(entry_tags.c.entry_id == entry_id))
                if tags:
                    conn.execute(entry_tags.insert(), [{"entry_id": entry_id, "tag": t} for t in tags])
            row = conn.execute(select(entries).where(entries.c.id == entry_id)).mappings().first()
            if not row:
                return None
            return self._with_tags(conn, [row])[0]

    def delete_entry(self, entry_id: str) -> bool:
        with self.engine.begin() as conn:
            conn.execute(delete(entry_tags).where(entry_tags.c.entry_id == entry_id))
            conn.execute(delete(attachments).where(attachments.c.entry_id == entry_id))
            conn.execute(delete(book_entries).where(book_entries.c.entry_id == entry_id))
            res = conn.execute(delete(entries).where(entries.c.id == entry_id))
        return res.rowcount > 0

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
    ) -> Tuple[List[Dict[str, Any]], int]:
        conds = [entries.c.household_id == household_id]
        if said_by:
            conds.append(entries.c.said_by == said_by)
        if tag:
            conds.append(
                entries.c.id.in_(
                    select(entry_tags.c.entry_id).where(entry_tags.c.tag == tag.strip().lower())
                )
            )
        if q:
            conds.append(func.lower(entries.c.text).contains(q.lower(), autoescape=True))
        if date_from:
            conds.append(entries.c.entry_date >= _as_date(date_from))
        if date_to:
            conds.append(entries.c.entry_date <= _as_date(date_to))

        with self.engine.begin() as conn:
            total = conn.execute(select(func.count()).select_from(entries).where(*conds)).scalar_one()
            rows = conn.execute(
                select(entries)
                .where(*conds)
                .order_by(entries.c.entry_date.desc(), entries.c.created_at.desc())
                .limit(limit)
                .offset(offset)
            ).mappings().all()
            return self._with_tags(conn, list(rows)), int(total)

    def list_entries_in_range(
        self,
        household_id: str,
        date_start: date,
        date_end: date,
    ) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(entries)
                .where(
                    entries.c.household_id == household_id,
                    entries.c.entry_date >= _as_date(date_start),
                    entries.c.entry_date <= _as_date(date_end),
                )
                .order_by(entries.c.entry_date.asc(), entries.c.created_at.asc())
            ).mappings().all()
            return self._with_tags(conn, list(rows))

    def list_all_entries(self, household_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(entries)
                .where(entries.c.household_id == household_id)
                .order_by(entries.c.entry_date.asc(), entries.c.created_at.asc())
            ).mappings().all()
            return self._with_tags(conn, list(rows))

    def get_tags_for_entries(self, entry_ids: List[str]) -> Dict[str, List[str]]:
        with self.engine.begin() as conn:
            return self._tags_for(conn, list(entry_ids))

    def list_entry_tags(self, entry_ids: List[str]) -> List[Dict[str, Any]]:
        if not entry_ids:
            return []
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(entry_tags).where(entry_tags.c.entry_id.in_(list(entry_ids)))
            ).mappings().all()
        return [_plain(r) for r in rows]

    # Attachments
    def create_attachment(
        self,
        entry_id: str,
        kind: str,
        url: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        duration_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        attachment_id = str(uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                insert(attachments).values(
                    id=attachment_id,
                    entry_id=entry_id,
                    kind=kind,
                    url=url,
                    width=width,
                    height=height,
                    duration_seconds=duration_seconds,
                    created_at=_utcnow(),
                )
            )
            row = conn.execute(select(attachments).where(attachments.c.id == attachment_id)).mappings().first()
        return _plain(row)

    def list_attachments(self, entry_ids: List[str]) -> List[Dict[str, Any]]:
        if not entry_ids:
            return []
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(attachments)
                .where(attachments.c.entry_id.in_(list(entry_ids)))
                .order_by(attachments.c.created_at.asc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    # Books
    def create_book(self, household_id: str, data: Dict[str, Any], page_count: int = 0) -> Dict[str, Any]:
        book_id = str(uuid4())
        now = _utcnow()
        values = _only(
            data,
            {"title", "date_start", "date_end", "size", "theme", "cover_style",
             "dedication", "status", "design_mode"},
        )
        for key in ("date_start", "date_end"):
            if key in values:
                values[key] = _as_date(values[key])
        with self.engine.begin() as conn:
            conn.execute(
                insert(books).values(
                    id=book_id,
                    household_id=household_id,
                    created_at=now,
                    updated_at=now,
                    **values,
                )
            )
            if page_count > 0:
                conn.execute(
                    book_pages.insert(),
                    [
                        dict(
                            id=str(uuid4()),
                            book_id=book_id,
                            page_number=n,
                            left_layout=None,
                            right_layout=None,
                            left_content=[],
                            right_content=[],
                            created_at=now,
                            updated_at=now,
                        )
                        for n in range(1, page_count + 1)
                    ],
                )
            row = conn.execute(select(books).where(books.c.id == book_id)).mappings().first()
        return _plain(row)

    def get_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(books).where(books.c.id == book_id)).mappings().first()
        return _plain(row) if row else None

    def list_books(self, household_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(books)
                .where(books.c.household_id == household_id)
                .order_by(books.c.created_at.desc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    def find_book_by_range(self, household_id: str, date_start: date, date_end: date) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(books).where(
                    books.c.household_id == household_id,
                    books.c.date_start == _as_date(date_start),
                    books.c.date_end == _as_date(date_end),
                )
            ).mappings().first()
        return _plain(row) if row else None

    def update_book(self, book_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        values = _only(
            updates,
            {"title", "date_start", "date_end", "size", "theme", "cover_style", "dedication",
             "status", "design_mode", "pdf_url", "pdf_path"},
        )
        for key in ("date_start", "date_end"):
            if key in values:
                values[key] = _as_date(values[key])
        with self.engine.begin() as conn:
            if values:
                values["updated_at"] = _utcnow()
                conn.execute(update(books).where(books.c.id == book_id).values(**values))
            row = conn.execute(select(books).where(books.c.id == book_id)).mappings().first()
        return _plain(row) if row else None

    def delete_book(self, book_id: str) -> bool:
        with self.engine.begin() as conn:
            conn.execute(delete(book_pages).where(book_pages.c.book_id == book_id))
            conn.execute(delete(book_photos).where(book_photos.c.book_id == book_id))
            conn.execute(delete(book_entries).where(book_entries.c.book_id == book_id))
            res = conn.execute(delete(books).where(books.c.id == book_id))
        return res.rowcount > 0

    def replace_book_entries(self, book_id: str, entry_ids: List[str]) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(book_entries).where(book_entries.c.book_id == book_id))
            if entry_ids:
                conn.execute(
                    book_entries.insert(),
                    [
                        {"book_id": book_id, "entry_id": eid, "position": i + 1}
                        for i, eid in enumerate(entry_ids)
                    ],
                )

    def list_book_entries(self, book_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(book_entries)
                .where(book_entries.c.book_id == book_id)
                .order_by(book_entries.c.position.asc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    # Book pages
    def list_pages(self, book_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(book_pages)
                .where(book_pages.c.book_id == book_id)
                .order_by(book_pages.c.page_number.asc())
            ).mappings().all()
        return [_page_dict(r) for r in rows]

    def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(book_pages).where(book_pages.c.id == page_id)).mappings().first()
        return _page_dict(row) if row else None

    def upsert_page(self, book_id: str, page_number: int, data: Dict[str, Any]) -> Dict[str, Any]:
        values = _only(data, {"left_layout", "right_layout", "left_content", "right_content"})
        now = _utcnow()
        with self.engine.begin() as conn:
            existing = conn.execute(
                select(book_pages.c.id).where(
                    book_pages.c.book_id == book_id,
                    book_pages.c.page_number == page_number,
                )
            ).first()
            if existing:
                page_id = existing.id
                conn.execute(
                    update(book_pages).where(book_pages.c.id == page_id).values(updated_at=now, **values)
                )
            else:
                page_id = str(uuid4())
                values.setdefault("left_content", [])
                values.setdefault("right_content", [])
                conn.execute(
                    insert(book_pages).values(
                        id=page_id,
                        book_id=book_id,
                        page_number=page_number,
                        created_at=now,
                        updated_at=now,
                        **values,
                    )
                )
            row = conn.execute(select(book_pages).where(book_pages.c.id == page_id)).mappings().first()
        return _page_dict(row)

    def update_page(self, page_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        values = _only(updates, {"page_number", "left_layout", "right_layout", "left_content", "right_content"})
        with self.engine.begin() as conn:
            if values:
                try:
                    conn.execute(
                        update(book_pages).where(book_pages.c.id == page_id).values(updated_at=_utcnow(), **values)
                    )
                except IntegrityError as e:
                    raise HTTPException(status_code=409, detail="page_number already used in this book") from e
            row = conn.execute(select(book_pages).where(book_pages.c.id == page_id)).mappings().first()
        return _page_dict(row) if row else None

    def delete_page(self, page_id: str) -> bool:
        with self.engine.begin() as conn:
            res = conn.execute(delete(book_pages).where(book_pages.c.id == page_id))
        return res.rowcount > 0

    def replace_pages(self, book_id: str, pages_in: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        now = _utcnow()
        rows = [
            dict(
                id=str(uuid4()),
                book_id=book_id,
                page_number=int(p["page_number"]),
                left_layout=p.get("left_layout"),
                right_layout=p.get("right_layout"),
                left_content=p.get("left_content") or [],
                right_content=p.get("right_content") or [],
                created_at=now,
                updated_at=now,
            )
            for p in pages_in
        ]
        with self.engine.begin() as conn:
            conn.execute(delete(book_pages).where(book_pages.c.book_id == book_id))
            if rows:
                conn.execute(book_pages.insert(), rows)
            out = conn.execute(
                select(book_pages)
                .where(book_pages.c.book_id == book_id)
                .order_by(book_pages.c.page_number.asc())
            ).mappings().all()
        return [_page_dict(r) for r in out]

    # Book photos
    def list_photos(self, book_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(book_photos)
                .where(book_photos.c.book_id == book_id)
                .order_by(book_photos.c.created_at.desc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    def create_photo(
        self,
        book_id: str,
        url: str,
        filename: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Dict[str, Any]:
        photo_id = str(uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                insert(book_photos).values(
                    id=photo_id,
                    book_id=book_id,
                    url=url,
                    filename=filename,
                    width=width,
                    height=height,
                    created_at=_utcnow(),
                )
            )
            row = conn.execute(select(book_photos).where(book_photos.c.id == photo_id)).mappings().first()
        return _plain(row)

    def get_photo(self, photo_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(book_photos).where(book_photos.c.id == photo_id)).mappings().first()
        return _plain(row) if row else None

    def delete_photo(self, photo_id: str) -> bool:
        with self.engine.begin() as conn:
            res = conn.execute(delete(book_photos).where(book_photos.c.id == photo_id))
        return res.rowcount > 0

    # Phone numbers
    def add_phone_number(self, household_id: str, user_id: str, phone_number: str) -> Dict[str, Any]:
        phone_id = str(uuid4())
        with self.engine.begin() as conn:
            try:
                conn.execute(
                    insert(parent_phone_numbers).values(
                        id=phone_id,
                        household_id=household_id,
                        user_id=user_id,
                        phone_number=phone_number,
                        created_at=_utcnow(),
                    )
                )
            except IntegrityError as e:
                raise HTTPException(status_code=409, detail="Phone number already registered") from e
            row = conn.execute(
                select(parent_phone_numbers).where(parent_phone_numbers.c.id == phone_id)
            ).mappings().first()
        return _plain(row)

    def find_phone_number(self, phone_number: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(parent_phone_numbers).where(parent_phone_numbers.c.phone_number == phone_number)
            ).mappings().first()
        return _plain(row) if row else None

    def list_phone_numbers(self, household_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(parent_phone_numbers)
                .where(parent_phone_numbers.c.household_id == household_id)
                .order_by(parent_phone_numbers.c.created_at.asc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    def delete_phone_number(self, phone_id: str) -> bool:
        with self.engine.begin() as conn:
            res = conn.execute(delete(parent_phone_numbers).where(parent_phone_numbers.c.id == phone_id))
        return res.rowcount > 0

    # Reminders
    _REMINDER_FIELDS = ("channel", "frequency", "weekday", "hour", "tz", "enabled", "destination")

    def create_reminder(self, household_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        reminder_id = str(uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                insert(reminders).values(
                    id=reminder_id,
                    household_id=household_id,
                    user_id=user_id,
                    created_at=_utcnow(),
                    **_only(data, self._REMINDER_FIELDS),
                )
            )
            row = conn.execute(select(reminders).where(reminders.c.id == reminder_id)).mappings().first()
        return _plain(row)

    def get_reminder(self, reminder_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(reminders).where(reminders.c.id == reminder_id)).mappings().first()
        return _plain(row) if row else None

    def list_reminders(self, household_id: str, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        conds = [reminders.c.household_id == household_id]
        if user_id:
            conds.append(reminders.c.user_id == user_id)
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(reminders).where(*conds).order_by(reminders.c.created_at.asc())
            ).mappings().all()
        return [_plain(r) for r in rows]

    def update_reminder(self, reminder_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        values = _only(updates, self._REMINDER_FIELDS)
        with self.engine.begin() as conn:
            if values:
                conn.execute(update(reminders).where(reminders.c.id == reminder_id).values(**values))
            row = conn.execute(select(reminders).where(reminders.c.id == reminder_id)).mappings().first()
        return _plain(row) if row else None

    def delete_reminder(self, reminder_id: str) -> bool:
        with self.engine.begin() as conn:
            res = conn.execute(delete(reminders).where(reminders.c.id == reminder_id))
        return res.rowcount > 0

    def list_enabled_reminders(self) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(reminders).where(reminders.c.enabled.is_(True))
            ).mappings().all()
        return [_plain(r) for r in rows]
