"""
Seed script for local testing of SaySo.
Creates a sample household with two kids, a handful of quotes and a book.

Usage:
    python -m core.seed_local
"""
import sys
import os
from datetime import date, timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from settings import get_settings
from adapters.sqlite import SqliteAdapter
from adapters.json import JsonAdapter

SEED_USER = "seed-user"

SAMPLE_QUOTES = [
    ("Zeke", "Do ya like jazz?", ["funny"]),
    ("Zeke", "When I grow up I want to be a dinosaur doctor.", ["dreams"]),
    ("Mia", "The moon is following our car because it likes us.", ["sweet", "car"]),
    ("Mia", "I'm not crying, my eyes are just sweating.", ["funny"]),
    ("Zeke", "Broccoli is just tiny trees for giants like me.", ["food"]),
]


def seed():
    """Create sample data for testing."""
    print("🌱 Seeding SaySo...")

    settings = get_settings()
    print(f"📦 Using {settings.storage_backend} backend")

    if settings.storage_backend == "sqlite":
        adapter = SqliteAdapter.from_url(settings.db_url)
    elif settings.storage_backend == "json":
        adapter = JsonAdapter(settings.json_data_dir)
    else:
        print(f"❌ Seeding not implemented for {settings.storage_backend}")
        return

    membership = adapter.get_membership(SEED_USER)
    if membership:
        household_id = membership["household_id"]
        print(f"✅ Reusing household {household_id}")
    else:
        household_id = adapter.create_household("The Sample Family", SEED_USER)["id"]
        print(f"✅ Household created: {household_id}")

    kids = {p["display_name"]: p["id"] for p in adapter.list_persons(household_id)}
    for name in ("Zeke", "Mia"):
        if name not in kids:
            kids[name] = adapter.create_person(household_id, name)["id"]
    print(f"👧 Kids: {', '.join(kids)}")

    today = date.today()
    for offset, (name, text, tags) in enumerate(SAMPLE_QUOTES):
        adapter.create_entry(
            household_id=household_id,
            text=text,
            said_by=kids[name],
            captured_by=SEED_USER,
            entry_date=today - timedelta(days=offset * 9),
            tags=tags,
        )
    print(f"✅ {len(SAMPLE_QUOTES)} quotes captured")

    book = adapter.create_book(
        household_id,
        {
            "title": f"{today.year} Family Quotes",
            "date_start": date(today.year, 1, 1),
            "date_end": date(today.year, 12, 31),
            "status": "draft",
            "design_mode": "manual",
        },
        page_count=settings.default_book_page_count,
    )
    print(f"📖 Book created: {book['id']}")

    print("\n" + "="*60)
    print("🎉 Seeding complete!")
    print("="*60)
    print(f"\n📋 Household ID: {household_id}")
    print(f"📋 Book ID: {book['id']}")
    print(f"\n🔗 Try it:")
    print(f"   curl -H 'X-User-Id: {SEED_USER}' http://localhost:8000/entries")
    print(f"   curl -X POST -H 'X-User-Id: {SEED_USER}' http://localhost:8000/books/{book['id']}/render")
    print()


if __name__ == "__main__":
    seed()
