"""
Storage adapter interface for SaySo.
Defines the contract that all storage backends must implement.
"""

from datetime import date, datetime
from typing import Protocol, List, Dict, Any, Optional, Tuple


class StorageAdapter(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    This allows swapping between SQLite (or any SQLAlchemy URL) and the JSON
    file store without changing the router or business logic code.

    Rows cross this boundary as plain dicts. Lookups return None when a row
    is missing; callers decide whether that is a 404.
    """

    def ping(self) -> bool:
        """Cheap connectivity check used by /health and /readyz."""
        ...

    # ========== Households ==========

    def create_household(self, name: str, owner_id: str) -> Dict[str, Any]:
        """
        Create a household and add `owner_id` as its owner member.

        Raises:
            HTTPException: 409 if the user already belongs to a household.
        """
        ...

    def get_household(self, household_id: str) -> Optional[Dict[str, Any]]:
        ...

    def update_household(self, household_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def get_membership(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        The caller's membership row: household_id, user_id, role.
        """
        ...

    # ========== Persons ==========

    def list_persons(self, household_id: str) -> List[Dict[str, Any]]:
        """Persons of a household ordered by display_name."""
        ...

    def create_person(
        self,
        household_id: str,
        display_name: str,
        birthdate: Optional[date] = None,
        avatar_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        ...

    def get_person(self, person_id: str) -> Optional[Dict[str, Any]]:
        ...

    def update_person(self, person_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_person(self, person_id: str) -> bool:
        """Delete a person; their entries keep existing with said_by = None."""
        ...

    # ========== Entries ==========

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
        """Insert an entry plus its (already normalized) tags. Returns the row with `tags`."""
        ...

    def get_entry(self, entry_id: str) -> Optional[Dict[str, Any]]:
        ...

    def update_entry(
        self,
        entry_id: str,
        updates: Dict[str, Any],
        tags: Optional[List[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Patch entry columns. When `tags` is not None the entry's tag set is
        replaced.
        """
        ...

    def delete_entry(self, entry_id: str) -> bool:
        ...

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
        """
        Filtered entries, newest first (entry_date desc, created_at desc).

        Returns:
            (rows for the requested page, total count after filters)
        """
        ...

    def list_entries_in_range(
        self,
        household_id: str,
        date_start: date,
        date_end: date,
    ) -> List[Dict[str, Any]]:
        """Entries with date_start <= entry_date <= date_end, oldest first."""
        ...

    def list_all_entries(self, household_id: str) -> List[Dict[str, Any]]:
        ...

    def get_tags_for_entries(self, entry_ids: List[str]) -> Dict[str, List[str]]:
        """entry_id -> tags; entries without tags map to []."""
        ...

    def list_entry_tags(self, entry_ids: List[str]) -> List[Dict[str, Any]]:
        """Raw (entry_id, tag) rows, used by export."""
        ...

    # ========== Attachments ==========

    def create_attachment(
        self,
        entry_id: str,
        kind: str,
        url: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        duration_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        ...

    def list_attachments(self, entry_ids: List[str]) -> List[Dict[str, Any]]:
        ...

    # ========== Books ==========

    def create_book(self, household_id: str, data: Dict[str, Any], page_count: int = 0) -> Dict[str, Any]:
        """
        Create a book row and `page_count` empty pages numbered 1..page_count.
        """
        ...

    def get_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        ...

    def list_books(self, household_id: str) -> List[Dict[str, Any]]:
        """Books of a household, newest first."""
        ...

    def find_book_by_range(self, household_id: str, date_start: date, date_end: date) -> Optional[Dict[str, Any]]:
        ...

    def update_book(self, book_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_book(self, book_id: str) -> bool:
        """Delete a book with its pages, photos and book_entries."""
        ...

    def replace_book_entries(self, book_id: str, entry_ids: List[str]) -> None:
        """Replace the book's entry list; positions are 1-based in list order."""
        ...

    def list_book_entries(self, book_id: str) -> List[Dict[str, Any]]:
        ...

    # ========== Book pages ==========

    def list_pages(self, book_id: str) -> List[Dict[str, Any]]:
        """Pages ordered by page_number; content fields are always lists."""
        ...

    def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        ...

    def upsert_page(self, book_id: str, page_number: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or update the page with this page_number."""
        ...

    def update_page(self, page_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_page(self, page_id: str) -> bool:
        ...

    def replace_pages(self, book_id: str, pages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Delete every page of the book and insert `pages` in one go."""
        ...

    # ========== Book photos ==========

    def list_photos(self, book_id: str) -> List[Dict[str, Any]]:
        """Photos of a book, newest first."""
        ...

    def create_photo(
        self,
        book_id: str,
        url: str,
        filename: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Dict[str, Any]:
        ...

    def get_photo(self, photo_id: str) -> Optional[Dict[str, Any]]:
        ...

    def delete_photo(self, photo_id: str) -> bool:
        ...

    # ========== Phone numbers ==========

    def add_phone_number(self, household_id: str, user_id: str, phone_number: str) -> Dict[str, Any]:
        """
        Raises:
            HTTPException: 409 if the number is already registered.
        """
        ...

    def find_phone_number(self, phone_number: str) -> Optional[Dict[str, Any]]:
        ...

    def list_phone_numbers(self, household_id: str) -> List[Dict[str, Any]]:
        ...

    def delete_phone_number(self, phone_id: str) -> bool:
        ...

    # ========== Reminders ==========

    def create_reminder(self, household_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def get_reminder(self, reminder_id: str) -> Optional[Dict[str, Any]]:
        ...

    def list_reminders(self, household_id: str, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    def update_reminder(self, reminder_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_reminder(self, reminder_id: str) -> bool:
        ...

    def list_enabled_reminders(self) -> List[Dict[str, Any]]:
        ...
