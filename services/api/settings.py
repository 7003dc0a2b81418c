# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List, Optional
from pathlib import Path


class Settings(BaseSettings):
    # Storage settings
    # sqlite is the default; json is handy for demos (STORAGE_BACKEND=json)
    storage_backend: str = "sqlite"
    db_url: str = "sqlite:///data/sayso.db"
    json_data_dir: str = "data/json"

    # Rendered book PDFs land under <pdf_output_dir>/books/<book_id>/
    pdf_output_dir: str = "data/pdfs"

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # Bearer token expected by GET /cron/reminders
    cron_secret: str = ""

    # Email settings (reminders)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "reminders@sayso.app"
    smtp_from_name: str = "SaySo"

    # Entry limits
    max_entry_length: int = 500
    entries_page_size: int = 50

    # Page counts a new book may start with (comma-separated)
    allowed_book_page_counts: str = "24,40,60"
    default_book_page_count: int = 24

    # Timeout (seconds) for fetching photos while probing or rendering
    photo_fetch_timeout: float = 20.0

    sms_reply_preview_chars: int = Field(
        default=140,
        description="How much of the saved quote is echoed back in the SMS reply",
    )

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_book_page_counts(self) -> List[int]:
        """Parse ALLOWED_BOOK_PAGE_COUNTS into a sorted list of ints."""
        counts = []
        for raw in (self.allowed_book_page_counts or "").split(","):
            raw = raw.strip()
            if raw.isdigit():
                counts.append(int(raw))
        return sorted(set(counts))

    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_from_email)


_settings_instance: Optional[Settings] = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
