from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Organizer settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ORGANIZER_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Storage collaborator
    storage_backend: Literal["memory", "supabase"] = "memory"
    supabase_url: str | None = None
    supabase_key: str | None = None

    # Organizer behaviour
    search_debounce_ms: int = 300
    default_folder_label: str = "All Notes"

    @property
    def search_debounce_seconds(self) -> float:
        return max(self.search_debounce_ms, 0) / 1000


settings = Settings()
