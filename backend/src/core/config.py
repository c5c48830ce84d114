"""Client configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Sync client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Bookmarks API
    api_url: str = Field(default="http://localhost:8000", validation_alias="BOOKMARKS_API_URL")
    api_token: str = Field(default="", validation_alias="BOOKMARKS_API_TOKEN")
    api_timeout: float = Field(default=30.0, validation_alias="BOOKMARKS_API_TIMEOUT")

    # Identity of the signed-in user, supplied by the auth provider
    owner_id: str = Field(default="", validation_alias="BOOKMARKS_OWNER_ID")

    # Redis - change notifications
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=5, validation_alias="REDIS_POOL_SIZE")
    changes_channel_prefix: str = Field(
        default="bookmarks:changes",
        validation_alias="BOOKMARKS_CHANGES_CHANNEL_PREFIX",
    )

    # Local favorites overlay
    favorites_dir: Path = Field(
        default=Path("~/.bookmark-sync"),
        validation_alias="BOOKMARKS_FAVORITES_DIR",
    )

    # View / validation limits
    recent_limit: int = Field(default=10, validation_alias="BOOKMARKS_RECENT_LIMIT")
    max_title_length: int = Field(default=500, validation_alias="BOOKMARKS_MAX_TITLE_LENGTH")

    # When False, the last fetch to arrive always wins, even if it was issued earlier
    discard_stale_fetches: bool = Field(default=True, validation_alias="SYNC_DISCARD_STALE_FETCHES")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("api_timeout", "recent_limit", "max_title_length")
    @classmethod
    def check_positive(cls, v: float) -> float:
        """Reject zero and negative limits."""
        if v <= 0:
            raise ValueError(f"Value must be positive (got {v})")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the log level name."""
        return v.strip().upper()

    @property
    def favorites_path(self) -> Path:
        """Get the expanded favorites directory."""
        return self.favorites_dir.expanduser()

    def changes_channel(self, owner_id: str) -> str:
        """Get the pub/sub channel carrying change notifications for an owner."""
        return f"{self.changes_channel_prefix}:{owner_id}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
