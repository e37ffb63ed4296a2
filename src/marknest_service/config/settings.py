"""Settings module using pydantic-settings for configuration management."""

from dataclasses import dataclass
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RetentionConfig:
    """How long trashed items stay restorable before the sweeper purges them."""
    document_days: int = 30
    folder_days: int = 90


@dataclass(frozen=True)
class VersioningConfig:
    """Version history and pagination limits handed to the managers."""
    auto_save_keep_count: int = 5
    recent_versions_limit: int = 5
    versions_per_page: int = 10
    max_versions_per_page: int = 50
    recent_per_page: int = 9
    max_recent_per_page: int = 100
    trash_per_page: int = 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Service Configuration
    service_name: str = Field(default="marknest-document-service")
    environment: str = Field(default="development")
    port: int = Field(default=8000)
    host: str = Field(default="0.0.0.0")

    # Database Configuration
    database_url: str = Field(default="sqlite+aiosqlite:///./marknest.db")
    database_echo: bool = Field(default=False)

    # Trash retention
    document_retention_days: int = Field(default=30, ge=0)
    folder_retention_days: int = Field(default=90, ge=0)

    # Versioning
    auto_save_keep_count: int = Field(default=5, ge=0)
    recent_versions_limit: int = Field(default=5, ge=1)

    # Pagination Configuration
    versions_per_page: int = Field(default=10, ge=1)
    max_versions_per_page: int = Field(default=50, ge=1)
    recent_per_page: int = Field(default=9, ge=1)
    max_recent_per_page: int = Field(default=100, ge=1)
    trash_per_page: int = Field(default=10, ge=1)

    # Scheduled cleanup
    scheduler_enabled: bool = Field(default=True)
    cleanup_schedule_hour: int = Field(default=2, ge=0, le=23)
    cleanup_schedule_minute: int = Field(default=0, ge=0, le=59)
    cleanup_log_path: str = Field(default="./logs/cleanup-trashed-documents.log")
    task_lock_expiry_minutes: int = Field(default=1440, ge=1)

    # Logging
    log_level: str = Field(default="INFO")

    def retention(self) -> RetentionConfig:
        """Build the retention config injected into the sweeper and managers."""
        return RetentionConfig(
            document_days=self.document_retention_days,
            folder_days=self.folder_retention_days,
        )

    def versioning(self) -> VersioningConfig:
        """Build the versioning config injected into the managers."""
        return VersioningConfig(
            auto_save_keep_count=self.auto_save_keep_count,
            recent_versions_limit=self.recent_versions_limit,
            versions_per_page=self.versions_per_page,
            max_versions_per_page=self.max_versions_per_page,
            recent_per_page=self.recent_per_page,
            max_recent_per_page=self.max_recent_per_page,
            trash_per_page=self.trash_per_page,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
