"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Second Brain"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    # If database_url_override is set (e.g., the Supabase pooler URL), it takes precedence
    database_url_override: str | None = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "postgres"

    @computed_field
    @property
    def database_url(self) -> str:
        """Get async database URL. Uses override if provided, otherwise constructs from parts."""
        if self.database_url_override:
            url = self.database_url_override
            # Replace scheme for async driver
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            # Strip query params - asyncpg doesn't accept them via URL
            # SSL is handled via connect_args in session.py
            if "?" in url:
                url = url.split("?")[0]
            return url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @computed_field
    @property
    def database_requires_ssl(self) -> bool:
        """Check if the database connection requires SSL (Supabase, etc.)."""
        if self.database_url_override:
            return "sslmode=require" in self.database_url_override or "ssl=require" in self.database_url_override
        return False

    @computed_field
    @property
    def database_url_sync(self) -> str:
        """Get sync database URL (for Alembic). Uses override if provided, otherwise constructs from parts."""
        if self.database_url_override:
            url = self.database_url_override
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            elif url.startswith("postgresql+asyncpg://"):
                url = url.replace("postgresql+asyncpg://", "postgresql://", 1)
            return url
        return f"postgresql://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # LINE Messaging API
    line_channel_secret: str  # Required - used to verify webhook signatures
    line_channel_access_token: str  # Required - used for replies and image content
    line_api_base: str = "https://api.line.me"
    line_data_api_base: str = "https://api-data.line.me"

    # Object storage (Supabase Storage via its S3-compatible endpoint)
    storage_endpoint_url: str | None = None  # e.g. https://<project>.supabase.co/storage/v1/s3
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    storage_region: str = "us-east-1"
    storage_bucket: str = "brain-images"
    # Prefix of public object URLs, e.g. https://<project>.supabase.co/storage/v1/object/public
    storage_public_base_url: str = "http://localhost:54321/storage/v1/object/public"

    # Anthropic API (optional - enrichment is skipped when unset)
    anthropic_api_key: str | None = None

    # LLM Configuration
    llm_model: str = "claude-3-haiku-20240307"
    llm_summary_max_tokens: int = 500

    # Link preview
    link_preview_timeout_seconds: float = 10.0
    link_preview_user_agent: str = "Mozilla/5.0 (compatible; SecondBrainBot/1.0)"

    # Message classification
    # A message counts as a link share when its first URL is longer than this
    # fraction of the whole message
    link_ratio_threshold: float = 0.5
    title_max_length: int = 50

    # Pagination defaults
    default_page_size: int = 20
    admin_page_size: int = 50

    # Admin API bearer secret (unset disables the admin API)
    admin_secret: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
