"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - JWT_SECRET has no default: the app refuses to start without it
    - get_settings() is cached (lru_cache) — single instance per process
    - Routes receive settings through Depends(get_settings) so tests can override them

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: SQLite file DB works out-of-the-box
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./cai_library.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    # SQLite deployments without an Alembic step create tables on startup
    database_create_all: bool = True

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    oauth_timeout_seconds: float = 30.0
    allowed_email_domain: str = "@cyberagent.co.jp"
    public_base_url: str = "http://localhost:8000"

    # Session cookie
    # required: signs every session cookie
    jwt_secret: str = Field(min_length=1)
    session_cookie_name: str = "app_session_id"
    session_ttl_days: int = 365

    # Owner: immutable external identifier (OAuth subject)
    owner_open_id: str = ""

    # Anthropic (tag generation)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 30
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 10_000
    tag_model: str = "claude-haiku-4-5"
    tag_generation_enabled: bool = True

    # Uploads
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    upload_max_bytes: int = 5 * 1024 * 1024

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    return Settings()
