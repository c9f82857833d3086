"""
Catalog Comments Application Configuration
==========================================

PURPOSE:
    Pydantic-Settings based configuration for the comments/feedback backend.
    All settings can be overridden via environment variables (COMMENTS_ prefix)
    or a local .env file.

NOTES:
    - Operator credentials (admin_key, feedback_admin_key, service_key) are
      optional. When one is unset, every operation guarded by it reports
      NOT_CONFIGURED instead of silently allowing or denying.
    - DATABASE_URL (unprefixed) is honoured for parity with container
      platforms that inject it.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_DATABASE_URL = "sqlite:///data/comments.db"


class Settings(BaseSettings):
    """Runtime settings for the comments service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COMMENTS_",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "Catalog Comments API"
    debug: bool = False

    # Persistence
    database_url: str = Field(
        _DEFAULT_DATABASE_URL,
        validation_alias=AliasChoices("COMMENTS_DATABASE_URL", "DATABASE_URL"),
    )
    run_migrations: bool = False  # alembic upgrade head on boot instead of create_all

    # Moderation: new comments go live immediately when true
    auto_visible: bool = False

    # Operator credentials (header comparison, constant time)
    admin_key: Optional[str] = None           # X-Admin-Key for comment moderation
    feedback_admin_key: Optional[str] = None  # X-Admin-Key for feedback triage
    service_key: Optional[str] = None         # X-Service-Key for internal claim calls

    # CORS: one primary origin + optional comma-separated extras
    client_origin: str = "http://localhost:5173"
    extra_origins: str = ""

    # Create-endpoint rate limits (per client IP, sliding window)
    comment_create_limit: int = 10
    comment_create_window_s: int = 10 * 60
    feedback_create_limit: int = 20
    feedback_create_window_s: int = 10 * 60

    # Logging
    log_dir: str = "logs"
    log_file: str = "comments.jsonl"
    log_level: str = "INFO"

    # Request guards
    max_body_bytes: int = 16 * 1024

    # Server bind (containers need 0.0.0.0)
    host: str = "0.0.0.0"
    port: int = 3004

    @property
    def cors_origins(self) -> List[str]:
        extras = [o.strip() for o in self.extra_origins.split(",") if o.strip()]
        return [self.client_origin, *extras]


settings = Settings()
