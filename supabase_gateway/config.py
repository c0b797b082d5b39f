"""
Configuration for the Supabase gateway.

Uses pydantic-settings for environment variable loading. Variable names
have no prefix (SUPABASE_URL, ALLOWED_TABLES, ...) so existing deployments
keep working.

Invariants:
    - Settings are read once at startup; there is no hot reload
    - The backend key is never logged
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def split_csv(raw: str) -> list[str]:
    """Split a comma-separated value, trimming entries and dropping empties."""
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    """Gateway configuration loaded from environment."""

    # Backend
    supabase_url: str = Field(default="http://localhost:54321", description="Supabase project URL")
    supabase_anon_key: str = Field(default="", description="Supabase API key")
    rest_path: str = Field(default="rest/v1", description="PostgREST path under the project URL")
    request_timeout: float = Field(default=30.0, description="Upstream request timeout seconds")

    # Access control
    allowed_tables: str = Field(default="", description="Comma-separated table allow-list (empty=all)")
    allow_writes: bool = Field(default=False, description="Enable the insert tool")

    # HTTP
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=3000, description="Bind port")
    allowed_origins: str = Field(default="", description="Comma-separated CORS origins (empty=any)")

    # Streaming
    max_sessions: int = Field(default=1000, ge=1, description="Maximum live streaming sessions")

    # Documents
    manifest_path: Path = Field(default=STATIC_DIR / "ai-plugin.json", description="Plugin manifest file")
    openapi_path: Path = Field(default=STATIC_DIR / "openapi.json", description="OpenAPI document file")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="Log format: text or json")

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def allowed_table_list(self) -> list[str]:
        """Allowed tables; empty means every table is allowed."""
        return split_csv(self.allowed_tables)

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins; any origin when none are configured."""
        return split_csv(self.allowed_origins) or ["*"]

    @property
    def rest_base_url(self) -> str:
        """Base URL for table resources."""
        return f"{self.supabase_url.rstrip('/')}/{self.rest_path.strip('/')}"

    def log_config(self) -> None:
        """Log the effective configuration (secrets masked)."""
        logger.info("Gateway configuration:")
        logger.info(f"  Backend: {self.rest_base_url}")
        logger.info(f"  API key: {'set' if self.supabase_anon_key else 'not set'}")
        logger.info(f"  Allowed tables: {self.allowed_table_list or 'all'}")
        logger.info(f"  Writes enabled: {self.allow_writes}")
        logger.info(f"  CORS origins: {self.cors_origin_list}")
        logger.info(f"  Max sessions: {self.max_sessions}")
