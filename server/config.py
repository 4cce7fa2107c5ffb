"""Configuration management for the TutorHub notification server."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from tutorhub.config import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    ZaloSettings,
)


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "TutorHub - Zalo Notification Service"
DEFAULT_APP_VERSION = "0.1.0"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


class Settings(BaseModel):
    """Application settings read from environment variables."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Server runtime
    server_host: str = Field(default=os.getenv("TUTORHUB_HOST", "0.0.0.0"))
    server_port: int = Field(default=_env_int("TUTORHUB_PORT", 8000))

    # Environment
    env: str = Field(default=os.getenv("ENV", "dev"))
    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default=os.getenv("CORS_ORIGINS", "*"))
    enable_docs: bool = Field(default=os.getenv("TUTORHUB_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default=os.getenv("DOCS_URL", "/docs"))

    # Operator endpoints; auth is skipped when unset
    api_auth_token: Optional[str] = Field(default=os.getenv("API_AUTH_TOKEN"))

    # Zalo Official Account
    zalo_access_token: str = Field(default=os.getenv("ZALO_ACCESS_TOKEN", ""))
    zalo_refresh_token: str = Field(default=os.getenv("ZALO_REFRESH_TOKEN", ""))
    zalo_app_id: str = Field(default=os.getenv("ZALO_APP_ID", ""))
    zalo_app_secret: str = Field(default=os.getenv("ZALO_APP_SECRET", ""))
    zalo_oa_id: str = Field(default=os.getenv("ZALO_OA_ID", ""))
    zalo_webhook_sign_key: Optional[str] = Field(default=os.getenv("ZALO_WEBHOOK_SIGN_KEY"))
    zalo_webhook_verify_token: Optional[str] = Field(default=os.getenv("ZALO_WEBHOOK_VERIFY_TOKEN"))
    zalo_default_attachment_id: Optional[str] = Field(default=os.getenv("ZALO_DEFAULT_ATTACHMENT_ID"))
    zalo_reminder_attachment_id: Optional[str] = Field(default=os.getenv("ZALO_REMINDER_ATTACHMENT_ID"))
    zalo_http_timeout: float = Field(
        default=_env_float("ZALO_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS)
    )
    zalo_batch_delay_ms: int = Field(
        default=_env_int("ZALO_BATCH_DELAY_MS", int(DEFAULT_BATCH_DELAY_SECONDS * 1000))
    )
    zalo_token_lifetime_seconds: int = Field(
        default=_env_int("ZALO_TOKEN_LIFETIME_SECONDS", DEFAULT_TOKEN_LIFETIME_SECONDS)
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(default=os.getenv("SUPABASE_URL"))
    supabase_service_role_key: Optional[str] = Field(default=os.getenv("SUPABASE_SERVICE_ROLE_KEY"))
    # Legacy Supabase key support
    supabase_key: Optional[str] = Field(default=os.getenv("SUPABASE_KEY"))

    # Temporal configuration
    temporal_enabled: bool = Field(default=os.getenv("TEMPORAL_ENABLED", "1") != "0")
    temporal_host: Optional[str] = Field(default=os.getenv("TEMPORAL_HOST"))
    temporal_namespace: Optional[str] = Field(default=os.getenv("TEMPORAL_NAMESPACE", "default"))

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None

    @property
    def resolved_supabase_key(self) -> Optional[str]:
        return self.supabase_service_role_key or self.supabase_key

    @property
    def reminder_attachment_id(self) -> Optional[str]:
        """Promotion attachment for reminders, falling back to the default one."""
        return self.zalo_reminder_attachment_id or self.zalo_default_attachment_id

    def zalo_settings(self) -> ZaloSettings:
        return ZaloSettings(
            access_token=self.zalo_access_token,
            refresh_token=self.zalo_refresh_token,
            app_id=self.zalo_app_id,
            app_secret=self.zalo_app_secret,
            oa_id=self.zalo_oa_id,
            webhook_sign_key=self.zalo_webhook_sign_key,
            token_lifetime_seconds=self.zalo_token_lifetime_seconds,
            http_timeout_seconds=self.zalo_http_timeout,
            batch_delay_seconds=self.zalo_batch_delay_ms / 1000,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
