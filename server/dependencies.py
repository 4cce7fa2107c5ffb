"""Service singletons handed to routers through FastAPI `Depends`.

Tests replace any of these with `app.dependency_overrides`.
"""

from __future__ import annotations

import hmac
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tutorhub.adapters.zalo import ZaloClient
from tutorhub.services.quota_log import QuotaLogService
from tutorhub.services.recipient_directory import RecipientDirectory
from tutorhub.services.smart_sender import SmartSender
from tutorhub.services.temporal_client import TemporalService, get_temporal_service
from tutorhub.services.token_manager import ZaloTokenManager

from .config import Settings, get_settings

security = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_token_manager() -> ZaloTokenManager:
    return ZaloTokenManager(get_settings().zalo_settings())


@lru_cache(maxsize=1)
def get_zalo_client() -> ZaloClient:
    return ZaloClient(get_settings().zalo_settings(), get_token_manager())


@lru_cache(maxsize=1)
def get_smart_sender() -> SmartSender:
    settings = get_settings()
    return SmartSender(
        get_zalo_client(),
        get_token_manager(),
        batch_delay_seconds=settings.zalo_batch_delay_ms / 1000,
    )


@lru_cache(maxsize=1)
def get_recipient_directory() -> RecipientDirectory:
    settings = get_settings()
    return RecipientDirectory(settings.supabase_url, settings.resolved_supabase_key)


@lru_cache(maxsize=1)
def get_quota_log() -> QuotaLogService:
    settings = get_settings()
    return QuotaLogService(settings.supabase_url, settings.resolved_supabase_key)


def get_temporal() -> TemporalService:
    settings = get_settings()
    return get_temporal_service(settings.temporal_host, settings.temporal_namespace)


def require_api_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """Bearer check for operator endpoints; open when API_AUTH_TOKEN is unset."""
    expected = settings.api_auth_token
    if not expected:
        return
    token = credentials.credentials if credentials is not None else ""
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
