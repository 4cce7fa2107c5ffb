"""Zalo OA access token manager.

Keeps one cached credential per process and refreshes it shortly before it
expires. Concurrent callers never trigger more than one refresh: while a
refresh is running every caller awaits the same task and gets its result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import httpx

from tutorhub.config import MAX_TOKEN_LIFETIME_SECONDS, ZaloSettings
from tutorhub.errors import ZaloAPIError, ZaloConfigurationError
from tutorhub.types import TokenInfo

logger = logging.getLogger(__name__)

# Failures that leave the current token in place instead of propagating
_REFRESH_ERRORS = (httpx.HTTPError, ValueError, ZaloAPIError, ZaloConfigurationError)


def mask_token(token: Optional[str], visible: int = 8) -> str:
    if not token:
        return ""
    return token[:visible] + "..."


@dataclass
class Credential:
    access_token: str
    refresh_token: str
    expires_at: float  # unix timestamp, seconds


class ZaloTokenManager:
    """Hands out a valid OA access token, refreshing it when close to expiry.

    States: uninitialized until the first request seeds the credential from
    the injected settings (no network call); valid while more than
    `safety_margin_seconds` remain; refreshing while one refresh task is in
    flight. A failed refresh keeps serving the stale token and the next
    request may try again.
    """

    def __init__(
        self,
        settings: ZaloSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._refreshing = False
        self._refresh_task: Optional[asyncio.Task[str]] = None

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    def _seed(self) -> Credential:
        if self._credential is None:
            self._credential = Credential(
                access_token=self._settings.access_token,
                refresh_token=self._settings.refresh_token,
                expires_at=self._clock() + self._settings.token_lifetime_seconds,
            )
        return self._credential

    async def get_valid_access_token(self) -> str:
        """Return a usable token. Never raises; refresh failures fall back to the old token."""
        credential = self._seed()

        if self._refreshing and self._refresh_task is not None:
            return await asyncio.shield(self._refresh_task)

        remaining = credential.expires_at - self._clock()
        if remaining <= self._settings.safety_margin_seconds:
            logger.info("Zalo access token expires in %ds, refreshing", max(0, int(remaining)))
            return await asyncio.shield(self._start_refresh())

        return credential.access_token

    async def force_refresh(self) -> str:
        """Refresh now regardless of expiry; joins a refresh already in flight."""
        self._seed()
        return await asyncio.shield(self._start_refresh())

    def get_token_info(self) -> TokenInfo:
        credential = self._credential
        if credential is None:
            return TokenInfo(has_token=False)

        remaining = max(0.0, credential.expires_at - self._clock())
        return TokenInfo(
            has_token=bool(credential.access_token),
            expires_at=datetime.fromtimestamp(credential.expires_at, tz=timezone.utc),
            expires_in=int(remaining),
            expires_in_minutes=int(remaining // 60),
        )

    def _start_refresh(self) -> asyncio.Task[str]:
        if self._refreshing and self._refresh_task is not None:
            return self._refresh_task
        self._refreshing = True
        self._refresh_task = asyncio.get_running_loop().create_task(self._run_refresh())
        return self._refresh_task

    async def _run_refresh(self) -> str:
        try:
            return await self._request_refresh()
        except _REFRESH_ERRORS as e:
            logger.error("Zalo token refresh failed, keeping current token: %s", e)
            credential = self._seed()
            return credential.access_token
        finally:
            self._refreshing = False
            self._refresh_task = None

    async def _request_refresh(self) -> str:
        credential = self._seed()
        settings = self._settings
        refresh_token = credential.refresh_token or settings.refresh_token
        if not settings.app_id or not settings.app_secret or not refresh_token:
            raise ZaloConfigurationError(
                "Missing Zalo configuration (APP_ID, APP_SECRET, or REFRESH_TOKEN)"
            )

        logger.info("Requesting new Zalo access token")
        result = await self._post_token_request(
            {
                "app_id": settings.app_id,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )
        self._install(result, fallback_refresh_token=refresh_token)
        logger.info(
            "Zalo access token refreshed (%s), expires at %s",
            mask_token(self._credential.access_token),
            datetime.fromtimestamp(self._credential.expires_at, tz=timezone.utc).isoformat(),
        )
        return self._credential.access_token

    async def exchange_authorization_code(self, code: str) -> Dict[str, Any]:
        """Trade an OAuth authorization code for tokens and start using them.

        Unlike refresh, failures raise `ZaloAPIError` so the OAuth callback can
        report them to the admin who is granting access.
        """
        settings = self._settings
        if not settings.app_id or not settings.app_secret:
            raise ZaloConfigurationError("Missing ZALO_APP_ID or ZALO_APP_SECRET")

        result = await self._post_token_request(
            {
                "app_id": settings.app_id,
                "grant_type": "authorization_code",
                "code": code,
            }
        )
        self._install(result, fallback_refresh_token=settings.refresh_token)
        logger.info("Zalo OA authorized, new token %s", mask_token(result.get("access_token")))
        return result

    async def _post_token_request(self, form: Dict[str, str]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
            response = await client.post(
                self._settings.oauth_token_url,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "secret_key": self._settings.app_secret,
                },
                data=form,
            )

        result = response.json()
        if not isinstance(result, dict):
            raise ZaloAPIError("Unexpected token response", status_code=response.status_code)

        # Successful v4 OAuth responses may omit `error` entirely
        error_code = result.get("error", 0)
        if error_code != 0 or not result.get("access_token"):
            raise ZaloAPIError(
                f"Zalo token request failed: {result.get('message') or result.get('error_description') or 'Unknown error'}",
                error_code=error_code if isinstance(error_code, int) else None,
                status_code=response.status_code,
                data=result,
            )
        return result

    def _install(self, result: Dict[str, Any], *, fallback_refresh_token: str) -> None:
        try:
            expires_in = float(result.get("expires_in") or self._settings.token_lifetime_seconds)
        except (TypeError, ValueError):
            expires_in = self._settings.token_lifetime_seconds
        # Non-positive, NaN or infinite lifetimes fall back to the default
        if not 0 < expires_in < float("inf"):
            expires_in = self._settings.token_lifetime_seconds
        expires_in = min(expires_in, MAX_TOKEN_LIFETIME_SECONDS)

        self._credential = Credential(
            access_token=result["access_token"],
            refresh_token=result.get("refresh_token") or fallback_refresh_token,
            expires_at=self._clock() + expires_in,
        )
