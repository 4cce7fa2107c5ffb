from __future__ import annotations

import asyncio
from dataclasses import replace
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from tests.fixtures.zalo_responses import token_ok
from tutorhub.config import MAX_TOKEN_LIFETIME_SECONDS, ZALO_OAUTH_TOKEN_URL, ZaloSettings
from tutorhub.services.token_manager import ZaloTokenManager, mask_token


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_first_use_seeds_from_settings_without_network(zalo_settings: ZaloSettings) -> None:
    clock = FakeClock()
    manager = ZaloTokenManager(zalo_settings, clock=clock)

    assert manager.get_token_info().has_token is False

    token = asyncio.run(manager.get_valid_access_token())

    assert token == zalo_settings.access_token
    info = manager.get_token_info()
    assert info.has_token is True
    assert info.expires_in == 24 * 60 * 60
    assert info.expires_in_minutes == 24 * 60


@respx.mock
def test_refreshes_inside_safety_margin(zalo_settings: ZaloSettings) -> None:
    route = respx.post(ZALO_OAUTH_TOKEN_URL).mock(
        return_value=httpx.Response(200, json=token_ok(expires_in="90000"))
    )
    clock = FakeClock()
    manager = ZaloTokenManager(zalo_settings, clock=clock)

    assert asyncio.run(manager.get_valid_access_token()) == zalo_settings.access_token
    assert not route.called

    # 4 minutes left
    clock.now += 24 * 60 * 60 - 4 * 60
    assert asyncio.run(manager.get_valid_access_token()) == "new-access-token"

    request = route.calls.last.request
    assert request.headers["secret_key"] == "test-secret"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    form = parse_qs(request.content.decode())
    assert form == {
        "app_id": ["test-app"],
        "grant_type": ["refresh_token"],
        "refresh_token": ["test-refresh-token"],
    }
    assert manager.get_token_info().expires_in == 90000


@respx.mock
def test_concurrent_callers_share_one_refresh(zalo_settings: ZaloSettings) -> None:
    route = respx.post(ZALO_OAUTH_TOKEN_URL).mock(
        return_value=httpx.Response(200, json=token_ok())
    )
    settings = replace(zalo_settings, token_lifetime_seconds=60)
    manager = ZaloTokenManager(settings, clock=FakeClock())

    async def _burst() -> list[str]:
        return await asyncio.gather(*(manager.get_valid_access_token() for _ in range(10)))

    tokens = asyncio.run(_burst())

    assert route.call_count == 1
    assert tokens == ["new-access-token"] * 10
    assert manager.is_refreshing is False


@respx.mock
def test_rotated_refresh_token_is_used_next_time(zalo_settings: ZaloSettings) -> None:
    route = respx.post(ZALO_OAUTH_TOKEN_URL)
    route.side_effect = [
        httpx.Response(200, json=token_ok("a1", "r1", 60)),
        httpx.Response(200, json=token_ok("a2", None, 60)),
        httpx.Response(200, json=token_ok("a3", None, 60)),
    ]
    settings = replace(zalo_settings, token_lifetime_seconds=60)
    manager = ZaloTokenManager(settings, clock=FakeClock())

    assert asyncio.run(manager.get_valid_access_token()) == "a1"
    assert asyncio.run(manager.get_valid_access_token()) == "a2"
    assert asyncio.run(manager.get_valid_access_token()) == "a3"

    sent = [parse_qs(call.request.content.decode())["refresh_token"][0] for call in route.calls]
    # A response without refresh_token keeps the previous one
    assert sent == ["test-refresh-token", "r1", "r1"]


@respx.mock
def test_failed_refresh_keeps_stale_token_and_retries_later(zalo_settings: ZaloSettings) -> None:
    route = respx.post(ZALO_OAUTH_TOKEN_URL)
    route.side_effect = [
        httpx.Response(200, json={"error": -14014, "message": "Invalid refresh token"}),
        httpx.ConnectError("connection refused"),
        httpx.Response(200, json=token_ok()),
    ]
    settings = replace(zalo_settings, token_lifetime_seconds=60)
    manager = ZaloTokenManager(settings, clock=FakeClock())

    assert asyncio.run(manager.get_valid_access_token()) == settings.access_token
    assert manager.is_refreshing is False
    assert asyncio.run(manager.get_valid_access_token()) == settings.access_token
    assert asyncio.run(manager.get_valid_access_token()) == "new-access-token"
    assert route.call_count == 3


@respx.mock
def test_missing_app_credentials_skip_refresh(zalo_settings: ZaloSettings) -> None:
    settings = replace(zalo_settings, app_id="", token_lifetime_seconds=60)
    manager = ZaloTokenManager(settings, clock=FakeClock())

    # No route registered: any HTTP call would fail the test
    assert asyncio.run(manager.get_valid_access_token()) == settings.access_token
    assert manager.is_refreshing is False


@respx.mock
def test_force_refresh_ignores_expiry(zalo_settings: ZaloSettings) -> None:
    route = respx.post(ZALO_OAUTH_TOKEN_URL).mock(
        return_value=httpx.Response(200, json=token_ok(expires_in=3600))
    )
    manager = ZaloTokenManager(zalo_settings, clock=FakeClock())

    assert asyncio.run(manager.force_refresh()) == "new-access-token"
    assert route.call_count == 1
    assert manager.get_token_info().expires_in_minutes == 60


@respx.mock
def test_oversized_lifetime_is_capped(zalo_settings: ZaloSettings, caplog: pytest.LogCaptureFixture) -> None:
    respx.post(ZALO_OAUTH_TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"error": 0, "access_token": "n", "expires_in": 1e13})
    )
    manager = ZaloTokenManager(zalo_settings, clock=FakeClock())

    assert asyncio.run(manager.force_refresh()) == "n"

    info = manager.get_token_info()
    assert info.expires_in == MAX_TOKEN_LIFETIME_SECONDS
    assert "refresh failed" not in caplog.text


@pytest.mark.parametrize("expires_in", [0, -60, "nan", "inf", "soon"])
@respx.mock
def test_unusable_lifetime_falls_back_to_default(zalo_settings: ZaloSettings, expires_in) -> None:
    respx.post(ZALO_OAUTH_TOKEN_URL).mock(
        return_value=httpx.Response(200, json=token_ok(expires_in=expires_in))
    )
    manager = ZaloTokenManager(zalo_settings, clock=FakeClock())

    assert asyncio.run(manager.force_refresh()) == "new-access-token"
    assert manager.get_token_info().expires_in == 24 * 60 * 60


@respx.mock
def test_exchange_authorization_code_installs_tokens(zalo_settings: ZaloSettings) -> None:
    route = respx.post(ZALO_OAUTH_TOKEN_URL).mock(
        return_value=httpx.Response(200, json=token_ok("granted", "granted-refresh"))
    )
    manager = ZaloTokenManager(zalo_settings, clock=FakeClock())

    result = asyncio.run(manager.exchange_authorization_code("auth-code"))

    assert result["access_token"] == "granted"
    form = parse_qs(route.calls.last.request.content.decode())
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["auth-code"]
    assert asyncio.run(manager.get_valid_access_token()) == "granted"


def test_mask_token() -> None:
    assert mask_token("abcdefghijkl") == "abcdefgh..."
    assert mask_token(None) == ""
