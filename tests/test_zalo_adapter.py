from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
from dataclasses import replace

import httpx
import pytest
import respx

from tests.conftest import ACCESS_TOKEN, SIGN_KEY, StaticTokenProvider
from tests.fixtures.zalo_responses import (
    notification_read,
    send_error,
    send_ok,
    user_send_image,
    user_send_text,
)
from tutorhub.adapters.zalo import ZaloClient
from tutorhub.config import (
    ZALO_CONSULTATION_URL,
    ZALO_FOLLOWERS_URL,
    ZALO_OA_INFO_URL,
    ZALO_PROMOTION_URL,
    ZALO_USER_PROFILE_URL,
    ZaloSettings,
)
from tutorhub.errors import ZaloAPIError, ZaloConfigurationError
from tutorhub.types import ConsultationMessage, PromotionMessage, WebhookEventType


@pytest.fixture()
def zalo(zalo_settings: ZaloSettings) -> ZaloClient:
    return ZaloClient(zalo_settings, StaticTokenProvider())


@respx.mock
def test_send_consultation_payload(zalo: ZaloClient) -> None:
    route = respx.post(ZALO_CONSULTATION_URL).mock(
        return_value=httpx.Response(200, json=send_ok("m1"))
    )

    resp = asyncio.run(zalo.send_consultation(ConsultationMessage(user_id="123", text="Xin chào")))

    assert resp.ok
    assert resp.message_id == "m1"
    request = route.calls.last.request
    assert request.headers["access_token"] == ACCESS_TOKEN
    assert json.loads(request.content) == {
        "recipient": {"user_id": "123"},
        "message": {"text": "Xin chào"},
    }


@respx.mock
def test_send_promotion_payload(zalo: ZaloClient) -> None:
    route = respx.post(ZALO_PROMOTION_URL).mock(
        return_value=httpx.Response(200, json=send_ok("p1"))
    )

    resp = asyncio.run(
        zalo.send_promotion(PromotionMessage(user_id="123", attachment_id="att_1"), access_token="other")
    )

    assert resp.message_id == "p1"
    request = route.calls.last.request
    assert request.headers["access_token"] == "other"
    assert json.loads(request.content)["message"] == {
        "attachment": {
            "type": "template",
            "payload": {"template_type": "promotion", "elements": [{"attachment_id": "att_1"}]},
        }
    }


@respx.mock
def test_send_reports_upstream_error_code(zalo: ZaloClient) -> None:
    respx.post(ZALO_CONSULTATION_URL).mock(
        return_value=httpx.Response(200, json=send_error(-213, "User has not interacted"))
    )

    resp = asyncio.run(zalo.send_consultation(ConsultationMessage(user_id="123", text="Hi")))

    assert not resp.ok
    assert resp.error_code == -213
    assert resp.message == "User has not interacted"


@respx.mock
def test_non_json_server_error_raises_http_error(zalo: ZaloClient) -> None:
    respx.post(ZALO_CONSULTATION_URL).mock(return_value=httpx.Response(503, text="unavailable"))

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(zalo.send_consultation(ConsultationMessage(user_id="123", text="Hi")))


def test_missing_token_is_configuration_error(zalo_settings: ZaloSettings) -> None:
    zalo = ZaloClient(zalo_settings, StaticTokenProvider(token=""))

    with pytest.raises(ZaloConfigurationError):
        asyncio.run(zalo.send_consultation(ConsultationMessage(user_id="123", text="Hi")))


@respx.mock
def test_user_profile_none_on_error(zalo: ZaloClient) -> None:
    respx.post(ZALO_USER_PROFILE_URL).mock(
        return_value=httpx.Response(200, json={"error": -210, "message": "user not found"})
    )

    assert asyncio.run(zalo.get_user_profile("999")) is None


@respx.mock
def test_user_profile_returns_data(zalo: ZaloClient) -> None:
    respx.post(ZALO_USER_PROFILE_URL).mock(
        return_value=httpx.Response(200, json={"error": 0, "data": {"user_id": "123", "display_name": "An"}})
    )

    assert asyncio.run(zalo.get_user_profile("123")) == {"user_id": "123", "display_name": "An"}


@respx.mock
def test_followers_page(zalo: ZaloClient) -> None:
    route = respx.get(ZALO_FOLLOWERS_URL).mock(
        return_value=httpx.Response(
            200,
            json={"error": 0, "data": {"total": 2, "count": 2, "offset": 0, "followers": [{"user_id": "1"}, {"user_id": "2"}]}},
        )
    )

    page = asyncio.run(zalo.get_followers(offset=0, count=2))

    assert page.total == 2
    assert [f["user_id"] for f in page.followers] == ["1", "2"]
    assert json.loads(route.calls.last.request.url.params["data"]) == {"offset": 0, "count": 2}


@respx.mock
def test_followers_error_raises(zalo: ZaloClient) -> None:
    respx.get(ZALO_FOLLOWERS_URL).mock(
        return_value=httpx.Response(200, json={"error": -124, "message": "Access token invalid"})
    )

    with pytest.raises(ZaloAPIError) as excinfo:
        asyncio.run(zalo.get_followers())
    assert excinfo.value.error_code == -124


@respx.mock
def test_connection_test_never_raises(zalo: ZaloClient) -> None:
    route = respx.get(ZALO_OA_INFO_URL)
    route.side_effect = [
        httpx.Response(200, json={"error": 0, "data": {"name": "TutorHub"}}),
        httpx.Response(200, json={"error": -124, "message": "Access token invalid"}),
        httpx.ConnectError("down"),
    ]

    ok = asyncio.run(zalo.test_connection())
    bad = asyncio.run(zalo.test_connection())
    down = asyncio.run(zalo.test_connection())

    assert ok.success and ok.data == {"name": "TutorHub"}
    assert not bad.success and bad.error_code == -124
    assert not down.success and "down" in down.error


def _sign(body: bytes, key: str = SIGN_KEY) -> str:
    return hmac.new(key.encode(), body, hashlib.sha256).hexdigest()


def test_verify_signature(zalo: ZaloClient) -> None:
    body = json.dumps(user_send_text()).encode()

    assert zalo.verify_signature(body, _sign(body))
    assert zalo.verify_signature(body.decode(), _sign(body).upper())
    assert not zalo.verify_signature(body, _sign(body, "wrong"))
    assert not zalo.verify_signature(body, None)


def test_verify_signature_without_key(zalo_settings: ZaloSettings) -> None:
    zalo = ZaloClient(replace(zalo_settings, webhook_sign_key=None), StaticTokenProvider())
    body = b"{}"

    assert zalo.verify_signature(body, _sign(body)) is False


def test_normalize_text_message(zalo: ZaloClient) -> None:
    event = zalo.normalize_event(user_send_text(text="Em chào thầy"))

    assert event.type is WebhookEventType.MESSAGE
    assert event.sender_id == "1234567890"
    assert event.text == "Em chào thầy"
    assert event.message_id == "in-1"
    assert event.timestamp == "1700000000000"


def test_normalize_attachment(zalo: ZaloClient) -> None:
    event = zalo.normalize_event(user_send_image())

    assert event.type is WebhookEventType.ATTACHMENT
    assert event.attachment[0]["type"] == "image"


def test_normalize_read_receipt(zalo: ZaloClient) -> None:
    event = zalo.normalize_event(notification_read("msg-9"))

    assert event.type is WebhookEventType.NOTIFICATION_READ
    assert event.message_id == "msg-9"


def test_normalize_unknown_keeps_payload(zalo: ZaloClient) -> None:
    body = {"event_name": "follow", "follower": {"id": "1"}}
    event = zalo.normalize_event(body)

    assert event.type is WebhookEventType.UNKNOWN
    assert event.event == "follow"
    assert event.payload == body
