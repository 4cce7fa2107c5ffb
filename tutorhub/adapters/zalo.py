from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Optional

import httpx

from tutorhub.config import ZaloSettings
from tutorhub.errors import ZaloAPIError, ZaloConfigurationError
from tutorhub.types import (
    AccessTokenProvider,
    ConnectionTestResult,
    ConsultationMessage,
    FollowersPage,
    MessagingAdapter,
    PromotionMessage,
    WebhookEventType,
    ZaloErrorCode,
    ZaloSendResponse,
    ZaloWebhookEvent,
)

logger = logging.getLogger(__name__)


class ZaloClient(MessagingAdapter):
    """Zalo Official Account adapter implementing the MessagingAdapter protocol.

    Sends consultation and promotion messages to followers, reads OA and
    follower information, and verifies/normalizes webhook deliveries. The
    access token comes from the injected provider unless a call passes one.
    """

    def __init__(self, settings: ZaloSettings, token_provider: AccessTokenProvider) -> None:
        self.settings = settings
        self.token_provider = token_provider
        self.timeout = settings.http_timeout_seconds

    def _headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "access_token": access_token,
        }

    async def _access_token(self, override: Optional[str] = None) -> str:
        token = override or await self.token_provider.get_valid_access_token()
        if not token:
            raise ZaloConfigurationError("Missing Zalo configuration (ZALO_ACCESS_TOKEN)")
        return token

    def _build_payload(self, message: ConsultationMessage | PromotionMessage) -> Dict[str, Any]:
        """
        Unpack an outbound message into the JSON body expected by the OA API.

        See: https://developers.zalo.me/docs/official-account/tin-nhan/tin-tu-van
        """
        payload: Dict[str, Any] = {"recipient": {"user_id": message.user_id}}

        if isinstance(message, ConsultationMessage):
            payload["message"] = {"text": message.text}
        elif isinstance(message, PromotionMessage):
            payload["message"] = {
                "attachment": {
                    "type": "template",
                    "payload": {
                        "template_type": "promotion",
                        "elements": [{"attachment_id": message.attachment_id}],
                    },
                }
            }
        return payload

    async def _post_message(
        self, url: str, message: ConsultationMessage | PromotionMessage, access_token: Optional[str]
    ) -> ZaloSendResponse:
        message.ensure_valid_target()
        token = await self._access_token(access_token)
        payload = self._build_payload(message)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(url, headers=self._headers(token), json=payload)

        try:
            data = response.json()
        except ValueError:
            response.raise_for_status()
            data = None

        if not isinstance(data, dict):
            return ZaloSendResponse(
                error_code=int(ZaloErrorCode.SYSTEM_ERROR),
                message=f"Unexpected response from Zalo (HTTP {response.status_code})",
            )

        raw_error = data.get("error")
        error_code = raw_error if isinstance(raw_error, int) else ZaloErrorCode.SYSTEM_ERROR
        if error_code == 0 and not response.is_success:
            error_code = ZaloErrorCode.SYSTEM_ERROR

        body = data.get("data") if isinstance(data.get("data"), dict) else {}
        message_id = body.get("message_id")
        result = ZaloSendResponse(
            error_code=int(error_code),
            message=data.get("message") or (None if response.is_success else response.reason_phrase),
            message_id=str(message_id) if message_id is not None else None,
            data=data,
        )
        if not result.ok:
            logger.warning(
                "Zalo %s send to %s failed: error=%s message=%s",
                message.message_type.value,
                message.user_id,
                result.error_code,
                result.message,
            )
        return result

    async def send_consultation(
        self, message: ConsultationMessage, access_token: Optional[str] = None
    ) -> ZaloSendResponse:  # type: ignore[override]
        return await self._post_message(self.settings.consultation_url, message, access_token)

    async def send_promotion(
        self, message: PromotionMessage, access_token: Optional[str] = None
    ) -> ZaloSendResponse:  # type: ignore[override]
        return await self._post_message(self.settings.promotion_url, message, access_token)

    async def _get_json(self, url: str, **kwargs: Any) -> tuple[httpx.Response, Any]:
        token = await self._access_token()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(url=url, headers=self._headers(token), **kwargs)
        try:
            return response, response.json()
        except ValueError:
            response.raise_for_status()
            raise ZaloAPIError("Zalo returned a non-JSON body", status_code=response.status_code)

    @staticmethod
    def _raise_for_error(response: httpx.Response, data: Any, what: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ZaloAPIError(f"Unexpected {what} response", status_code=response.status_code)
        error_code = data.get("error")
        if not response.is_success or error_code != 0:
            raise ZaloAPIError(
                data.get("message") or f"Failed to fetch {what}",
                error_code=error_code if isinstance(error_code, int) else None,
                status_code=response.status_code,
                data=data,
            )
        return data

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the follower profile, or None when Zalo does not know the user."""
        response, data = await self._get_json(
            self.settings.user_profile_url, method="POST", json={"user_id": user_id}
        )
        if not response.is_success or not isinstance(data, dict) or data.get("error") != 0:
            logger.warning("Zalo user %s not found or error: %s", user_id, data)
            return None
        return data.get("data")

    async def get_oa_info(self) -> Dict[str, Any]:
        response, data = await self._get_json(self.settings.oa_info_url, method="GET")
        return self._raise_for_error(response, data, "OA info").get("data") or {}

    async def test_connection(self) -> ConnectionTestResult:
        """Check the OA credentials by fetching OA info. Never raises."""
        logger.info("Testing Zalo connection with OA %s", self.settings.oa_id or "<unset>")
        try:
            info = await self.get_oa_info()
        except ZaloAPIError as e:
            return ConnectionTestResult(
                success=False,
                error=e.message,
                error_code=e.error_code,
                status=e.status_code,
            )
        except (httpx.HTTPError, ZaloConfigurationError) as e:
            logger.error("Zalo connection test failed: %s", e)
            return ConnectionTestResult(success=False, error=str(e))
        return ConnectionTestResult(
            success=True, data=info, message="Connected to OA successfully"
        )

    async def get_followers(self, offset: int = 0, count: int = 50) -> FollowersPage:
        response, data = await self._get_json(
            self.settings.followers_url,
            method="GET",
            params={"data": json.dumps({"offset": offset, "count": count})},
        )
        body = self._raise_for_error(response, data, "followers").get("data") or {}
        return FollowersPage(
            total=body.get("total") or 0,
            count=body.get("count") or 0,
            offset=body.get("offset") or 0,
            followers=body.get("followers") or [],
        )

    # Webhook helpers
    def verify_signature(self, body: bytes | str, signature: Optional[str]) -> bool:
        key = self.settings.webhook_sign_key
        if not key:
            logger.warning("Zalo webhook sign key not configured")
            return False
        if not signature:
            return False
        raw = body.encode("utf-8") if isinstance(body, str) else body
        expected = hmac.new(key.encode("utf-8"), raw, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature.strip().lower())

    def normalize_event(self, body: Dict[str, Any]) -> ZaloWebhookEvent:
        """Map a raw OA webhook body to ZaloWebhookEvent."""
        if not isinstance(body, dict):
            return ZaloWebhookEvent(type=WebhookEventType.UNKNOWN)

        event = body.get("event_name") or body.get("event")
        message = body.get("message") if isinstance(body.get("message"), dict) else {}
        sender = body.get("sender")
        sender_id = body.get("sender_id")
        if not sender_id and isinstance(sender, dict):
            sender_id = sender.get("id")
        timestamp = body.get("timestamp")
        common = {
            "event": event,
            "timestamp": str(timestamp) if timestamp is not None else None,
        }

        if event == "user_send_message":
            return ZaloWebhookEvent(
                type=WebhookEventType.MESSAGE,
                sender_id=str(sender_id) if sender_id else None,
                text=message.get("text"),
                message_id=message.get("msg_id"),
                **common,
            )
        if event == "user_send_attachment":
            return ZaloWebhookEvent(
                type=WebhookEventType.ATTACHMENT,
                sender_id=str(sender_id) if sender_id else None,
                attachment=message.get("attachment") or message.get("attachments"),
                **common,
            )
        if event in ("notification_received", "notification_read"):
            message_id = body.get("message_id") or message.get("msg_id")
            return ZaloWebhookEvent(
                type=WebhookEventType(event),
                message_id=str(message_id) if message_id else None,
                **common,
            )

        logger.info("Unknown Zalo webhook event: %s", event)
        return ZaloWebhookEvent(type=WebhookEventType.UNKNOWN, payload=body, **common)
