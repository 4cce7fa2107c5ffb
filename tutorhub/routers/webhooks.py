from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from server.config import Settings, get_settings
from server.dependencies import get_token_manager, get_zalo_client
from tutorhub.adapters.zalo import ZaloClient
from tutorhub.errors import ZaloAPIError, ZaloConfigurationError
from tutorhub.services.token_manager import ZaloTokenManager, mask_token
from tutorhub.types import WebhookEventType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/zalo", tags=["webhooks"])


@router.get("")
async def verify_webhook(
    verify_token: Optional[str] = Query(None),
    challenge: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
) -> Any:
    """Handshake used when registering the webhook URL in the Zalo console."""
    expected = settings.zalo_webhook_verify_token
    if expected and verify_token != expected:
        raise HTTPException(status_code=403, detail="Invalid verify token")
    return {"ok": True, "challenge": challenge}


@router.post("")
async def zalo_events(
    request: Request,
    signature: Optional[str] = Header(None, alias="x-zalo-signature"),
    settings: Settings = Depends(get_settings),
    zalo: ZaloClient = Depends(get_zalo_client),
) -> dict[str, Any]:
    """Receive OA events.

    - Verifies `X-Zalo-Signature` when a sign key is configured
    - Normalizes the body and logs it
    - Answers 200 for anything else so Zalo does not retry
    """
    raw = await request.body()

    if settings.zalo_webhook_sign_key and not zalo.verify_signature(raw, signature):
        logger.warning("Rejected Zalo webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        body = json.loads(raw or b"{}")
    except ValueError:
        logger.warning("Zalo webhook body is not JSON")
        return {"ok": True, "ignored": True, "reason": "invalid JSON"}

    event = zalo.normalize_event(body)
    if event.type is WebhookEventType.MESSAGE:
        logger.info("Zalo message from %s: %s", event.sender_id, (event.text or "")[:80])
    elif event.type is WebhookEventType.ATTACHMENT:
        logger.info("Zalo attachment from %s", event.sender_id)
    elif event.type in (WebhookEventType.NOTIFICATION_RECEIVED, WebhookEventType.NOTIFICATION_READ):
        logger.info("Zalo %s for message %s", event.type.value, event.message_id)
    else:
        return {"ok": True, "ignored": True, "event": event.event}

    return {"ok": True, "event": event.model_dump(exclude_none=True, mode="json")}


@router.get("/oauth-callback")
async def oauth_callback(
    code: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    tokens: ZaloTokenManager = Depends(get_token_manager),
) -> dict[str, Any]:
    """Exchange the OAuth code granted by the OA admin for tokens."""
    if error or not code:
        raise HTTPException(status_code=400, detail=error or "Missing authorization code")

    try:
        result = await tokens.exchange_authorization_code(code)
    except ZaloConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ZaloAPIError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except (httpx.HTTPError, ValueError) as e:
        raise HTTPException(status_code=502, detail=f"Zalo token exchange failed: {e}")

    return {
        "success": True,
        "access_token": mask_token(result.get("access_token"), visible=30),
        "expires_in": result.get("expires_in"),
        "message": "Zalo OA connected. Update ZALO_REFRESH_TOKEN to keep access after restart.",
    }
