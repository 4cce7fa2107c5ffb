from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from server.dependencies import (
    get_quota_log,
    get_smart_sender,
    get_token_manager,
    get_zalo_client,
    require_api_token,
)
from tutorhub.adapters.zalo import ZaloClient
from tutorhub.errors import ZaloAPIError, ZaloConfigurationError
from tutorhub.services.quota_log import QuotaLogService
from tutorhub.services.smart_sender import SmartSender
from tutorhub.services.token_manager import ZaloTokenManager, mask_token
from tutorhub.types import (
    ConsultationMessage,
    SendMessageRequest,
    SendMessageResponse,
    SendTestRequest,
    SmartSendBatchResponse,
    SmartSendRequest,
    SmartSendResultPayload,
    SmartSendSingleResponse,
)
from tutorhub.utils import (
    TEST_MESSAGE,
    format_quota_display,
    get_error_message,
    quota_status,
    titled_message,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/zalo", tags=["zalo"], dependencies=[Depends(require_api_token)])


def _upstream_failure(e: Exception) -> HTTPException:
    if isinstance(e, ZaloConfigurationError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, ZaloAPIError):
        return HTTPException(status_code=502, detail=f"Zalo error: {e.message}")
    return HTTPException(status_code=502, detail=f"Zalo unreachable: {e}")


@router.post("/smart-send", response_model=None)
async def smart_send(
    payload: SmartSendRequest,
    sender: SmartSender = Depends(get_smart_sender),
    quota_log: QuotaLogService = Depends(get_quota_log),
) -> Any:
    """Send with the free consultation tier first, promotion as fallback.

    Single mode answers 500 with the upstream error code when delivery
    fails; batch mode always answers 200 with per-recipient results.
    """
    if payload.mode == "batch":
        batch = await sender.batch_smart_send(
            payload.user_ids or [], payload.text_content, payload.promotion_attachment_id
        )
        quota_log.record(batch.results)
        return SmartSendBatchResponse(success=True, summary=batch.summary(), results=batch.results)

    result = await sender.send_smart_message(
        payload.user_id,
        payload.text_content,
        payload.promotion_attachment_id,
        payload.access_token,
    )
    if not result.success:
        body = SmartSendSingleResponse(
            success=False, error=result.error, error_code=result.error_code
        )
        return JSONResponse(body.model_dump(exclude_none=True), status_code=500)

    quota_log.record([result])
    return SmartSendSingleResponse(
        success=True,
        result=SmartSendResultPayload(
            message_id=result.message_id,
            message_type=result.message_type,
            used_quota=bool(result.used_quota),
        ),
    )


@router.post("/send-message")
async def send_message(
    payload: SendMessageRequest,
    zalo: ZaloClient = Depends(get_zalo_client),
) -> SendMessageResponse:
    """Direct consultation message with a title line; no promotion fallback."""
    try:
        message = ConsultationMessage(
            user_id=payload.user_id, text=titled_message(payload.title, payload.message)
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Message too long with title: {e}")
    try:
        response = await zalo.send_consultation(message)
    except (httpx.HTTPError, ZaloConfigurationError) as e:
        raise _upstream_failure(e)

    if not response.ok:
        raise HTTPException(
            status_code=502,
            detail=f"Zalo error {response.error_code}: {response.message or get_error_message(response.error_code)}",
        )
    return SendMessageResponse(ok=True, message_id=response.message_id)


@router.post("/test-send")
async def send_test_message(
    payload: SendTestRequest,
    zalo: ZaloClient = Depends(get_zalo_client),
) -> dict:
    """Send a test consultation message to one follower."""
    text = payload.message or TEST_MESSAGE
    logger.info("Sending Zalo test message to %s", payload.user_id)
    try:
        response = await zalo.send_consultation(ConsultationMessage(user_id=payload.user_id, text=text))
    except (httpx.HTTPError, ZaloConfigurationError) as e:
        raise _upstream_failure(e)

    if not response.ok:
        raise HTTPException(
            status_code=502,
            detail=f"Zalo error {response.error_code}: {get_error_message(response.error_code)}",
        )
    return {
        "success": True,
        "message_id": response.message_id,
        "sent_to": payload.user_id,
        "message": text,
    }


@router.get("/token-status")
async def token_status(tokens: ZaloTokenManager = Depends(get_token_manager)) -> dict:
    info = tokens.get_token_info()
    return {
        "success": True,
        "token_info": {
            **info.model_dump(mode="json"),
            "expires_in_hours": (info.expires_in or 0) // 3600,
        },
        "message": (
            f"✅ Token hợp lệ, còn {info.expires_in_minutes} phút"
            if info.has_token
            else "❌ Chưa có token"
        ),
    }


@router.post("/token-status")
async def force_token_refresh(tokens: ZaloTokenManager = Depends(get_token_manager)) -> dict:
    """Refresh the OA token now; the response only carries a masked prefix."""
    token = await tokens.force_refresh()
    return {
        "success": True,
        "access_token": mask_token(token, visible=30),
        "token_info": tokens.get_token_info().model_dump(mode="json"),
    }


@router.get("/test")
async def test_connection(zalo: ZaloClient = Depends(get_zalo_client)) -> dict:
    result = await zalo.test_connection()
    return result.model_dump(exclude_none=True)


@router.get("/followers")
async def followers(
    offset: int = Query(0, ge=0),
    count: int = Query(50, ge=1, le=50),
    zalo: ZaloClient = Depends(get_zalo_client),
) -> dict:
    try:
        page = await zalo.get_followers(offset=offset, count=count)
    except (httpx.HTTPError, ZaloAPIError, ZaloConfigurationError) as e:
        raise _upstream_failure(e)
    return {"success": True, **page.model_dump()}


@router.get("/users/{zalo_user_id}")
async def user_profile(zalo_user_id: str, zalo: ZaloClient = Depends(get_zalo_client)) -> dict:
    if not zalo_user_id.isdigit():
        raise HTTPException(status_code=422, detail="Zalo user id must be numeric")
    try:
        profile = await zalo.get_user_profile(zalo_user_id)
    except (httpx.HTTPError, ZaloAPIError, ZaloConfigurationError) as e:
        raise _upstream_failure(e)
    if profile is None:
        raise HTTPException(status_code=404, detail="Zalo user not found")
    return {"success": True, "profile": profile}


@router.get("/quota")
async def quota(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    quota_log: QuotaLogService = Depends(get_quota_log),
) -> dict:
    stats = quota_log.get_monthly_stats(month)
    return {
        "success": True,
        "stats": stats.model_dump(),
        "status": quota_status(stats.quota_used, stats.quota_limit).value,
        "display": format_quota_display(stats.quota_used, stats.quota_limit),
        "tracking": quota_log.is_available(),
    }
