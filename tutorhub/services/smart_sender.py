"""Smart Zalo messaging: free consultation first, paid promotion only when needed.

Zalo only accepts consultation messages for followers who interacted with
the OA recently. When a send is refused for that reason (and only then) the
message is retried as a promotion built from a pre-uploaded attachment,
which consumes one unit of the OA's monthly quota.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

import httpx

from tutorhub.config import DEFAULT_BATCH_DELAY_SECONDS
from tutorhub.errors import ZaloConfigurationError
from tutorhub.types import (
    AccessTokenProvider,
    BatchSmartSendResult,
    ConsultationMessage,
    MessageType,
    MessagingAdapter,
    PromotionMessage,
    SmartSendResult,
    ZaloSendResponse,
    is_recipient_not_eligible,
)
from tutorhub.utils.error_messages import get_error_message

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (httpx.HTTPError, ZaloConfigurationError)


def _failure(user_id: str, error: str, error_code: Optional[int] = None) -> SmartSendResult:
    return SmartSendResult(user_id=user_id, success=False, error=error, error_code=error_code)


def _upstream_error(response: ZaloSendResponse) -> str:
    return response.message or get_error_message(response.error_code)


class SmartSender:
    """Delivers notifications at the lowest cost the recipient allows."""

    def __init__(
        self,
        adapter: MessagingAdapter,
        token_provider: AccessTokenProvider,
        *,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
    ) -> None:
        self.adapter = adapter
        self.token_provider = token_provider
        self.batch_delay_seconds = batch_delay_seconds

    async def send_smart_message(
        self,
        user_id: str,
        text: str,
        promotion_attachment_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> SmartSendResult:
        """Send `text` to one follower, falling back to a promotion if required.

        Args:
            user_id: Zalo user id of the follower.
            text: Consultation message text.
            promotion_attachment_id: Attachment for the promotion fallback. Without
                it an ineligible recipient is reported as a failure.
            access_token: Use this token instead of the managed one.

        Returns:
            SmartSendResult; only invalid input raises.
        """
        consultation = ConsultationMessage(user_id=user_id, text=text)

        try:
            token = access_token or await self.token_provider.get_valid_access_token()
            response = await self.adapter.send_consultation(consultation, access_token=token)
        except _TRANSPORT_ERRORS as e:
            logger.error("Consultation send to %s failed: %s", user_id, e)
            return _failure(user_id, f"Consultation send failed: {e}")

        if response.ok:
            logger.info("Sent consultation message to %s (free)", user_id)
            return SmartSendResult(
                user_id=user_id,
                success=True,
                message_id=response.message_id,
                message_type=MessageType.CONSULTATION,
                used_quota=False,
            )

        if not is_recipient_not_eligible(response.error_code):
            return _failure(user_id, _upstream_error(response), response.error_code)

        if not promotion_attachment_id:
            logger.warning(
                "User %s is outside the consultation window (error=%s) and no promotion attachment was given",
                user_id,
                response.error_code,
            )
            return _failure(
                user_id,
                "Recipient cannot receive consultation messages and no promotion attachment id was provided",
                response.error_code,
            )

        logger.info(
            "User %s is outside the consultation window (error=%s), falling back to promotion",
            user_id,
            response.error_code,
        )
        try:
            promotion = await self.adapter.send_promotion(
                PromotionMessage(user_id=user_id, attachment_id=promotion_attachment_id),
                access_token=token,
            )
        except _TRANSPORT_ERRORS as e:
            logger.error("Promotion send to %s failed: %s", user_id, e)
            return _failure(user_id, f"Promotion send failed: {e}")

        if not promotion.ok:
            return _failure(
                user_id, f"Promotion fallback failed: {_upstream_error(promotion)}", promotion.error_code
            )

        logger.info("Sent promotion message to %s (quota used)", user_id)
        return SmartSendResult(
            user_id=user_id,
            success=True,
            message_id=promotion.message_id,
            message_type=MessageType.PROMOTION,
            used_quota=True,
        )

    async def batch_smart_send(
        self,
        user_ids: Iterable[str],
        text: str,
        promotion_attachment_id: Optional[str] = None,
    ) -> BatchSmartSendResult:
        """Send to each follower in order, pausing between sends. Never raises.

        A failure (or unexpected exception) for one follower is recorded in its
        result entry and the batch moves on; nothing is retried.
        """
        batch = BatchSmartSendResult()

        for index, user_id in enumerate(user_ids):
            if index > 0:
                await asyncio.sleep(self.batch_delay_seconds)
            try:
                result = await self.send_smart_message(user_id, text, promotion_attachment_id)
            except Exception as e:
                logger.exception("Unexpected error sending to %s", user_id)
                result = _failure(user_id, str(e))
            batch.record(result)

        logger.info(
            "Batch send finished: total=%d success=%d failed=%d consultation=%d promotion=%d",
            batch.total,
            batch.success,
            batch.failed,
            batch.consultation_count,
            batch.promotion_count,
        )
        return batch
