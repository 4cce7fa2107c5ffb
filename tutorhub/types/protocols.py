from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .events import ZaloWebhookEvent
from .messages import ConsultationMessage, PromotionMessage
from .results import ZaloSendResponse


class AccessTokenProvider(Protocol):
    """Anything able to hand out a currently valid OA access token."""

    async def get_valid_access_token(self) -> str:
        ...


class MessagingAdapter(Protocol):
    """Protocol for the Zalo OA messaging API.

    Concrete implementations encapsulate the HTTP details so the smart sender
    and routers stay transport-agnostic and can be exercised with fakes.

    Responsibilities:
        - Send consultation and promotion messages, reporting the upstream
          error code instead of raising on API-level errors
        - Verify incoming webhook signatures
        - Normalize webhook bodies to `ZaloWebhookEvent`

    Minimal example:
        >>> from tutorhub.types import MessagingAdapter, ZaloSendResponse
        >>> class AlwaysOk(MessagingAdapter):
        ...     async def send_consultation(self, message, access_token=None):
        ...         return ZaloSendResponse(error_code=0, message_id="m1")
        ...     async def send_promotion(self, message, access_token=None):
        ...         return ZaloSendResponse(error_code=0, message_id="m2")
    """

    async def send_consultation(
        self, message: ConsultationMessage, access_token: Optional[str] = None
    ) -> ZaloSendResponse:
        """Send a free consultation message.

        API-level failures come back as a non-zero `error_code`; transport
        failures raise `httpx.HTTPError`.
        """
        ...

    async def send_promotion(
        self, message: PromotionMessage, access_token: Optional[str] = None
    ) -> ZaloSendResponse:
        """Send a paid promotion message referencing a pre-uploaded attachment."""
        ...

    def verify_signature(self, body: bytes | str, signature: Optional[str]) -> bool:
        """Return True when the webhook body was signed with the OA sign key."""
        ...

    def normalize_event(self, body: Dict[str, Any]) -> ZaloWebhookEvent:
        """Normalize an inbound webhook payload to a common shape."""
        ...
