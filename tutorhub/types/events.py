from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel

from .enums import WebhookEventType


class ZaloWebhookEvent(BaseModel):
    """Normalized inbound event from the Zalo OA webhook.

    Routers depend on this model rather than on the raw webhook body. Fields
    are optional because each event kind carries a different subset.

    Attributes:
        type: Normalized event kind.
        event: Raw `event` name sent by Zalo (e.g. "user_send_message").
        sender_id: Follower who triggered the event, when applicable.
        message_id: Message the delivery/read receipt refers to.
        text: Text of an inbound follower message.
        attachment: Attachment payload of an inbound follower message.
        timestamp: Upstream timestamp (milliseconds, as sent).
        payload: Original body, kept only for unknown events.

    Example:
        >>> from tutorhub.types import ZaloWebhookEvent, WebhookEventType
        >>> ZaloWebhookEvent(type=WebhookEventType.MESSAGE, sender_id="1", text="Hi")
    """

    type: WebhookEventType
    event: Optional[str] = None
    sender_id: Optional[str] = None
    message_id: Optional[str] = None
    text: Optional[str] = None
    attachment: Optional[Any] = None
    timestamp: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
