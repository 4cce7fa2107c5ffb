from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, field_validator

from .enums import MessageType

MIN_MESSAGE_LENGTH = 1
MAX_MESSAGE_LENGTH = 2000

# Zalo user ids are numeric strings; attachment ids come from the OA article API
USER_ID_PATTERN = re.compile(r"^\d+$")
ATTACHMENT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def validate_user_id(value: str) -> str:
    value = value.strip() if isinstance(value, str) else value
    if not isinstance(value, str) or not USER_ID_PATTERN.match(value):
        raise ValueError("Zalo user id must be a numeric string")
    return value


def validate_attachment_id(value: str) -> str:
    if not isinstance(value, str) or not ATTACHMENT_ID_PATTERN.match(value):
        raise ValueError("attachment id may only contain letters, digits, '_' and '-'")
    return value


def validate_message_text(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError("message text must be a string")
    if not (MIN_MESSAGE_LENGTH <= len(value) <= MAX_MESSAGE_LENGTH):
        raise ValueError(
            f"message text must be between {MIN_MESSAGE_LENGTH} and {MAX_MESSAGE_LENGTH} characters"
        )
    return value


class OutboundMessage(BaseModel):
    """Base class for messages sent from the OA to a single follower.

    Anatomy:
    - user_id: Zalo user id of the follower (scoped to the OA)
    - message_type: delivery tier, fixed by each subclass

    Example:
        >>> from tutorhub.types import ConsultationMessage
        >>> msg = ConsultationMessage(user_id="123", text="Hello")
        >>> msg.ensure_valid_target()
    """

    user_id: str
    message_type: MessageType

    def ensure_valid_target(self) -> None:
        if not self.user_id or not self.user_id.strip():
            raise ValueError("user_id must be provided")


class ConsultationMessage(OutboundMessage):
    """Free consultation (customer-care) text message.

    Fields:
        text: content to send, 1-2000 characters
    """

    text: str
    message_type: Literal[MessageType.CONSULTATION] = MessageType.CONSULTATION

    @field_validator("text")
    @classmethod
    def _validate_text(cls, v: str) -> str:
        return validate_message_text(v)


class PromotionMessage(OutboundMessage):
    """Paid promotion message built from the `promotion` template.

    The body is the pre-uploaded article/attachment referenced by
    `attachment_id`; Zalo ignores free text for this template type.
    """

    attachment_id: str
    message_type: Literal[MessageType.PROMOTION] = MessageType.PROMOTION

    @field_validator("attachment_id")
    @classmethod
    def _validate_attachment(cls, v: str) -> str:
        if not v:
            raise ValueError("attachment_id is required for promotion messages")
        return v
