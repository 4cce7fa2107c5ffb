from __future__ import annotations

from enum import Enum, IntEnum


class MessageType(str, Enum):
    """Delivery tier used for an outbound Zalo OA message.

    - CONSULTATION: free customer-care message, only allowed while the
      recipient has interacted with the OA recently
    - PROMOTION: template message referencing a pre-uploaded attachment,
      consumes one unit of the monthly quota

    Example:
        >>> from tutorhub.types import MessageType
        >>> MessageType("promotion").is_billable
        True
    """

    CONSULTATION = "consultation"
    PROMOTION = "promotion"

    @property
    def is_billable(self) -> bool:
        return self is MessageType.PROMOTION


class ZaloErrorCode(IntEnum):
    """Error codes returned in the `error` field of Zalo OA responses.

    Docs: https://developers.zalo.me/docs/api/official-account-api/phu-luc/ma-loi-post-3234
    """

    SUCCESS = 0
    SYSTEM_ERROR = -1
    TOKEN_EXPIRED = -124
    USER_NOT_FOLLOWED = -201
    NO_INTERACTION_48H = -213
    INVALID_RECIPIENT = -214
    INVALID_PARAMETER = -215
    QUOTA_EXCEEDED = -216
    OA_NOT_AUTHORIZED = -217
    # What the API actually answers for the interaction window
    NO_INTERACTION_7_DAYS = -230


# Codes meaning "this recipient cannot receive a consultation message right now".
# They are the only trigger for the promotion fallback.
RECIPIENT_NOT_ELIGIBLE_CODES: frozenset[int] = frozenset(
    {
        ZaloErrorCode.NO_INTERACTION_48H,
        ZaloErrorCode.USER_NOT_FOLLOWED,
        ZaloErrorCode.NO_INTERACTION_7_DAYS,
    }
)


def is_recipient_not_eligible(error_code: int | None) -> bool:
    return error_code is not None and error_code in RECIPIENT_NOT_ELIGIBLE_CODES


class WebhookEventType(str, Enum):
    """Normalized kinds of events pushed by the Zalo OA webhook."""

    MESSAGE = "message"
    ATTACHMENT = "attachment"
    NOTIFICATION_RECEIVED = "notification_received"
    NOTIFICATION_READ = "notification_read"
    UNKNOWN = "unknown"


class QuotaStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    EXCEEDED = "exceeded"
