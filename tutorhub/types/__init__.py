"""Core types for TutorHub's Zalo notification system.

This package centralizes enums, message models, adapter protocols, and
result/event schemas in one place. Most modules should import types from
here rather than directly from submodules.

Usage:
    from tutorhub.types import ConsultationMessage, MessagingAdapter, MessageType
"""

from .enums import (
    RECIPIENT_NOT_ELIGIBLE_CODES,
    MessageType,
    QuotaStatus,
    WebhookEventType,
    ZaloErrorCode,
    is_recipient_not_eligible,
)
from .events import ZaloWebhookEvent
from .messages import ConsultationMessage, OutboundMessage, PromotionMessage
from .protocols import AccessTokenProvider, MessagingAdapter
from .results import (
    BatchSendSummary,
    BatchSmartSendResult,
    ConnectionTestResult,
    FollowersPage,
    QuotaStats,
    SmartSendResult,
    TokenInfo,
    ZaloSendResponse,
)
from .api import (
    ClassReminderRequest,
    SendMessageRequest,
    SendMessageResponse,
    SendTestRequest,
    SessionReminderRequest,
    SmartSendBatchResponse,
    SmartSendRequest,
    SmartSendResultPayload,
    SmartSendSingleResponse,
    StudentZaloUpdate,
)

__all__ = [
    "RECIPIENT_NOT_ELIGIBLE_CODES",
    "MessageType",
    "QuotaStatus",
    "WebhookEventType",
    "ZaloErrorCode",
    "is_recipient_not_eligible",
    "ZaloWebhookEvent",
    "OutboundMessage",
    "ConsultationMessage",
    "PromotionMessage",
    "AccessTokenProvider",
    "MessagingAdapter",
    "ZaloSendResponse",
    "SmartSendResult",
    "BatchSendSummary",
    "BatchSmartSendResult",
    "TokenInfo",
    "ConnectionTestResult",
    "FollowersPage",
    "QuotaStats",
    "SmartSendRequest",
    "SmartSendResultPayload",
    "SmartSendSingleResponse",
    "SmartSendBatchResponse",
    "SendMessageRequest",
    "SendMessageResponse",
    "ClassReminderRequest",
    "SessionReminderRequest",
    "SendTestRequest",
    "StudentZaloUpdate",
]
