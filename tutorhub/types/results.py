from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from .enums import MessageType


class ZaloSendResponse(BaseModel):
    """Raw outcome of a single call to a Zalo send endpoint.

    Attributes:
        error_code: Value of the upstream `error` field (0 means success).
        message: Upstream `message` field, if any.
        message_id: `data.message_id` on success.
        data: Raw response payload for debugging.

    Example:
        >>> from tutorhub.types import ZaloSendResponse
        >>> ZaloSendResponse(error_code=0, message_id="m1").ok
        True
    """

    error_code: int
    message: Optional[str] = None
    message_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.error_code == 0


class SmartSendResult(BaseModel):
    """Result of delivering one notification through the smart sender.

    `message_type` and `used_quota` describe the tier that actually
    delivered the message and are only set when `success` is true.
    """

    user_id: str
    success: bool
    message_id: Optional[str] = None
    message_type: Optional[MessageType] = None
    used_quota: Optional[bool] = None
    error: Optional[str] = None
    error_code: Optional[int] = None

    @model_validator(mode="after")
    def _channel_only_on_success(self) -> "SmartSendResult":
        if not self.success and (self.message_type is not None or self.used_quota is not None):
            raise ValueError("message_type/used_quota are only set on success")
        return self


class BatchSendSummary(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0
    consultation_count: int = 0
    promotion_count: int = 0
    quota_used: int = 0


class BatchSmartSendResult(BatchSendSummary):
    """Aggregate outcome of a batch send.

    Counts always satisfy `success + failed == total` and
    `consultation_count + promotion_count == success`.
    """

    results: List[SmartSendResult] = Field(default_factory=list)

    def record(self, result: SmartSendResult) -> None:
        self.results.append(result)
        self.total += 1
        if not result.success:
            self.failed += 1
            return
        self.success += 1
        if result.message_type is MessageType.PROMOTION:
            self.promotion_count += 1
        else:
            self.consultation_count += 1
        if result.used_quota:
            self.quota_used += 1

    def summary(self) -> BatchSendSummary:
        return BatchSendSummary(**self.model_dump(exclude={"results"}))


class TokenInfo(BaseModel):
    """Read-only view of the cached OA credential, for diagnostics."""

    has_token: bool
    expires_at: Optional[datetime] = None
    expires_in: Optional[int] = None
    expires_in_minutes: Optional[int] = None


class ConnectionTestResult(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[int] = None
    status: Optional[int] = None


class FollowersPage(BaseModel):
    total: int = 0
    count: int = 0
    offset: int = 0
    followers: List[Dict[str, Any]] = Field(default_factory=list)


class QuotaStats(BaseModel):
    month: str
    total_messages: int = 0
    consultation_count: int = 0
    promotion_count: int = 0
    quota_used: int = 0
    quota_limit: int
    percentage_used: int = 0
