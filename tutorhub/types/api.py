from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import MessageType
from .messages import validate_attachment_id, validate_message_text, validate_user_id
from .results import BatchSendSummary, SmartSendResult


class SmartSendRequest(BaseModel):
    """Request body for `POST /zalo/smart-send`.

    Attributes:
        mode: "single" (default) sends to `user_id`, "batch" to `user_ids`.
        text_content: Message text, 1-2000 characters.
        promotion_attachment_id: Attachment used when the free consultation
            tier is refused and the promotion fallback is needed.
        access_token: Optional OA token overriding the managed one
            (single mode only).

    Examples:
        Single:
            {
              "mode": "single",
              "user_id": "1234567890",
              "text_content": "Lớp học bắt đầu lúc 18:00",
              "promotion_attachment_id": "abc_123"
            }

        Batch:
            {
              "mode": "batch",
              "user_ids": ["111", "222"],
              "text_content": "Nhắc nhở nộp bài tập"
            }
    """

    mode: Literal["single", "batch"] = "single"
    user_id: Optional[str] = None
    user_ids: Optional[List[str]] = None
    text_content: str
    promotion_attachment_id: Optional[str] = None
    access_token: Optional[str] = None

    @field_validator("text_content")
    @classmethod
    def _validate_text(cls, v: str) -> str:
        return validate_message_text(v)

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, v: Optional[str]) -> Optional[str]:
        return validate_user_id(v) if v is not None else v

    @field_validator("user_ids")
    @classmethod
    def _validate_user_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [validate_user_id(user_id) for user_id in v]

    @field_validator("promotion_attachment_id")
    @classmethod
    def _validate_attachment(cls, v: Optional[str]) -> Optional[str]:
        return validate_attachment_id(v) if v else None

    @model_validator(mode="after")
    def _require_recipients_for_mode(self) -> "SmartSendRequest":
        if self.mode == "single" and not self.user_id:
            raise ValueError("user_id is required for single mode")
        if self.mode == "batch" and not self.user_ids:
            raise ValueError("user_ids array is required for batch mode")
        return self


class SmartSendResultPayload(BaseModel):
    message_id: Optional[str] = None
    message_type: MessageType
    used_quota: bool


class SmartSendSingleResponse(BaseModel):
    success: bool
    result: Optional[SmartSendResultPayload] = None
    error: Optional[str] = None
    error_code: Optional[int] = None


class SmartSendBatchResponse(BaseModel):
    success: bool
    summary: BatchSendSummary
    results: List[SmartSendResult]


class SendMessageRequest(BaseModel):
    """Plain consultation send with a bold title line, no promotion fallback."""

    user_id: str
    title: str = Field(min_length=1, max_length=200)
    message: str

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, v: str) -> str:
        return validate_user_id(v)

    @field_validator("message")
    @classmethod
    def _validate_message(cls, v: str) -> str:
        return validate_message_text(v)


class SendMessageResponse(BaseModel):
    ok: bool
    message_id: Optional[str] = None


class ClassReminderRequest(BaseModel):
    """Either a full `text`, or a `starts_at` label such as "18:00 hôm nay"
    that is filled into the standard class reminder.
    """

    text: Optional[str] = None
    starts_at: Optional[str] = Field(default=None, max_length=100)
    attachment_id: Optional[str] = None

    @field_validator("text")
    @classmethod
    def _validate_text(cls, v: Optional[str]) -> Optional[str]:
        return validate_message_text(v) if v is not None else v

    @field_validator("attachment_id")
    @classmethod
    def _validate_attachment(cls, v: Optional[str]) -> Optional[str]:
        return validate_attachment_id(v) if v else None

    @model_validator(mode="after")
    def _require_text_or_time(self) -> "ClassReminderRequest":
        if not self.text and not (self.starts_at or "").strip():
            raise ValueError("text or starts_at is required")
        return self


class SessionReminderRequest(BaseModel):
    """Schedule the automatic reminders of one class session."""

    class_id: int
    title: str = Field(min_length=1)
    scheduled_at: datetime
    attachment_id: Optional[str] = None

    @field_validator("attachment_id")
    @classmethod
    def _validate_attachment(cls, v: Optional[str]) -> Optional[str]:
        return validate_attachment_id(v) if v else None


class SendTestRequest(BaseModel):
    """Send one consultation message to check that delivery works end to end."""

    user_id: str
    message: Optional[str] = None

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, v: str) -> str:
        return validate_user_id(v)

    @field_validator("message")
    @classmethod
    def _validate_message(cls, v: Optional[str]) -> Optional[str]:
        return validate_message_text(v) if v else None


class StudentZaloUpdate(BaseModel):
    """Connect a student's Zalo account, or disconnect it with null/""."""

    zalo_user_id: Optional[str] = None

    @field_validator("zalo_user_id")
    @classmethod
    def _validate_zalo_user_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return validate_user_id(v.strip())
