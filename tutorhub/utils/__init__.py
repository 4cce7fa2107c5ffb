"""Utility functions for TutorHub."""

from .error_messages import get_error_message
from .quota import format_quota_display, quota_percentage, quota_status
from .templates import TEST_MESSAGE, class_reminder, format_notification, titled_message

__all__ = [
    "TEST_MESSAGE",
    "class_reminder",
    "format_notification",
    "format_quota_display",
    "get_error_message",
    "quota_percentage",
    "quota_status",
    "titled_message",
]
