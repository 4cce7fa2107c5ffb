"""Notification text templates and placeholder substitution."""

from __future__ import annotations

from typing import Mapping, Union

TEST_MESSAGE = "🧪 Đây là tin nhắn test từ hệ thống"


def format_notification(template: str, variables: Mapping[str, Union[str, int, float]]) -> str:
    """Replace every `{key}` placeholder with its value.

    Unknown placeholders are left untouched so partially filled templates
    stay readable.

    Example:
        >>> format_notification("Lớp {name} lúc {time}", {"name": "A1", "time": "18:00"})
        'Lớp A1 lúc 18:00'
    """
    result = template
    for key, value in variables.items():
        result = result.replace("{" + key + "}", str(value))
    return result


def class_reminder(class_name: str, time: str) -> str:
    """Standard text for a manual class reminder."""
    return f"📢 Nhắc nhở: Lớp {class_name} sẽ bắt đầu lúc {time}"


def titled_message(title: str, message: str, class_name: str | None = None) -> str:
    """Format used for direct OA messages: bold title, body, optional class footer."""
    text = f"📢 *{title}*\n\n{message}"
    if class_name:
        text += f"\n\n---\nLớp: {class_name}"
    return text


SESSION_REMINDER_TEMPLATE = "📢 Nhắc nhở: Buổi học {sessionTitle} sẽ bắt đầu lúc {scheduledTime}"
TEN_MINUTE_REMINDER = "⏰ Chuẩn bị vào lớp: Buổi học sắp bắt đầu (10 phút nữa). Vào lớp ngay!"


def session_reminder(session_title: str, scheduled_time: str) -> str:
    return format_notification(
        SESSION_REMINDER_TEMPLATE,
        {"sessionTitle": session_title, "scheduledTime": scheduled_time},
    )
