from __future__ import annotations

from typing import Any, Dict, Optional


def send_ok(message_id: str = "msg-1") -> Dict[str, Any]:
    return {"error": 0, "message": "Success", "data": {"message_id": message_id, "user_id": "1234567890"}}


def send_error(code: int, message: str = "error") -> Dict[str, Any]:
    return {"error": code, "message": message}


def token_ok(
    access_token: str = "new-access-token",
    refresh_token: Optional[str] = "new-refresh-token",
    expires_in: Any = "90000",
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"access_token": access_token, "expires_in": expires_in}
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    return body


def user_send_text(
    *,
    sender_id: str = "1234567890",
    text: str = "Chào thầy",
    msg_id: str = "in-1",
    timestamp: int = 1700000000000,
) -> Dict[str, Any]:
    return {
        "app_id": "app-1",
        "event_name": "user_send_message",
        "sender": {"id": sender_id},
        "recipient": {"id": "oa-1"},
        "message": {"text": text, "msg_id": msg_id},
        "timestamp": timestamp,
    }


def user_send_image(*, sender_id: str = "1234567890") -> Dict[str, Any]:
    return {
        "event_name": "user_send_attachment",
        "sender": {"id": sender_id},
        "message": {
            "msg_id": "in-2",
            "attachments": [{"type": "image", "payload": {"url": "https://example.com/a.png"}}],
        },
        "timestamp": "1700000000001",
    }


def notification_read(message_id: str = "msg-1") -> Dict[str, Any]:
    return {"event_name": "notification_read", "message_id": message_id, "timestamp": 1700000000002}
