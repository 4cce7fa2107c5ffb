from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from server.config import Settings, get_settings
from server.dependencies import (
    get_quota_log,
    get_recipient_directory,
    get_smart_sender,
    get_temporal,
    require_api_token,
)
from tutorhub.services.quota_log import QuotaLogService
from tutorhub.services.recipient_directory import RecipientDirectory
from tutorhub.services.smart_sender import SmartSender
from tutorhub.services.temporal_client import TemporalService
from tutorhub.temporal.schedules import schedule_session_reminders
from tutorhub.types import ClassReminderRequest, SessionReminderRequest
from tutorhub.utils import class_reminder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reminders"], dependencies=[Depends(require_api_token)])


@router.post("/classes/{class_id}/reminders")
async def send_class_reminder(
    class_id: int,
    payload: ClassReminderRequest,
    settings: Settings = Depends(get_settings),
    directory: RecipientDirectory = Depends(get_recipient_directory),
    sender: SmartSender = Depends(get_smart_sender),
    quota_log: QuotaLogService = Depends(get_quota_log),
) -> dict:
    """Smart-send a reminder to every student of the class who connected Zalo."""
    if not directory.is_available():
        raise HTTPException(status_code=503, detail="Recipient directory not configured")

    roster = directory.get_class_recipients(class_id)
    if roster is None:
        raise HTTPException(status_code=404, detail="Class not found")

    user_ids = [r.zalo_user_id for r in roster.reachable]
    if not user_ids:
        return {
            "success": True,
            "message": "Không có học viên nào có Zalo ID",
            "sent": 0,
            "failed": 0,
            "skipped": len(roster.unreachable),
        }

    attachment_id = payload.attachment_id or settings.reminder_attachment_id
    text = payload.text
    if not text:
        text = class_reminder(roster.class_name or f"#{class_id}", payload.starts_at.strip())
    batch = await sender.batch_smart_send(user_ids, text, attachment_id)
    quota_log.record(batch.results)
    logger.info("Class %s reminder: %d/%d delivered", class_id, batch.success, batch.total)

    return {
        "success": True,
        "sent": batch.success,
        "failed": batch.failed,
        "skipped": len(roster.unreachable),
        "summary": batch.summary().model_dump(),
        "results": [r.model_dump(mode="json") for r in batch.results],
    }


@router.post("/class-sessions/{session_id}/reminders")
async def schedule_reminders(
    session_id: int,
    payload: SessionReminderRequest,
    settings: Settings = Depends(get_settings),
    temporal: TemporalService = Depends(get_temporal),
) -> dict:
    """Schedule the 4-hour and 10-minute reminders of a class session."""
    client = temporal.get_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Reminder scheduling is not available")

    reminders = await schedule_session_reminders(
        client,
        session_id=session_id,
        class_id=payload.class_id,
        session_title=payload.title,
        scheduled_at=payload.scheduled_at,
        attachment_id=payload.attachment_id or settings.reminder_attachment_id,
    )
    return {"success": True, "reminders_created": len(reminders), "reminders": reminders}
