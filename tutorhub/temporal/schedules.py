"""Delayed reminder runs for class sessions.

Each session gets two ClassReminderWorkflow runs: 4 hours and 10 minutes
before it starts. Runs use a deterministic workflow id per session and
offset so scheduling the same session twice does not send twice.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from temporalio.client import Client as TemporalClient
from temporalio.exceptions import WorkflowAlreadyStartedError

from tutorhub.services.temporal_client import TASK_QUEUE
from tutorhub.temporal.workflows import ClassReminderWorkflow
from tutorhub.utils.templates import TEN_MINUTE_REMINDER, session_reminder

logger = logging.getLogger(__name__)

REMINDER_OFFSETS = {
    "4h": timedelta(hours=4),
    "10m": timedelta(minutes=10),
}


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def plan_session_reminders(
    session_title: str,
    scheduled_at: datetime,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Return the reminders still ahead of `now`, earliest first.

    Each item has `kind`, `send_at`, `delay` and `text`.
    """
    scheduled_at = _aware(scheduled_at)
    now = _aware(now) if now else datetime.now(timezone.utc)
    scheduled_time = scheduled_at.strftime("%H:%M %d/%m")

    plan = []
    for kind, offset in REMINDER_OFFSETS.items():
        send_at = scheduled_at - offset
        if send_at <= now:
            continue
        text = session_reminder(session_title, scheduled_time) if kind == "4h" else TEN_MINUTE_REMINDER
        plan.append({"kind": kind, "send_at": send_at, "delay": send_at - now, "text": text})
    return plan


async def schedule_session_reminders(
    client: TemporalClient,
    session_id: int,
    class_id: int,
    session_title: str,
    scheduled_at: datetime,
    attachment_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Start the delayed reminder workflows for one session.

    Returns:
        One dict per reminder (`kind`, `workflow_id`, `send_at`, `status`)
        where status is "scheduled" or "already_scheduled". Reminders
        whose send time has passed are left out.
    """
    scheduled = []
    for item in plan_session_reminders(session_title, scheduled_at, now):
        workflow_id = f"class-session-{session_id}-reminder-{item['kind']}"
        status = "scheduled"
        try:
            await client.start_workflow(
                ClassReminderWorkflow.run,
                args=[class_id, item["text"], attachment_id],
                id=workflow_id,
                task_queue=TASK_QUEUE,
                start_delay=item["delay"],
            )
            logger.info("Scheduled %s reminder for session %s at %s", item["kind"], session_id, item["send_at"])
        except WorkflowAlreadyStartedError:
            status = "already_scheduled"
            logger.info("Reminder %s already scheduled", workflow_id)

        scheduled.append(
            {
                "kind": item["kind"],
                "workflow_id": workflow_id,
                "send_at": item["send_at"].isoformat(),
                "status": status,
            }
        )
    return scheduled
