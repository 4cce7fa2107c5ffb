"""Temporal workflows for TutorHub.

Workflows orchestrate reminder delivery; the activities do the I/O.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Optional

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from tutorhub.temporal.activities import ReminderActivities


@workflow.defn
class ClassReminderWorkflow:
    """Send a reminder to every student of a class who connected Zalo.

    This workflow:
    1. Loads the class roster
    2. Smart-sends the text (free consultation, promotion fallback)
    """

    @workflow.run
    async def run(
        self, class_id: int, text: str, attachment_id: Optional[str] = None
    ) -> Dict[str, Any]:
        user_ids = await workflow.execute_activity_method(
            ReminderActivities.get_class_recipients,
            class_id,
            start_to_close_timeout=timedelta(seconds=30),
        )

        if not user_ids:
            workflow.logger.info("Class %s has no Zalo recipients", class_id)
            return {"class_id": class_id, "total": 0, "success": 0, "failed": 0}

        # Sequential sends with a delay each; allow for the whole roster
        summary = await workflow.execute_activity_method(
            ReminderActivities.send_smart_batch,
            {"user_ids": user_ids, "text": text, "attachment_id": attachment_id},
            start_to_close_timeout=timedelta(minutes=10),
        )

        return {"class_id": class_id, **summary}
