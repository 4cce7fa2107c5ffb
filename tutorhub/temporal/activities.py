"""Temporal activities for TutorHub.

Activities do the I/O for reminder workflows: reading the class roster
from Supabase and sending through the smart sender. They are bound to the
service instances the worker was started with.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from temporalio import activity

from tutorhub.services.quota_log import QuotaLogService
from tutorhub.services.recipient_directory import RecipientDirectory
from tutorhub.services.smart_sender import SmartSender

logger = logging.getLogger(__name__)


class ReminderActivities:
    def __init__(
        self,
        sender: SmartSender,
        directory: RecipientDirectory,
        quota_log: QuotaLogService,
    ) -> None:
        self.sender = sender
        self.directory = directory
        self.quota_log = quota_log

    @activity.defn
    async def get_class_recipients(self, class_id: int) -> List[str]:
        """Return the Zalo ids of students enrolled in the class.

        Raises:
            RuntimeError: Supabase is unavailable or the class does not exist,
                so Temporal retries instead of silently sending nothing.
        """
        if not self.directory.is_available():
            raise RuntimeError("Supabase not available")

        roster = self.directory.get_class_recipients(class_id)
        if roster is None:
            raise RuntimeError(f"Class {class_id} not found")

        if roster.unreachable:
            logger.info(
                "Class %s: %d student(s) have no Zalo account connected",
                class_id,
                len(roster.unreachable),
            )
        return [r.zalo_user_id for r in roster.reachable]

    @activity.defn
    async def send_smart_batch(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Send one text to a list of Zalo ids and log quota usage.

        Args:
            data: Dict with user_ids, text and optional attachment_id

        Returns:
            Batch summary dict (total, success, failed, ...)
        """
        user_ids = data.get("user_ids") or []
        batch = await self.sender.batch_smart_send(
            user_ids, data["text"], data.get("attachment_id")
        )
        self.quota_log.record(batch.results)
        return batch.summary().model_dump()
