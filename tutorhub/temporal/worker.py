"""Temporal worker for TutorHub.

The worker runs reminder workflows and activities. It runs as a background
task alongside the FastAPI server, sharing the server's service instances.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from temporalio.client import Client as TemporalClient
from temporalio.worker import Worker

from tutorhub.services.temporal_client import TASK_QUEUE
from tutorhub.temporal.activities import ReminderActivities
from tutorhub.temporal.workflows import ClassReminderWorkflow

logger = logging.getLogger(__name__)


def build_worker(client: TemporalClient, activities: ReminderActivities) -> Worker:
    return Worker(
        client,
        task_queue=TASK_QUEUE,
        workflows=[ClassReminderWorkflow],
        activities=[activities.get_class_recipients, activities.send_smart_batch],
    )


async def run_worker(client: TemporalClient, activities: ReminderActivities) -> None:
    """Run the worker until cancelled."""
    try:
        worker = build_worker(client, activities)
        logger.info("Temporal worker started on task queue %s", TASK_QUEUE)
        await worker.run()
    except asyncio.CancelledError:
        logger.info("Temporal worker stopped")
        raise
    except Exception:
        logger.exception("Temporal worker crashed")


def start_worker_background(
    client: TemporalClient, activities: ReminderActivities
) -> Optional[asyncio.Task]:
    """Start the worker as a task on the running event loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("No running event loop; Temporal worker not started")
        return None
    return loop.create_task(run_worker(client, activities))
