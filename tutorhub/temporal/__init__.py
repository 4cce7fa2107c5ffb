"""Temporal workflows and activities for TutorHub."""

from tutorhub.temporal.activities import ReminderActivities
from tutorhub.temporal.workflows import ClassReminderWorkflow

__all__ = [
    "ClassReminderWorkflow",
    "ReminderActivities",
]
