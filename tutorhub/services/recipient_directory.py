"""Recipient directory backed by Supabase.

Resolves classes and students to the Zalo user ids their notifications are
delivered to. Every lookup degrades to an empty result when Supabase is not
configured so messaging endpoints keep working without a database.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel
from supabase import Client, create_client

logger = logging.getLogger(__name__)


class Recipient(BaseModel):
    user_id: int
    name: Optional[str] = None
    zalo_user_id: Optional[str] = None


class ClassRoster(BaseModel):
    class_id: int
    class_name: Optional[str] = None
    recipients: List[Recipient] = []

    @property
    def reachable(self) -> List[Recipient]:
        """Students who connected a Zalo account."""
        return [r for r in self.recipients if r.zalo_user_id]

    @property
    def unreachable(self) -> List[Recipient]:
        return [r for r in self.recipients if not r.zalo_user_id]


class RecipientDirectory:
    """Looks up students and their Zalo ids in Supabase."""

    def __init__(self, supabase_url: Optional[str], supabase_key: Optional[str]) -> None:
        self.client: Optional[Client] = None
        self._initialized = False

        if supabase_url and supabase_key:
            try:
                self.client = create_client(supabase_url, supabase_key)
                self._initialized = True
                logger.info("Recipient directory initialized")
            except Exception as e:
                logger.warning("Failed to initialize Supabase client: %s", e)
                self._initialized = False
        else:
            logger.warning("Supabase credentials not found; recipient directory disabled")

    def is_available(self) -> bool:
        """Check if Supabase is available."""
        return self._initialized and self.client is not None

    def get_user(self, user_id: int) -> Optional[Recipient]:
        if not self.is_available():
            return None

        try:
            response = (
                self.client.table("users")
                .select("id, name, zalo_user_id")
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("Error getting user %s: %s", user_id, e)
            return None

        if not response.data:
            return None
        row = response.data[0]
        return Recipient(user_id=row["id"], name=row.get("name"), zalo_user_id=row.get("zalo_user_id"))

    def get_class_recipients(self, class_id: int) -> Optional[ClassRoster]:
        """Return the students enrolled in a class, or None if the class does not exist.

        Args:
            class_id: Class primary key

        Returns:
            ClassRoster with every enrolled student, including those without a
            Zalo id (see `ClassRoster.unreachable`).
        """
        if not self.is_available():
            logger.warning("Supabase not available. Cannot load roster for class %s", class_id)
            return None

        try:
            classes = self.client.table("classes").select("id, name").eq("id", class_id).execute()
            if not classes.data:
                return None

            enrollments = (
                self.client.table("class_enrollments")
                .select("student_id")
                .eq("class_id", class_id)
                .execute()
            )
            student_ids = [row["student_id"] for row in (enrollments.data or [])]
            roster = ClassRoster(class_id=class_id, class_name=classes.data[0].get("name"))
            if not student_ids:
                return roster

            students = (
                self.client.table("users")
                .select("id, name, zalo_user_id")
                .in_("id", student_ids)
                .execute()
            )
        except Exception as e:
            logger.error("Error loading roster for class %s: %s", class_id, e)
            return None

        roster.recipients = [
            Recipient(user_id=row["id"], name=row.get("name"), zalo_user_id=row.get("zalo_user_id"))
            for row in (students.data or [])
        ]
        return roster

    def set_zalo_user_id(self, user_id: int, zalo_user_id: Optional[str]) -> bool:
        """Connect (or with None, disconnect) a user's Zalo account."""
        if not self.is_available():
            return False

        try:
            response = (
                self.client.table("users")
                .update({"zalo_user_id": zalo_user_id})
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("Error updating Zalo id for user %s: %s", user_id, e)
            return False
        return bool(response.data)
