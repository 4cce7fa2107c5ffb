from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from server.dependencies import get_recipient_directory, require_api_token
from tutorhub.services.recipient_directory import RecipientDirectory
from tutorhub.types import StudentZaloUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["students"], dependencies=[Depends(require_api_token)])


@router.patch("/{user_id}/zalo")
async def update_student_zalo(
    user_id: int,
    payload: StudentZaloUpdate,
    directory: RecipientDirectory = Depends(get_recipient_directory),
) -> dict:
    """Connect a student's Zalo account, or disconnect it when `zalo_user_id` is empty."""
    if not directory.is_available():
        raise HTTPException(status_code=503, detail="Recipient directory not configured")

    student = directory.get_user(user_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")

    if not directory.set_zalo_user_id(user_id, payload.zalo_user_id):
        raise HTTPException(status_code=503, detail="Could not update Zalo id")

    logger.info("Zalo id for student %s: %s", user_id, payload.zalo_user_id or "removed")
    return {
        "success": True,
        "student": {
            "id": student.user_id,
            "name": student.name,
            "zalo_user_id": payload.zalo_user_id,
        },
        "message": "Đã kết nối Zalo" if payload.zalo_user_id else "Đã ngắt kết nối Zalo",
    }
