"""Human-readable hints for Zalo OA error codes, shown to teachers in the UI."""

from __future__ import annotations

from typing import Dict, Optional

from tutorhub.types import ZaloErrorCode

ZALO_ERROR_MESSAGES: Dict[int, str] = {
    ZaloErrorCode.NO_INTERACTION_48H: (
        "Người dùng chưa tương tác với OA trong 48 giờ. Hệ thống sẽ tự động thử gửi Promotion."
    ),
    ZaloErrorCode.USER_NOT_FOLLOWED: (
        "Người dùng chưa follow OA. Vui lòng yêu cầu người dùng follow trước."
    ),
    ZaloErrorCode.NO_INTERACTION_7_DAYS: (
        "Người dùng chưa tương tác với OA trong 7 ngày. Hệ thống sẽ tự động thử gửi Promotion."
    ),
    ZaloErrorCode.TOKEN_EXPIRED: "Access token đã hết hạn. Hệ thống sẽ tự động refresh token.",
    ZaloErrorCode.QUOTA_EXCEEDED: (
        "Đã hết hạn mức gửi tin (quota). Vui lòng chờ reset hoặc mua thêm gói tin."
    ),
    ZaloErrorCode.INVALID_RECIPIENT: "User ID không hợp lệ hoặc không tồn tại.",
    ZaloErrorCode.OA_NOT_AUTHORIZED: "OA chưa được cấp quyền thực hiện hành động này.",
    ZaloErrorCode.INVALID_PARAMETER: "Tham số không hợp lệ. Vui lòng kiểm tra lại.",
    ZaloErrorCode.SYSTEM_ERROR: "Lỗi hệ thống Zalo. Vui lòng thử lại sau.",
    ZaloErrorCode.SUCCESS: "Thành công",
}


def get_error_message(error_code: Optional[int]) -> str:
    if error_code is None:
        return "Lỗi không xác định"
    return ZALO_ERROR_MESSAGES.get(error_code, f"Lỗi không xác định (code: {error_code})")
