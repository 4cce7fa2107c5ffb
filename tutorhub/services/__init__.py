"""Services package for TutorHub."""

from .smart_sender import SmartSender
from .token_manager import ZaloTokenManager

__all__ = [
    "SmartSender",
    "ZaloTokenManager",
]
