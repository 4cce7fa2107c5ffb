from __future__ import annotations

from typing import Any, Dict, Optional


class ZaloConfigurationError(RuntimeError):
    """Raised when a required Zalo credential or setting is missing."""


class ZaloAPIError(Exception):
    """The Zalo API answered with a non-zero `error` code or an unusable body.

    Attributes:
        error_code: Upstream `error` value, when one was returned.
        status_code: HTTP status of the response.
        data: Raw response payload for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[int] = None,
        status_code: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.data = data
