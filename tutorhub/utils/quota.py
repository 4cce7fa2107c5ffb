"""Monthly promotion quota thresholds for a paid Zalo OA."""

from __future__ import annotations

import math

from tutorhub.types import QuotaStatus

MONTHLY_LIMIT = 2000
WARNING_THRESHOLD = 0.9
CRITICAL_THRESHOLD = 0.95

_STATUS_EMOJI = {
    QuotaStatus.SAFE: "✅",
    QuotaStatus.WARNING: "⚠️",
    QuotaStatus.CRITICAL: "🚨",
    QuotaStatus.EXCEEDED: "❌",
}


def warning_limit(limit: int = MONTHLY_LIMIT) -> int:
    return math.floor(limit * WARNING_THRESHOLD)


def critical_limit(limit: int = MONTHLY_LIMIT) -> int:
    return math.floor(limit * CRITICAL_THRESHOLD)


def quota_percentage(used: int, limit: int = MONTHLY_LIMIT) -> int:
    # Round half up, in integers
    return (200 * used + limit) // (2 * limit)


def quota_status(used: int, limit: int = MONTHLY_LIMIT) -> QuotaStatus:
    if used >= limit:
        return QuotaStatus.EXCEEDED
    if used >= critical_limit(limit):
        return QuotaStatus.CRITICAL
    if used >= warning_limit(limit):
        return QuotaStatus.WARNING
    return QuotaStatus.SAFE


def format_quota_display(used: int, limit: int = MONTHLY_LIMIT) -> str:
    """Render usage the way the dashboard shows it, e.g. `✅ 120/2000 (6%)`."""
    status = quota_status(used, limit)
    return f"{_STATUS_EMOJI[status]} {used}/{limit} ({quota_percentage(used, limit)}%)"
