"""Quota log for Zalo promotion messages, stored in Supabase."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from supabase import Client, create_client

from tutorhub.types import MessageType, QuotaStats, SmartSendResult
from tutorhub.utils.quota import MONTHLY_LIMIT, quota_percentage

logger = logging.getLogger(__name__)

QUOTA_LOG_TABLE = "zalo_quota_logs"


def _month_bounds(month: str) -> tuple[str, str]:
    start = datetime.strptime(month, "%Y-%m").replace(tzinfo=timezone.utc)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start.isoformat(), end.isoformat()


class QuotaLogService:
    """Records successful smart sends and summarizes monthly quota usage."""

    def __init__(
        self,
        supabase_url: Optional[str],
        supabase_key: Optional[str],
        *,
        monthly_limit: int = MONTHLY_LIMIT,
    ) -> None:
        self.client: Optional[Client] = None
        self._initialized = False
        self.monthly_limit = monthly_limit

        if supabase_url and supabase_key:
            try:
                self.client = create_client(supabase_url, supabase_key)
                self._initialized = True
            except Exception as e:
                logger.warning("Failed to initialize Supabase client for quota log: %s", e)
                self._initialized = False

    def is_available(self) -> bool:
        return self._initialized and self.client is not None

    def record(self, results: Iterable[SmartSendResult]) -> int:
        """Insert one log row per successful send. Returns the number of rows written."""
        rows = [
            {
                "message_id": result.message_id,
                "user_id": result.user_id,
                "message_type": result.message_type.value,
                "used_quota": bool(result.used_quota),
            }
            for result in results
            if result.success and result.message_type is not None
        ]
        if not rows or not self.is_available():
            return 0

        try:
            self.client.table(QUOTA_LOG_TABLE).insert(rows).execute()
        except Exception as e:
            logger.error("Error writing Zalo quota log: %s", e)
            return 0
        return len(rows)

    def get_monthly_stats(self, month: Optional[str] = None) -> QuotaStats:
        """Summarize usage for `month` (YYYY-MM, default: current UTC month)."""
        month = month or datetime.now(timezone.utc).strftime("%Y-%m")
        stats = QuotaStats(month=month, quota_limit=self.monthly_limit)
        if not self.is_available():
            return stats

        start, end = _month_bounds(month)
        try:
            response = (
                self.client.table(QUOTA_LOG_TABLE)
                .select("message_type, used_quota")
                .gte("created_at", start)
                .lt("created_at", end)
                .execute()
            )
        except Exception as e:
            logger.error("Error reading Zalo quota log: %s", e)
            return stats

        for row in response.data or []:
            stats.total_messages += 1
            if row.get("message_type") == MessageType.PROMOTION.value:
                stats.promotion_count += 1
            else:
                stats.consultation_count += 1
            if row.get("used_quota"):
                stats.quota_used += 1

        stats.percentage_used = quota_percentage(stats.quota_used, self.monthly_limit)
        return stats
