"""Temporal client service for TutorHub.

Holds the process-wide Temporal client used to start reminder workflows.
The API keeps working without it; reminder scheduling then reports 503.
"""

from __future__ import annotations

import logging
from typing import Optional

from temporalio.client import Client as TemporalClient

logger = logging.getLogger(__name__)

DEFAULT_TEMPORAL_HOST = "localhost:7233"
DEFAULT_TEMPORAL_NAMESPACE = "default"
TASK_QUEUE = "tutorhub-zalo"


class TemporalService:
    """Service for managing the Temporal client connection."""

    def __init__(self, host: Optional[str] = None, namespace: Optional[str] = None):
        self.client: Optional[TemporalClient] = None
        self._initialized = False

        self.host = host or DEFAULT_TEMPORAL_HOST
        self.namespace = namespace or DEFAULT_TEMPORAL_NAMESPACE

    async def connect(self) -> None:
        """Connect to the Temporal server; stays unavailable on failure."""
        if self._initialized:
            return

        try:
            self.client = await TemporalClient.connect(self.host, namespace=self.namespace)
            self._initialized = True
            logger.info("Temporal client connected to %s/%s", self.host, self.namespace)
        except Exception as e:
            logger.warning("Failed to connect to Temporal at %s: %s", self.host, e)
            self._initialized = False

    async def close(self) -> None:
        # temporalio clients own no closable resources; drop the reference
        self.client = None
        self._initialized = False
        logger.info("Temporal client released")

    def is_available(self) -> bool:
        """Check if Temporal is available."""
        return self._initialized and self.client is not None

    def get_client(self) -> Optional[TemporalClient]:
        return self.client if self.is_available() else None


_temporal_service: Optional[TemporalService] = None


def get_temporal_service(
    host: Optional[str] = None, namespace: Optional[str] = None
) -> TemporalService:
    """Get or create the Temporal service instance.

    The address is fixed by the first call; later arguments are ignored.
    """
    global _temporal_service
    if _temporal_service is None:
        _temporal_service = TemporalService(host, namespace)
    return _temporal_service
