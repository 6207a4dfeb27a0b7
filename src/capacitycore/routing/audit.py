"""Bounded in-memory log of dispatch records."""

import logging
from collections import deque
from typing import Optional

from capacitycore.routing.models import DispatchRecord

logger = logging.getLogger(__name__)


class DispatchLog:
    """Keeps the most recent dispatch records for observability."""

    def __init__(self, max_size: int = 1000):
        self._records: deque[DispatchRecord] = deque(maxlen=max_size)

    def record(self, record: DispatchRecord) -> None:
        self._records.append(record)
        if record.success:
            logger.info(
                f"Dispatched {record.request_id} -> {record.agent} "
                f"(confidence={record.confidence:.2f}, {record.processing_time_ms:.1f}ms)"
            )
        else:
            logger.warning(
                f"Dispatch {record.request_id} -> {record.agent} failed with {record.error_code} "
                f"(confidence={record.confidence:.2f}, {record.processing_time_ms:.1f}ms)"
            )

    def recent(self, limit: Optional[int] = None, agent: Optional[str] = None) -> list[DispatchRecord]:
        """Newest first, optionally filtered by agent."""
        records = [r for r in reversed(self._records) if agent is None or r.agent == agent]
        return records[:limit] if limit is not None else records

    def __len__(self) -> int:
        return len(self._records)
