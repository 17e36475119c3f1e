"""Compaction operations."""

from __future__ import annotations

import datetime
import time

from .core import BaseClient, handle_status
from .entities import CompactionPlan, CompactionPlanType, CompactionState

_LOGICAL_BITS = 18


def _compose_ts(seconds: float, logical: int = 0) -> int:
    """Hybrid timestamp: physical milliseconds shifted above the logical counter."""
    physical_ms = int(seconds * 1000)
    return (physical_ms << _LOGICAL_BITS) | logical


def _to_seconds(tolerance: float | datetime.timedelta) -> float:
    if isinstance(tolerance, datetime.timedelta):
        return tolerance.total_seconds()
    return float(tolerance)


class MaintenanceOperations(BaseClient):
    """Trigger compactions and follow their progress."""

    def manual_compaction(
        self, collection_name: str, tolerance: float | datetime.timedelta = 0
    ) -> int:
        """Start a compaction of a collection and return its id.

        ``tolerance`` (seconds or a timedelta) moves the time-travel point back
        from now.
        """
        service = self._require_service()
        self._check_collection_exists(collection_name)
        collection = self._describe_collection(collection_name)
        travel = _compose_ts(time.time() - _to_seconds(tolerance), 0)
        response = service.manual_compaction(
            collection_id=collection.collection_id, timetravel=travel
        )
        handle_status(getattr(response, "status", None))
        return response.compaction_id

    def get_compaction_state(self, compaction_id: int) -> CompactionState:
        """Return the state of a compaction."""
        response = self._require_service().get_compaction_state(compaction_id=compaction_id)
        handle_status(getattr(response, "status", None))
        return CompactionState(response.state)

    def get_compaction_state_with_plans(
        self, compaction_id: int
    ) -> tuple[CompactionState, list[CompactionPlan]]:
        """Return the state of a compaction together with its merge plans."""
        response = self._require_service().get_compaction_state_with_plans(
            compaction_id=compaction_id
        )
        handle_status(getattr(response, "status", None))
        plans = [
            CompactionPlan(
                source=list(info.sources),
                target=info.target,
                plan_type=CompactionPlanType.MERGE_SEGMENTS,
            )
            for info in (response.merge_infos or [])
        ]
        return CompactionState(response.state), plans