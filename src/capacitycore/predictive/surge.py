"""Surge-level detection and transition tracking."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING, Optional

from capacitycore.predictive.datasource import CapacityDataSource
from capacitycore.predictive.models import (
    RiskLevel,
    SurgeEvent,
    SurgeEventType,
    SurgeLevel,
    SurgeStatus,
)
from capacitycore.settings.predictive import PredictiveSettings

if TYPE_CHECKING:
    from capacitycore.notifications.bridge import NotificationBridge

logger = logging.getLogger(__name__)

RECOMMENDED_ACTIONS: dict[SurgeLevel, list[str]] = {
    SurgeLevel.NORMAL: [],
    SurgeLevel.WARNING: [
        "Monitor capacity hourly",
        "Accelerate discharge planning",
        "Pre-alert bed control team",
    ],
    SurgeLevel.CRITICAL: [
        "Activate surge protocol",
        "Review all observation patients for discharge",
        "Open overflow areas if available",
        "Increase discharge planning rounds",
    ],
    SurgeLevel.DIVERSION: [
        "Activate diversion protocol",
        "Contact transfer center for outbound transfers",
        "Expedite all pending discharges",
        "Review observation patients for potential discharge",
    ],
}

RISK_BY_LEVEL: dict[SurgeLevel, RiskLevel] = {
    SurgeLevel.NORMAL: RiskLevel.LOW,
    SurgeLevel.WARNING: RiskLevel.MEDIUM,
    SurgeLevel.CRITICAL: RiskLevel.HIGH,
    SurgeLevel.DIVERSION: RiskLevel.CRITICAL,
}


def classify_occupancy(occupancy_pct: float, settings: Optional[PredictiveSettings] = None) -> SurgeLevel:
    """Surge level for an occupancy percentage.

    normal below warning, warning in [warning, critical), critical in
    [critical, diversion], diversion strictly above diversion.
    """
    settings = settings or PredictiveSettings()
    if occupancy_pct > settings.surge_diversion_pct:
        return SurgeLevel.DIVERSION
    if occupancy_pct >= settings.surge_critical_pct:
        return SurgeLevel.CRITICAL
    if occupancy_pct >= settings.surge_warning_pct:
        return SurgeLevel.WARNING
    return SurgeLevel.NORMAL


def threshold_for(level: SurgeLevel, settings: PredictiveSettings) -> float:
    return {
        SurgeLevel.NORMAL: settings.surge_warning_pct,
        SurgeLevel.WARNING: settings.surge_warning_pct,
        SurgeLevel.CRITICAL: settings.surge_critical_pct,
        SurgeLevel.DIVERSION: settings.surge_diversion_pct,
    }[level]


def surge_event_type(previous: SurgeLevel, level: SurgeLevel) -> SurgeEventType:
    if level == SurgeLevel.NORMAL:
        return SurgeEventType.NORMALIZED
    if level == SurgeLevel.WARNING:
        return SurgeEventType.CAPACITY_WARNING
    if level == SurgeLevel.DIVERSION:
        return SurgeEventType.DIVERSION
    if previous == SurgeLevel.DIVERSION:
        return SurgeEventType.SURGE_PROTOCOL
    return SurgeEventType.CAPACITY_CRITICAL


async def check_surge(
    source: CapacityDataSource,
    facility_id: Optional[str] = None,
    settings: Optional[PredictiveSettings] = None,
) -> SurgeStatus:
    """Facility-wide (or all-unit) occupancy and surge level."""
    settings = settings or PredictiveSettings()
    units = await source.list_units(facility_id)
    if not units:
        return SurgeStatus(
            facility_id=facility_id,
            level=SurgeLevel.NORMAL,
            occupancy_pct=0.0,
            trigger="no units",
            threshold_pct=settings.surge_warning_pct,
        )

    occupied_by_unit: dict[str, int] = {u.unit_id: 0 for u in units}
    for stay in await source.active_stays(list(occupied_by_unit)):
        if stay.unit_id not in occupied_by_unit:
            continue
        occupied_by_unit[stay.unit_id] += 1

    total_beds = 0
    total_occupied = 0
    affected = []
    for unit in units:
        occupied = occupied_by_unit[unit.unit_id]
        total_beds += unit.total_beds
        total_occupied += occupied
        if unit.total_beds > 0 and 100.0 * occupied / unit.total_beds >= settings.affected_unit_pct:
            affected.append(unit.unit_id)

    occupancy = 100.0 * total_occupied / total_beds if total_beds > 0 else 0.0
    level = classify_occupancy(occupancy, settings)
    threshold = threshold_for(level, settings)

    if level == SurgeLevel.NORMAL:
        trigger = f"occupancy {occupancy:.1f}% below {threshold:g}% warning threshold"
    else:
        comparator = ">" if level == SurgeLevel.DIVERSION else ">="
        trigger = f"occupancy {occupancy:.1f}% {comparator} {threshold:g}% {level.value} threshold"

    return SurgeStatus(
        facility_id=facility_id,
        level=level,
        occupancy_pct=round(occupancy, 1),
        trigger=trigger,
        threshold_pct=threshold,
        total_beds=total_beds,
        occupied_beds=total_occupied,
        affected_units=affected,
        recommended_actions=list(RECOMMENDED_ACTIONS[level]),
    )


class SurgeWatch:
    """
    Remembers the last surge level per facility and emits transitions.

    Every facility starts at ``normal``. A check that lands on a different
    level produces exactly one :class:`SurgeEvent`, which is forwarded to
    the notification bridge. Checks of the same facility are serialized.
    """

    def __init__(
        self,
        source: CapacityDataSource,
        bridge: Optional["NotificationBridge"] = None,
        settings: Optional[PredictiveSettings] = None,
        max_events: int = 200,
    ):
        self._source = source
        self._bridge = bridge
        self._settings = settings or PredictiveSettings()
        self._levels: dict[Optional[str], SurgeLevel] = {}
        self._locks: dict[Optional[str], asyncio.Lock] = {}
        self._events: deque[SurgeEvent] = deque(maxlen=max_events)

    def level(self, facility_id: Optional[str] = None) -> SurgeLevel:
        return self._levels.get(facility_id, SurgeLevel.NORMAL)

    def recent_events(self, limit: Optional[int] = None) -> list[SurgeEvent]:
        """Newest first."""
        events = list(reversed(self._events))
        return events[:limit] if limit is not None else events

    async def check(self, facility_id: Optional[str] = None) -> tuple[SurgeStatus, Optional[SurgeEvent]]:
        lock = self._locks.setdefault(facility_id, asyncio.Lock())
        async with lock:
            status = await check_surge(self._source, facility_id, self._settings)
            previous = self.level(facility_id)
            if status.level == previous:
                return status, None

            self._levels[facility_id] = status.level
            event = SurgeEvent(
                facility_id=facility_id,
                type=surge_event_type(previous, status.level),
                previous_level=previous,
                level=status.level,
                occupancy_pct=status.occupancy_pct,
                trigger=status.trigger,
            )
            self._events.append(event)

        if status.level.rank > previous.rank:
            logger.warning(
                f"Surge {event.type.value} for {facility_id or 'all units'}: "
                f"{previous.value} -> {status.level.value} ({status.trigger})"
            )
        else:
            logger.info(f"Surge level for {facility_id or 'all units'} eased to {status.level.value}")

        if self._bridge is not None:
            self._bridge.notify_surge(event)
        return status, event
