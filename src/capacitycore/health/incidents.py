"""Per-agent incident state machine."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from capacitycore.health.models import (
    HealthCheckResult,
    Incident,
    IncidentType,
    Severity,
    utcnow,
)
from capacitycore.registry.models import AgentDescriptor, HealthStatus

logger = logging.getLogger(__name__)


class IncidentChange(str, Enum):
    OPENED = "opened"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class IncidentUpdate:
    change: IncidentChange
    incident: Incident


def opening_severity(agent: AgentDescriptor, status: HealthStatus) -> Severity:
    if agent.is_critical:
        return Severity.CRITICAL
    if status == HealthStatus.DEGRADED:
        return Severity.MEDIUM
    return Severity.HIGH


class IncidentTracker:
    """
    Tracks consecutive failures and open incidents per agent.

    Rules:
    - Any non-healthy result increments the agent's counter
    - Reaching ``max_consecutive_failures`` with nothing open opens one incident
    - A worse status on an open medium incident escalates it to high, once
    - The next healthy result resolves the incident and resets the counter

    Updates for one agent are serialized by that agent's lock; different
    agents never wait on each other.
    """

    def __init__(self, history_size: int = 500):
        self._locks: dict[str, asyncio.Lock] = {}
        self._failures: dict[str, int] = {}
        self._open: dict[str, Incident] = {}
        self._history: deque[Incident] = deque(maxlen=history_size)

    def _lock(self, agent_name: str) -> asyncio.Lock:
        lock = self._locks.get(agent_name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[agent_name] = lock
        return lock

    async def record(self, agent: AgentDescriptor, result: HealthCheckResult) -> Optional[IncidentUpdate]:
        """Apply one poll result and return the incident change it caused, if any."""
        async with self._lock(agent.name):
            if result.status == HealthStatus.HEALTHY:
                return self._on_healthy(agent, result)
            return self._on_failure(agent, result)

    def _on_healthy(self, agent: AgentDescriptor, result: HealthCheckResult) -> Optional[IncidentUpdate]:
        self._failures[agent.name] = 0
        incident = self._open.pop(agent.name, None)
        if incident is None:
            return None

        incident.resolved_at = result.checked_at
        incident.type = IncidentType.RECOVERED
        self._history.append(incident)
        logger.info(f"Incident {incident.id} for {agent.name} resolved")
        return IncidentUpdate(IncidentChange.RESOLVED, incident)

    def _on_failure(self, agent: AgentDescriptor, result: HealthCheckResult) -> Optional[IncidentUpdate]:
        count = self._failures.get(agent.name, 0) + 1
        self._failures[agent.name] = count

        incident = self._open.get(agent.name)
        if incident is None:
            if count < agent.max_consecutive_failures:
                return None
            incident = Incident(
                agent_name=agent.name,
                type=IncidentType.for_status(result.status),
                severity=opening_severity(agent, result.status),
                message=self._describe(agent, result, count),
                consecutive_failures=count,
                opened_at=result.checked_at,
            )
            self._open[agent.name] = incident
            logger.warning(f"Incident {incident.id} opened for {agent.name}: {incident.message}")
            return IncidentUpdate(IncidentChange.OPENED, incident)

        if (
            not agent.is_critical
            and incident.severity == Severity.MEDIUM
            and result.status in (HealthStatus.UNHEALTHY, HealthStatus.UNREACHABLE)
        ):
            incident.severity = Severity.HIGH
            incident.type = IncidentType.for_status(result.status)
            incident.escalated_at = utcnow()
            incident.message = self._describe(agent, result, count)
            logger.warning(f"Incident {incident.id} for {agent.name} escalated to high")
            return IncidentUpdate(IncidentChange.ESCALATED, incident)

        return None

    @staticmethod
    def _describe(agent: AgentDescriptor, result: HealthCheckResult, count: int) -> str:
        detail = f": {result.error_message}" if result.error_message else ""
        return f"{agent.name} {result.status.value} for {count} consecutive checks{detail}"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def consecutive_failures(self, agent_name: str) -> int:
        return self._failures.get(agent_name, 0)

    def open_incident(self, agent_name: str) -> Optional[Incident]:
        return self._open.get(agent_name)

    def has_open_incident(self, agent_name: str) -> bool:
        return agent_name in self._open

    def open_incidents(self) -> list[Incident]:
        return list(self._open.values())

    def history(self, limit: Optional[int] = None) -> list[Incident]:
        """Resolved incidents, newest first."""
        items = list(reversed(self._history))
        return items[:limit] if limit is not None else items
