"""Fleet health monitor."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from datetime import timedelta
from typing import TYPE_CHECKING, Optional

from capacitycore.health.checker import HealthChecker
from capacitycore.health.incidents import IncidentChange, IncidentTracker
from capacitycore.health.models import (
    AgentStatusView,
    HealthCheckResult,
    HealthSummary,
    RecoveryResult,
    StatusReport,
    utcnow,
)
from capacitycore.registry.models import AgentDescriptor, HealthStatus
from capacitycore.registry.registry import AgentRegistry
from capacitycore.settings.health import HealthSettings

if TYPE_CHECKING:
    from capacitycore.notifications.bridge import NotificationBridge
    from capacitycore.predictive.surge import SurgeWatch

logger = logging.getLogger(__name__)


class HealthMonitor:
    """
    Polls registered agents and drives the incident state machine.

    Every agent check runs on its own task and never raises into
    :meth:`check_all`; failures are recorded as ``unreachable`` results.
    Results feed the registry's runtime status (used by the router), a
    rolling history window, and the incident tracker.

    Example:
        ```python
        monitor = HealthMonitor(registry, bridge=NotificationBridge())
        summary = await monitor.check_all()
        report = monitor.get_status()
        ```
    """

    def __init__(
        self,
        registry: AgentRegistry,
        checker: Optional[HealthChecker] = None,
        tracker: Optional[IncidentTracker] = None,
        bridge: Optional["NotificationBridge"] = None,
        settings: Optional[HealthSettings] = None,
        surge_watch: Optional["SurgeWatch"] = None,
    ):
        self._registry = registry
        self._settings = settings or HealthSettings()
        self._checker = checker or HealthChecker(slow_response_ms=self._settings.slow_response_ms)
        self._tracker = tracker or IncidentTracker(self._settings.incident_history_size)
        self._bridge = bridge
        self._surge_watch = surge_watch
        self._history: dict[str, deque[HealthCheckResult]] = {}
        self._last_polled: dict[str, float] = {}

        registry.add_reference_guard(self._tracker.has_open_incident)

    @property
    def tracker(self) -> IncidentTracker:
        return self._tracker

    async def close(self) -> None:
        await self._checker.close()

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def check_one(self, agent_name: str) -> HealthCheckResult:
        """Poll one agent now. Raises UnknownAgentError if not registered."""
        agent = self._registry.require(agent_name)
        return await self._check(agent)

    async def check_all(self) -> HealthSummary:
        """Poll every registered agent concurrently."""
        return await self._check_many(self._registry.list_all())

    def due_agents(self) -> list[AgentDescriptor]:
        """Agents whose own poll interval has elapsed since their last check."""
        now = time.monotonic()
        due = []
        for agent in self._registry.list_all():
            last = self._last_polled.get(agent.name)
            # one second of slack absorbs scheduler jitter
            if last is None or now - last + 1.0 >= agent.poll_interval_seconds:
                due.append(agent)
        return due

    async def _check_many(self, agents: list[AgentDescriptor]) -> HealthSummary:
        if not agents:
            return HealthSummary()

        limit = self._settings.max_parallel_checks or len(agents)
        semaphore = asyncio.Semaphore(limit)

        async def bounded(agent: AgentDescriptor) -> HealthCheckResult:
            async with semaphore:
                return await self._check(agent)

        results = await asyncio.gather(*(bounded(agent) for agent in agents))
        summary = HealthSummary.from_results(list(results))
        logger.info(
            f"Health check: {summary.healthy}/{summary.total} healthy, "
            f"{summary.degraded} degraded, {summary.unhealthy} unhealthy, "
            f"{summary.unreachable} unreachable"
        )
        return summary

    async def run_cycle(self) -> HealthSummary:
        """One scheduler tick: poll agents that are due, then sweep surge levels."""
        summary = await self._check_many(self.due_agents())
        if self._surge_watch is not None:
            facilities: list[Optional[str]] = list(self._settings.surge_facilities)
            if not facilities and self._settings.surge_sweep_all:
                facilities = [None]
            for facility_id in facilities:
                try:
                    await self._surge_watch.check(facility_id)
                except Exception as e:
                    logger.error(f"Surge sweep for {facility_id or 'all units'} failed: {e}")
        return summary

    async def recover(self, agent_name: str) -> RecoveryResult:
        """Attempt a reset through the agent's recovery endpoint, then re-check."""
        agent = self._registry.require(agent_name)
        had_incident = self._tracker.has_open_incident(agent_name)

        attempted = False
        if agent.recovery_url:
            attempted = True
            accepted = await self._checker.reset(agent)
            logger.info(f"Recovery reset for {agent_name} {'accepted' if accepted else 'rejected'}")

        result = await self._check(agent)
        recovered = result.status == HealthStatus.HEALTHY
        resolved = had_incident and not self._tracker.has_open_incident(agent_name)

        if recovered:
            message = f"{agent_name} is healthy"
        else:
            message = f"{agent_name} still {result.status.value}"
            if result.error_message:
                message += f": {result.error_message}"

        return RecoveryResult(
            agent_name=agent_name,
            attempted_reset=attempted,
            status=result.status,
            recovered=recovered,
            incident_resolved=resolved,
            message=message,
        )

    async def _check(self, agent: AgentDescriptor) -> HealthCheckResult:
        self._last_polled[agent.name] = time.monotonic()
        try:
            result = await self._checker.probe(agent)
        except asyncio.CancelledError:
            result = HealthCheckResult(
                agent_name=agent.name,
                status=HealthStatus.UNREACHABLE,
                error_message="Health check cancelled",
            )
            await self._apply(agent, result)
            raise
        except Exception as e:
            logger.error(f"Health check for {agent.name} crashed: {e}")
            result = HealthCheckResult(
                agent_name=agent.name,
                status=HealthStatus.UNREACHABLE,
                error_message=f"{type(e).__name__}: {e}",
            )

        await self._apply(agent, result)
        return result

    async def _apply(self, agent: AgentDescriptor, result: HealthCheckResult) -> None:
        self._remember(result)
        self._registry.set_status(agent.name, result.status)

        update = await self._tracker.record(agent, result)
        if update is None:
            return

        if update.change == IncidentChange.RESOLVED:
            logger.info(f"{agent.name} recovered after incident {update.incident.id}")
        if self._bridge is not None:
            self._bridge.notify_incident(agent, update)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _remember(self, result: HealthCheckResult) -> None:
        history = self._history.setdefault(result.agent_name, deque())
        history.append(result)
        self._prune(history)

    def _prune(self, history: deque[HealthCheckResult]) -> None:
        cutoff = utcnow() - timedelta(hours=self._settings.history_window_hours)
        while history and history[0].checked_at < cutoff:
            history.popleft()

    def history(self, agent_name: str) -> list[HealthCheckResult]:
        history = self._history.get(agent_name)
        if not history:
            return []
        self._prune(history)
        return list(history)

    def get_status(self) -> StatusReport:
        """Aggregate the history window per agent."""
        views = []
        counts = {status: 0 for status in HealthStatus}

        for agent in self._registry.list_all():
            results = self.history(agent.name)
            status = self._registry.status(agent.name)
            if status is not None:
                counts[status] += 1

            uptime = None
            avg_ms = None
            if results:
                up = sum(1 for r in results if r.status.is_routable)
                uptime = round(100.0 * up / len(results), 2)
                avg_ms = round(sum(r.response_time_ms for r in results) / len(results), 2)

            views.append(
                AgentStatusView(
                    agent_name=agent.name,
                    category=agent.category,
                    is_critical=agent.is_critical,
                    status=status,
                    consecutive_failures=self._tracker.consecutive_failures(agent.name),
                    open_incident=self._tracker.open_incident(agent.name),
                    checks=len(results),
                    uptime_pct=uptime,
                    avg_response_time_ms=avg_ms,
                    last_checked_at=results[-1].checked_at if results else None,
                )
            )

        return StatusReport(
            window_hours=self._settings.history_window_hours,
            agents=views,
            healthy=counts[HealthStatus.HEALTHY],
            degraded=counts[HealthStatus.DEGRADED],
            unhealthy=counts[HealthStatus.UNHEALTHY],
            unreachable=counts[HealthStatus.UNREACHABLE],
            total=len(views),
            open_incidents=self._tracker.open_incidents(),
        )
