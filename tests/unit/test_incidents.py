"""Unit tests for the incident state machine."""

import pytest

from capacitycore.health import IncidentChange, IncidentTracker
from capacitycore.health.models import IncidentType, Severity
from capacitycore.registry import HealthStatus


async def feed(tracker, agent, make_result, *statuses):
    updates = []
    for status in statuses:
        updates.append(await tracker.record(agent, make_result(agent.name, status)))
    return updates


class TestIncidentTracker:

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, make_agent, make_result):
        tracker = IncidentTracker()
        agent = make_agent("beds", is_critical=True, max_consecutive_failures=3)

        updates = await feed(
            tracker,
            agent,
            make_result,
            HealthStatus.HEALTHY,
            HealthStatus.UNHEALTHY,
            HealthStatus.UNHEALTHY,
            HealthStatus.UNHEALTHY,
        )

        assert updates[:3] == [None, None, None]
        assert updates[3].change == IncidentChange.OPENED
        incident = updates[3].incident
        assert incident.severity == Severity.CRITICAL
        assert incident.type == IncidentType.FAILURE
        assert incident.consecutive_failures == 3
        assert incident.is_open
        assert tracker.consecutive_failures("beds") == 3
        assert tracker.has_open_incident("beds")

    @pytest.mark.asyncio
    async def test_non_critical_opens_high(self, make_agent, make_result):
        tracker = IncidentTracker()
        agent = make_agent("fhir", max_consecutive_failures=2)

        updates = await feed(tracker, agent, make_result, HealthStatus.UNREACHABLE, HealthStatus.UNREACHABLE)

        assert updates[1].incident.severity == Severity.HIGH
        assert updates[1].incident.type == IncidentType.TIMEOUT

    @pytest.mark.asyncio
    async def test_degraded_opens_medium_then_escalates_once(self, make_agent, make_result):
        tracker = IncidentTracker()
        agent = make_agent("fhir", max_consecutive_failures=2)

        updates = await feed(
            tracker,
            agent,
            make_result,
            HealthStatus.DEGRADED,
            HealthStatus.DEGRADED,
            HealthStatus.DEGRADED,
            HealthStatus.UNHEALTHY,
            HealthStatus.UNREACHABLE,
        )

        assert updates[1].change == IncidentChange.OPENED
        assert updates[1].incident.severity == Severity.MEDIUM
        assert updates[1].incident.type == IncidentType.DEGRADED
        assert updates[2] is None
        assert updates[3].change == IncidentChange.ESCALATED
        assert updates[3].incident.severity == Severity.HIGH
        assert updates[3].incident.escalated_at is not None
        assert updates[4] is None
        assert len(tracker.open_incidents()) == 1

    @pytest.mark.asyncio
    async def test_single_open_incident_per_agent(self, make_agent, make_result):
        tracker = IncidentTracker()
        agent = make_agent("beds", max_consecutive_failures=1)

        updates = await feed(tracker, agent, make_result, *[HealthStatus.UNHEALTHY] * 5)

        opened = [u for u in updates if u is not None]
        assert len(opened) == 1
        assert tracker.consecutive_failures("beds") == 5

    @pytest.mark.asyncio
    async def test_healthy_resolves_and_resets(self, make_agent, make_result):
        tracker = IncidentTracker()
        agent = make_agent("beds", max_consecutive_failures=2)

        updates = await feed(
            tracker,
            agent,
            make_result,
            HealthStatus.UNHEALTHY,
            HealthStatus.UNHEALTHY,
            HealthStatus.HEALTHY,
        )

        resolved = updates[2]
        assert resolved.change == IncidentChange.RESOLVED
        assert resolved.incident.type == IncidentType.RECOVERED
        assert resolved.incident.resolved_at is not None
        assert not resolved.incident.is_open
        assert tracker.consecutive_failures("beds") == 0
        assert not tracker.has_open_incident("beds")
        assert tracker.history() == [resolved.incident]

    @pytest.mark.asyncio
    async def test_healthy_resets_counter_below_threshold(self, make_agent, make_result):
        tracker = IncidentTracker()
        agent = make_agent("beds", max_consecutive_failures=3)

        updates = await feed(
            tracker,
            agent,
            make_result,
            HealthStatus.UNHEALTHY,
            HealthStatus.UNHEALTHY,
            HealthStatus.HEALTHY,
            HealthStatus.UNHEALTHY,
            HealthStatus.UNHEALTHY,
        )

        assert all(u is None for u in updates)
        assert tracker.consecutive_failures("beds") == 2

    @pytest.mark.asyncio
    async def test_history_newest_first(self, make_agent, make_result):
        tracker = IncidentTracker(history_size=2)
        agent = make_agent("beds", max_consecutive_failures=1)

        ids = []
        for _ in range(3):
            opened, resolved = await feed(tracker, agent, make_result, HealthStatus.UNHEALTHY, HealthStatus.HEALTHY)
            ids.append(resolved.incident.id)

        assert [i.id for i in tracker.history()] == [ids[2], ids[1]]
        assert [i.id for i in tracker.history(limit=1)] == [ids[2]]

    @pytest.mark.asyncio
    async def test_agents_are_independent(self, make_agent, make_result):
        tracker = IncidentTracker()
        beds = make_agent("beds", max_consecutive_failures=1)
        fhir = make_agent("fhir", max_consecutive_failures=1)

        await feed(tracker, beds, make_result, HealthStatus.UNHEALTHY)
        await feed(tracker, fhir, make_result, HealthStatus.HEALTHY)

        assert tracker.has_open_incident("beds")
        assert not tracker.has_open_incident("fhir")
        assert tracker.open_incident("fhir") is None
