"""Shared fixtures for CapacityCore tests."""

from datetime import datetime, timezone

import pytest

from capacitycore.health.models import HealthCheckResult
from capacitycore.notifications.bridge import NotificationBridge
from capacitycore.notifications.sinks import MockNotificationSink
from capacitycore.predictive.models import ActiveStay
from capacitycore.registry.models import AgentCategory, AgentDescriptor, HealthStatus
from capacitycore.registry.registry import AgentRegistry
from capacitycore.settings import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_agent():
    def _make(name: str = "agent-x", **overrides) -> AgentDescriptor:
        fields = {
            "name": name,
            "category": AgentCategory.DOMAIN,
            "endpoint": f"http://{name}.test",
            "max_consecutive_failures": 3,
            "timeout_seconds": 1.0,
        }
        fields.update(overrides)
        return AgentDescriptor(**fields)

    return _make


@pytest.fixture
def registry():
    return AgentRegistry()


@pytest.fixture
def sink():
    return MockNotificationSink()


@pytest.fixture
def bridge(sink):
    return NotificationBridge([sink])


@pytest.fixture
def make_result():
    def _make(agent_name: str, status: HealthStatus, response_time_ms: float = 10.0) -> HealthCheckResult:
        return HealthCheckResult(
            agent_name=agent_name,
            status=status,
            response_time_ms=response_time_ms,
            error_message=None if status == HealthStatus.HEALTHY else f"{status.value} probe",
        )

    return _make


@pytest.fixture
def now():
    return datetime(2024, 1, 1, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_stays(now):
    def _make(unit_id: str, count: int) -> list[ActiveStay]:
        return [ActiveStay(unit_id=unit_id, bed_id=f"{unit_id}-{i}", admitted_at=now) for i in range(count)]

    return _make
