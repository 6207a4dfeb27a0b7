"""Unit tests for the agent registry."""

import pytest

from capacitycore.core.exceptions import (
    AgentInUseError,
    ConfigurationError,
    DuplicateAgentError,
    UnknownAgentError,
)
from capacitycore.registry import (
    AgentCategory,
    AgentDescriptor,
    AgentRegistry,
    HealthStatus,
    default_agents,
    load_agents,
)
from capacitycore.settings import RegistrySettings


class TestAgentDescriptor:

    def test_defaults(self):
        agent = AgentDescriptor(name="bed-optimizer", endpoint="http://beds.test/")

        assert agent.category == AgentCategory.DOMAIN
        assert agent.endpoint == "http://beds.test"
        assert agent.poll_interval_seconds == 60
        assert agent.max_consecutive_failures == 3
        assert agent.is_critical is False
        assert agent.health_url == "http://beds.test/health"
        assert agent.recovery_url is None

    def test_recovery_url(self):
        agent = AgentDescriptor(name="a", endpoint="http://a.test", recovery_path="/reset")

        assert agent.recovery_url == "http://a.test/reset"

    def test_rejects_zero_failure_threshold(self):
        with pytest.raises(ValueError):
            AgentDescriptor(name="a", endpoint="http://a.test", max_consecutive_failures=0)

    def test_is_frozen(self):
        agent = AgentDescriptor(name="a", endpoint="http://a.test")

        with pytest.raises(ValueError):
            agent.is_critical = True


class TestHealthStatus:

    def test_routable_statuses(self):
        assert HealthStatus.HEALTHY.is_routable
        assert HealthStatus.DEGRADED.is_routable
        assert not HealthStatus.UNHEALTHY.is_routable
        assert not HealthStatus.UNREACHABLE.is_routable


class TestAgentRegistry:

    def test_register_and_get(self, registry, make_agent):
        agent = registry.register(make_agent("beds"))

        assert registry.get("beds") is agent
        assert "beds" in registry
        assert len(registry) == 1
        assert registry.status("beds") == HealthStatus.HEALTHY
        assert registry.is_routable("beds")

    def test_register_duplicate(self, registry, make_agent):
        registry.register(make_agent("beds"))

        with pytest.raises(DuplicateAgentError) as exc_info:
            registry.register(make_agent("beds"))

        assert exc_info.value.code == "DuplicateAgent"

    def test_require_unknown(self, registry):
        with pytest.raises(UnknownAgentError) as exc_info:
            registry.require("missing")

        assert exc_info.value.code == "UnknownAgent"
        assert exc_info.value.agent_name == "missing"

    def test_update_replaces_descriptor(self, registry, make_agent):
        registry.register(make_agent("beds"))

        updated = registry.update("beds", is_critical=True, poll_interval_seconds=30)

        assert updated.is_critical is True
        assert updated.poll_interval_seconds == 30
        assert registry.get("beds") is updated

    def test_update_rejects_rename(self, registry, make_agent):
        registry.register(make_agent("beds"))

        with pytest.raises(ConfigurationError):
            registry.update("beds", name="other")

        assert registry.get("beds").name == "beds"

    def test_update_accepts_unchanged_name(self, registry, make_agent):
        registry.register(make_agent("beds"))

        updated = registry.update("beds", name="beds", is_critical=True)

        assert updated.is_critical is True

    def test_update_rejects_invalid_values(self, registry, make_agent):
        registry.register(make_agent("beds"))

        with pytest.raises(ConfigurationError):
            registry.update("beds", max_consecutive_failures=0)

    def test_unregister(self, registry, make_agent):
        registry.register(make_agent("beds"))

        registry.unregister("beds")

        assert "beds" not in registry
        assert registry.status("beds") is None

    def test_unregister_blocked_by_guard(self, registry, make_agent):
        registry.register(make_agent("beds"))
        registry.add_reference_guard(lambda name: name == "beds")

        with pytest.raises(AgentInUseError):
            registry.unregister("beds")

        assert "beds" in registry

    def test_set_status_controls_routability(self, registry, make_agent):
        registry.register(make_agent("beds"))

        registry.set_status("beds", HealthStatus.UNREACHABLE)

        assert not registry.is_routable("beds")

    def test_set_status_ignores_unknown(self, registry):
        registry.set_status("ghost", HealthStatus.HEALTHY)

        assert registry.status("ghost") is None


class TestCatalogLoading:

    def test_default_agents(self):
        agents = default_agents(RegistrySettings(), base_url="http://edge.test/functions/v1/")

        names = [a.name for a in agents]
        assert "bed-optimizer" in names
        assert "guardian-agent" in names
        optimizer = next(a for a in agents if a.name == "bed-optimizer")
        assert optimizer.endpoint == "http://edge.test/functions/v1/bed-optimizer"
        assert optimizer.health_method == "POST"

    def test_load_agents_from_yaml(self, tmp_path):
        path = tmp_path / "agents.yaml"
        path.write_text(
            """
agents:
  - name: beds
    endpoint: http://beds.test
    category: domain
    is_critical: true
  - name: fhir
    endpoint: http://fhir.test
    category: integration
    max_consecutive_failures: 5
"""
        )

        agents = load_agents(path, RegistrySettings(default_poll_interval_seconds=15))

        assert [a.name for a in agents] == ["beds", "fhir"]
        assert agents[0].is_critical is True
        assert agents[0].poll_interval_seconds == 15
        assert agents[1].max_consecutive_failures == 5
        assert agents[1].category == AgentCategory.INTEGRATION

    def test_load_agents_invalid_entry(self, tmp_path):
        path = tmp_path / "agents.yaml"
        path.write_text("- name: beds\n")

        with pytest.raises(ConfigurationError):
            load_agents(path)

    def test_load_agents_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_agents(tmp_path / "missing.yaml")

    def test_from_settings_uses_defaults(self):
        registry = AgentRegistry.from_settings(RegistrySettings())

        assert "bed-management" in registry

    def test_from_settings_empty(self):
        registry = AgentRegistry.from_settings(RegistrySettings(load_defaults=False))

        assert len(registry) == 0
