"""In-process agent registry shared by the router and the health monitor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

import yaml
from pydantic import ValidationError

from capacitycore.core.exceptions import (
    AgentInUseError,
    ConfigurationError,
    DuplicateAgentError,
    UnknownAgentError,
)
from capacitycore.registry.models import AgentDescriptor, HealthStatus
from capacitycore.settings.registry import RegistrySettings

logger = logging.getLogger(__name__)

ReferenceGuard = Callable[[str], bool]


class AgentRegistry:
    """Catalog of known agents plus their last observed health status.

    Descriptors are immutable; admin changes replace them through
    :meth:`update`. Runtime status is kept beside the descriptor and is
    written only by the health monitor. A newly registered agent is
    assumed healthy until its first poll.

    Example:
        ```python
        registry = AgentRegistry()
        registry.register(AgentDescriptor(name="bed-optimizer", endpoint="http://bed:8000"))

        router = Router(registry, rules)
        monitor = HealthMonitor(registry)
        ```
    """

    def __init__(
        self,
        agents: Optional[Iterable[AgentDescriptor]] = None,
        settings: Optional[RegistrySettings] = None,
    ):
        self._settings = settings or RegistrySettings()
        self._agents: dict[str, AgentDescriptor] = {}
        self._status: dict[str, HealthStatus] = {}
        self._guards: list[ReferenceGuard] = []

        for agent in agents or ():
            self.register(agent)

    @classmethod
    def from_settings(cls, settings: Optional[RegistrySettings] = None) -> "AgentRegistry":
        """Build a registry from the configured YAML catalog or the defaults."""
        settings = settings or RegistrySettings()
        if settings.config_path:
            agents = load_agents(settings.config_path, settings)
        elif settings.load_defaults:
            from capacitycore.registry.defaults import default_agents

            agents = default_agents(settings)
        else:
            agents = []
        return cls(agents, settings=settings)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def register(self, agent: AgentDescriptor) -> AgentDescriptor:
        if agent.name in self._agents:
            raise DuplicateAgentError(agent.name)
        self._agents[agent.name] = agent
        self._status[agent.name] = HealthStatus.HEALTHY
        logger.info(f"Registered agent {agent.to_routing_context()}")
        return agent

    def update(self, agent_name: str, **changes: Any) -> AgentDescriptor:
        """Replace a descriptor with a validated copy carrying ``changes``."""
        current = self.require(agent_name)
        if "name" in changes and changes["name"] != agent_name:
            raise ConfigurationError("Agent name cannot be changed", config_key="name")

        try:
            updated = AgentDescriptor.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid update for agent '{agent_name}': {e}") from e

        self._agents[agent_name] = updated
        logger.info(f"Updated agent {agent_name}: {sorted(changes)}")
        return updated

    def unregister(self, name: str) -> None:
        self.require(name)
        if any(guard(name) for guard in self._guards):
            raise AgentInUseError(name)
        del self._agents[name]
        self._status.pop(name, None)
        logger.info(f"Unregistered agent {name}")

    def add_reference_guard(self, guard: ReferenceGuard) -> None:
        """Register a predicate that blocks removal of referenced agents."""
        self._guards.append(guard)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[AgentDescriptor]:
        return self._agents.get(name)

    def require(self, name: str) -> AgentDescriptor:
        agent = self._agents.get(name)
        if agent is None:
            raise UnknownAgentError(name)
        return agent

    def list_all(self) -> list[AgentDescriptor]:
        return list(self._agents.values())

    def names(self) -> list[str]:
        return list(self._agents)

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    # ------------------------------------------------------------------
    # Runtime status
    # ------------------------------------------------------------------

    def status(self, name: str) -> Optional[HealthStatus]:
        return self._status.get(name)

    def set_status(self, name: str, status: HealthStatus) -> None:
        if name in self._agents:
            self._status[name] = status

    def is_routable(self, name: str) -> bool:
        status = self._status.get(name)
        return status is not None and status.is_routable


def load_agents(
    path: Union[str, Path],
    settings: Optional[RegistrySettings] = None,
) -> list[AgentDescriptor]:
    """Load agent descriptors from a YAML file.

    The file holds either a list of agents or a mapping with an ``agents``
    key. Missing polling fields fall back to the registry settings.
    """
    settings = settings or RegistrySettings()
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read agent catalog {path}: {e}", config_key="config_path") from e

    entries = raw.get("agents", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ConfigurationError(f"Agent catalog {path} must contain a list", config_key="config_path")

    defaults = {
        "poll_interval_seconds": settings.default_poll_interval_seconds,
        "max_consecutive_failures": settings.default_max_consecutive_failures,
        "timeout_seconds": settings.default_timeout_seconds,
        "health_path": settings.default_health_path,
    }

    agents = []
    for entry in entries:
        try:
            agents.append(AgentDescriptor.model_validate({**defaults, **entry}))
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid agent entry in {path}: {e}", config_key="config_path") from e
    return agents
