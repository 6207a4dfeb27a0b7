"""Registry module for agent catalog and runtime status."""

from capacitycore.registry.models import AgentCategory, AgentDescriptor, HealthStatus
from capacitycore.registry.registry import AgentRegistry, load_agents
from capacitycore.registry.defaults import default_agents

__all__ = [
    "AgentCategory",
    "AgentDescriptor",
    "HealthStatus",
    "AgentRegistry",
    "load_agents",
    "default_agents",
]
