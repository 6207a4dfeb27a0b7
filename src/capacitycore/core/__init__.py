"""Core components: exceptions, logging and the application facade."""

from capacitycore.core.exceptions import (
    AgentInUseError,
    CapacityCoreError,
    ConfigurationError,
    DuplicateAgentError,
    NoConfidentMatchError,
    RoutingError,
    UnknownAgentError,
    UnknownUnitError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
)
from capacitycore.core.logging import get_logger, setup_logging

__all__ = [
    "AgentInUseError",
    "CapacityCoreError",
    "ConfigurationError",
    "DuplicateAgentError",
    "NoConfidentMatchError",
    "RoutingError",
    "UnknownAgentError",
    "UnknownUnitError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UpstreamUnreachableError",
    "get_logger",
    "setup_logging",
]
