"""CapacityCore exception hierarchy."""

from __future__ import annotations

from typing import Optional


class CapacityCoreError(Exception):
    """Base exception for all CapacityCore errors.

    ``code`` is the stable taxonomy name surfaced in API envelopes.
    """

    default_code = "CapacityCoreError"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class ConfigurationError(CapacityCoreError):
    """Invalid or missing configuration."""

    default_code = "ConfigurationError"

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key


# =============================================================================
# Registry
# =============================================================================


class UnknownAgentError(CapacityCoreError):
    """Registry lookup miss."""

    default_code = "UnknownAgent"

    def __init__(self, agent_name: str, message: Optional[str] = None):
        super().__init__(message or f"Agent '{agent_name}' is not registered")
        self.agent_name = agent_name


class DuplicateAgentError(CapacityCoreError):
    """An agent with the same name is already registered."""

    default_code = "DuplicateAgent"

    def __init__(self, agent_name: str):
        super().__init__(f"Agent '{agent_name}' is already registered")
        self.agent_name = agent_name


class AgentInUseError(CapacityCoreError):
    """Agent cannot be removed while an open incident references it."""

    default_code = "AgentInUse"

    def __init__(self, agent_name: str):
        super().__init__(f"Agent '{agent_name}' has an open incident and cannot be removed")
        self.agent_name = agent_name


# =============================================================================
# Routing
# =============================================================================


class RoutingError(CapacityCoreError):
    """Routing or dispatch failed."""

    default_code = "RoutingError"

    def __init__(
        self,
        message: str,
        agent_name: Optional[str] = None,
        confidence: float = 0.0,
    ):
        super().__init__(message)
        self.agent_name = agent_name
        self.confidence = confidence


class NoConfidentMatchError(RoutingError):
    """No rule matched above its confidence threshold."""

    default_code = "NoConfidentMatch"


class UpstreamTimeoutError(RoutingError):
    """The target agent did not answer before the deadline."""

    default_code = "UpstreamTimeout"


class UpstreamUnreachableError(RoutingError):
    """The target agent could not be reached or is marked down."""

    default_code = "UpstreamUnreachable"


class UpstreamError(RoutingError):
    """The target agent answered with a non-success status."""

    default_code = "UpstreamError"

    def __init__(
        self,
        message: str,
        agent_name: Optional[str] = None,
        confidence: float = 0.0,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, agent_name=agent_name, confidence=confidence)
        self.status_code = status_code


# =============================================================================
# Predictive
# =============================================================================


class UnknownUnitError(CapacityCoreError):
    """Requested care unit does not exist in the data source."""

    default_code = "UnknownUnit"

    def __init__(self, unit_id: str):
        super().__init__(f"Unit '{unit_id}' not found")
        self.unit_id = unit_id
