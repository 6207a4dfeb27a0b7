"""Agent health monitoring and incident tracking."""

from capacitycore.health.checker import HealthChecker, classify_probe
from capacitycore.health.incidents import IncidentChange, IncidentTracker, IncidentUpdate
from capacitycore.health.models import (
    AgentStatusView,
    HealthCheckResult,
    HealthSummary,
    Incident,
    IncidentType,
    RecoveryResult,
    Severity,
    StatusReport,
)
from capacitycore.health.monitor import HealthMonitor
from capacitycore.health.scheduler import PeriodicScheduler

__all__ = [
    "AgentStatusView",
    "HealthCheckResult",
    "HealthChecker",
    "HealthMonitor",
    "HealthSummary",
    "Incident",
    "IncidentChange",
    "IncidentTracker",
    "IncidentType",
    "IncidentUpdate",
    "PeriodicScheduler",
    "RecoveryResult",
    "Severity",
    "StatusReport",
    "classify_probe",
]
