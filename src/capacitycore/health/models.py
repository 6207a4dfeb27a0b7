"""Health monitoring models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from capacitycore.registry.models import AgentCategory, HealthStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentType(str, Enum):
    FAILURE = "failure"
    TIMEOUT = "timeout"
    DEGRADED = "degraded"
    RECOVERED = "recovered"

    @classmethod
    def for_status(cls, status: HealthStatus) -> "IncidentType":
        if status == HealthStatus.UNREACHABLE:
            return cls.TIMEOUT
        if status == HealthStatus.DEGRADED:
            return cls.DEGRADED
        return cls.FAILURE


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class HealthCheckResult(BaseModel):
    """Outcome of one health poll. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    status: HealthStatus
    response_time_ms: float = 0.0
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    checked_at: datetime = Field(default_factory=utcnow)


class Incident(BaseModel):
    """A tracked span of abnormal agent health."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    agent_name: str
    type: IncidentType
    severity: Severity
    message: str
    consecutive_failures: int = 0
    opened_at: datetime = Field(default_factory=utcnow)
    escalated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None


class HealthSummary(BaseModel):
    """Result of polling every registered agent once."""

    healthy: int = 0
    degraded: int = 0
    unhealthy: int = 0
    unreachable: int = 0
    total: int = 0
    results: list[HealthCheckResult] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_results(cls, results: list[HealthCheckResult]) -> "HealthSummary":
        counts = {status: 0 for status in HealthStatus}
        for result in results:
            counts[result.status] += 1
        return cls(
            healthy=counts[HealthStatus.HEALTHY],
            degraded=counts[HealthStatus.DEGRADED],
            unhealthy=counts[HealthStatus.UNHEALTHY],
            unreachable=counts[HealthStatus.UNREACHABLE],
            total=len(results),
            results=results,
        )


class AgentStatusView(BaseModel):
    """Aggregated view of one agent over the history window."""

    agent_name: str
    category: AgentCategory
    is_critical: bool
    status: Optional[HealthStatus] = None
    consecutive_failures: int = 0
    open_incident: Optional[Incident] = None
    checks: int = 0
    uptime_pct: Optional[float] = None
    avg_response_time_ms: Optional[float] = None
    last_checked_at: Optional[datetime] = None


class StatusReport(BaseModel):
    window_hours: int
    agents: list[AgentStatusView] = Field(default_factory=list)
    healthy: int = 0
    degraded: int = 0
    unhealthy: int = 0
    unreachable: int = 0
    total: int = 0
    open_incidents: list[Incident] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)


class RecoveryResult(BaseModel):
    agent_name: str
    attempted_reset: bool
    status: HealthStatus
    recovered: bool
    incident_resolved: bool
    message: str = ""
