"""Agent registry models."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentCategory(str, Enum):
    """Kind of backend service."""

    SYSTEM = "system"
    DOMAIN = "domain"
    INTEGRATION = "integration"


class HealthStatus(str, Enum):
    """Outcome of a single health poll, also used as an agent's current status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNREACHABLE = "unreachable"

    @property
    def is_routable(self) -> bool:
        return self in (HealthStatus.HEALTHY, HealthStatus.DEGRADED)


class AgentDescriptor(BaseModel):
    """Identity and polling policy of a routable, monitorable service."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    category: AgentCategory = AgentCategory.DOMAIN
    endpoint: str
    description: str = ""
    is_critical: bool = False

    poll_interval_seconds: int = Field(default=60, ge=1)
    max_consecutive_failures: int = Field(default=3, ge=1)
    timeout_seconds: float = Field(default=10.0, gt=0)

    health_path: str = "/health"
    health_method: Literal["GET", "POST"] = "GET"
    recovery_path: Optional[str] = None

    operations: list[str] = Field(default_factory=list)

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def health_url(self) -> str:
        return f"{self.endpoint}{self.health_path}"

    @property
    def recovery_url(self) -> Optional[str]:
        if not self.recovery_path:
            return None
        return f"{self.endpoint}{self.recovery_path}"

    def to_routing_context(self) -> str:
        """Short description used in logs and the status report."""
        return f"{self.name} ({self.category.value}) -> {self.endpoint}"
