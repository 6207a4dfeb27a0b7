"""Notification models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from capacitycore.health.models import Severity, utcnow


class SubjectType(str, Enum):
    AGENT = "agent"
    FACILITY = "facility"


class NotificationKind(str, Enum):
    INCIDENT = "incident"
    ESCALATION = "escalation"
    RECOVERY = "recovery"
    SURGE = "surge"


class Notification(BaseModel):
    """Message pushed to the external notification sink."""

    subject: str
    subject_type: SubjectType
    kind: NotificationKind
    severity: Severity
    message: str
    page: bool = False
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)
