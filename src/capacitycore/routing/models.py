"""Routing models."""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_REGEX_META = frozenset(".^$+?{}[]|()\\")


def is_prefix_pattern(pattern: str) -> bool:
    """``bed_*`` style: plain text followed by a single trailing star."""
    head = pattern[:-1]
    return pattern.endswith("*") and not any(c in _REGEX_META or c == "*" for c in head)


class RoutingRule(BaseModel):
    """Ordered matching rule mapping operations to a target agent.

    Patterns are regular expressions matched against the whole operation
    name; plain text with a trailing ``*`` is a prefix match instead.
    Keywords are plain substrings matched case-insensitively against the
    key-sorted JSON of the payload, keys included, so ``heal`` also hits
    ``self-healing`` and ``pid|`` hits an embedded HL7 segment.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    patterns: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    target_agent: str
    min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)

    @field_validator("patterns")
    @classmethod
    def _patterns_compile(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in value:
            if is_prefix_pattern(pattern):
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e
        return value

    @field_validator("keywords")
    @classmethod
    def _keywords_lower(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(k.lower() for k in value if k)

    @property
    def label(self) -> str:
        return self.name or self.target_agent


class RouteHints(BaseModel):
    preferred_agent: Optional[str] = None
    timeout_ms: Optional[int] = Field(default=None, gt=0)


class RouteRequest(BaseModel):
    action: str = Field(..., min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)
    hints: Optional[RouteHints] = None
    request_id: Optional[str] = None


class RoutingDecision(BaseModel):
    """Which agent a request goes to and how sure the router is."""

    target_agent: str
    confidence: float
    rule_name: Optional[str] = None
    override: bool = False
    reason: str = ""


class RouteResult(BaseModel):
    request_id: str
    target_agent: str
    response: Any = None
    confidence: float
    latency_ms: float


class RouteMetadata(BaseModel):
    processing_time_ms: float
    routing_confidence: float = 0.0
    routed_to: Optional[str] = None


class RouteErrorInfo(BaseModel):
    code: str
    message: str


class RouteEnvelope(BaseModel):
    """Normalized response returned to inbound callers."""

    request_id: str
    agent: Optional[str] = None
    success: bool
    data: Any = None
    error: Optional[RouteErrorInfo] = None
    metadata: RouteMetadata


class DispatchRecord(BaseModel):
    """Observability record written for every dispatch attempt."""

    request_id: str
    agent: str
    confidence: float
    processing_time_ms: float
    success: bool
    error_code: Optional[str] = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
