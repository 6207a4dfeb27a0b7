"""Predictive capacity models: data-source records and computed outputs."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


# =============================================================================
# Data-source records
# =============================================================================


class BedStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    DIRTY = "dirty"
    CLEANING = "cleaning"
    BLOCKED = "blocked"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class UnitSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_id: str
    facility_id: str
    name: str = ""
    total_beds: int = Field(..., ge=0)


class BedSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    bed_id: str
    unit_id: str
    status: BedStatus = BedStatus.AVAILABLE
    bed_type: str = "standard"
    capabilities: frozenset[str] = frozenset()
    # When a dirty/cleaning bed is expected back in service
    expected_ready_at: Optional[UtcDatetime] = None

    @field_validator("capabilities", mode="before")
    @classmethod
    def _lower_capabilities(cls, value):
        return frozenset(str(c).lower() for c in value or ())


class ActiveStay(BaseModel):
    """A patient currently assigned to a unit (not yet discharged)."""

    model_config = ConfigDict(frozen=True)

    unit_id: str
    bed_id: Optional[str] = None
    admitted_at: UtcDatetime
    expected_discharge_at: Optional[UtcDatetime] = None


# =============================================================================
# Shared
# =============================================================================


class ConfidenceInterval(BaseModel):
    lower: float
    upper: float


class SurgeLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    DIVERSION = "diversion"

    @property
    def rank(self) -> int:
        return list(SurgeLevel).index(self)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# Length of stay
# =============================================================================


class LOSSource(str, Enum):
    HISTORY = "history"
    BLENDED = "blended"
    BASELINE = "baseline"
    POPULATION = "population"


class LOSPrediction(BaseModel):
    category: str
    predicted_hours: float
    std_hours: float
    confidence_interval: ConfidenceInterval
    sample_size: int
    source: LOSSource
    insufficient_history: bool = False


# =============================================================================
# Forecast
# =============================================================================


class ForecastPoint(BaseModel):
    hour: int
    timestamp: datetime
    predicted_census: float
    predicted_available: float
    confidence_interval: ConfidenceInterval
    occupancy_pct: float
    risk_level: RiskLevel


class CapacityForecast(BaseModel):
    unit_id: str
    total_beds: int
    current_census: int
    horizon_hours: int
    points: list[ForecastPoint] = Field(default_factory=list)
    insufficient_history: bool = False
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# Surge
# =============================================================================


class SurgeEventType(str, Enum):
    CAPACITY_WARNING = "capacity_warning"
    CAPACITY_CRITICAL = "capacity_critical"
    DIVERSION = "diversion"
    SURGE_PROTOCOL = "surge_protocol"
    NORMALIZED = "normalized"


class SurgeStatus(BaseModel):
    facility_id: Optional[str] = None
    level: SurgeLevel
    occupancy_pct: float
    trigger: str
    threshold_pct: float
    total_beds: int = 0
    occupied_beds: int = 0
    affected_units: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_surge(self) -> bool:
        return self.level != SurgeLevel.NORMAL


class SurgeEvent(BaseModel):
    """Emitted once per surge-level transition of a facility."""

    facility_id: Optional[str] = None
    type: SurgeEventType
    previous_level: SurgeLevel
    level: SurgeLevel
    occupancy_pct: float
    trigger: str = ""
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# Placement
# =============================================================================


class PlacementRequirements(BaseModel):
    """Patient requirements for bed placement.

    ``capabilities`` and the ``requires_*`` flags are hard requirements;
    ``soft_capabilities``, ``bed_type`` and ``preferred_unit`` only affect
    the requirements-match score.
    """

    patient_id: Optional[str] = None
    facility_id: Optional[str] = None
    capabilities: list[str] = Field(default_factory=list)
    soft_capabilities: list[str] = Field(default_factory=list)
    requires_telemetry: bool = False
    requires_isolation: bool = False
    requires_negative_pressure: bool = False
    bed_type: Optional[str] = None
    preferred_unit: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)

    def hard_capabilities(self) -> set[str]:
        required = {c.lower() for c in self.capabilities}
        if self.requires_telemetry:
            required.add("telemetry")
        if self.requires_isolation:
            required.add("isolation")
        if self.requires_negative_pressure:
            required.add("negative_pressure")
        return required


class PlacementFactors(BaseModel):
    availability: float
    requirements_match: float
    unit_load_balance: float
    predicted_turnover: float


class PlacementRecommendation(BaseModel):
    bed_id: str
    unit_id: str
    score: float
    factors: PlacementFactors
