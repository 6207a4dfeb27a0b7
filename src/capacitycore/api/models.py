"""Request/response models for the CapacityCore API."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from capacitycore.predictive.models import PlacementRequirements

HEALTH_ACTIONS = ("check_all", "check_one", "get_status", "recover")
CAPACITY_ACTIONS = ("predict_los", "forecast_capacity", "check_surge", "recommend_placement")


class HealthActionRequest(BaseModel):
    action: str
    agent_name: Optional[str] = None


class CapacityActionRequest(BaseModel):
    action: str
    diagnosis_category: Optional[str] = None
    z: Optional[float] = Field(default=None, ge=0)
    unit_id: Optional[str] = None
    forecast_hours: Optional[int] = None
    facility_id: Optional[str] = None
    patient_id: Optional[str] = None
    requirements: Optional[PlacementRequirements] = None


class ActionResponse(BaseModel):
    success: bool = True
    action: str
    data: Any = None


class ServiceHealth(BaseModel):
    status: str = "healthy"
    version: str
    agents: int
    scheduler_running: bool
