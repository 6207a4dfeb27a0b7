"""HTTP API for CapacityCore."""

from capacitycore.api.models import (
    ActionResponse,
    CapacityActionRequest,
    HealthActionRequest,
    ServiceHealth,
)
from capacitycore.api.server import CapacityAPI

__all__ = [
    "ActionResponse",
    "CapacityAPI",
    "CapacityActionRequest",
    "HealthActionRequest",
    "ServiceHealth",
]
