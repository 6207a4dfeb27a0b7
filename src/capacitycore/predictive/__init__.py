"""Predictive capacity engine."""

from capacitycore.predictive.datasource import CapacityDataSource, InMemoryDataSource
from capacitycore.predictive.engine import PredictiveEngine
from capacitycore.predictive.forecast import forecast_capacity
from capacitycore.predictive.los import DEFAULT_LOS_HOURS, predict_los
from capacitycore.predictive.models import (
    ActiveStay,
    BedSnapshot,
    BedStatus,
    CapacityForecast,
    ConfidenceInterval,
    ForecastPoint,
    LOSPrediction,
    LOSSource,
    PlacementFactors,
    PlacementRecommendation,
    PlacementRequirements,
    RiskLevel,
    SurgeEvent,
    SurgeEventType,
    SurgeLevel,
    SurgeStatus,
    UnitSnapshot,
)
from capacitycore.predictive.placement import recommend_placement
from capacitycore.predictive.surge import SurgeWatch, check_surge, classify_occupancy

__all__ = [
    "ActiveStay",
    "BedSnapshot",
    "BedStatus",
    "CapacityDataSource",
    "CapacityForecast",
    "ConfidenceInterval",
    "DEFAULT_LOS_HOURS",
    "ForecastPoint",
    "InMemoryDataSource",
    "LOSPrediction",
    "LOSSource",
    "PlacementFactors",
    "PlacementRecommendation",
    "PlacementRequirements",
    "PredictiveEngine",
    "RiskLevel",
    "SurgeEvent",
    "SurgeEventType",
    "SurgeLevel",
    "SurgeStatus",
    "SurgeWatch",
    "UnitSnapshot",
    "check_surge",
    "classify_occupancy",
    "forecast_capacity",
    "predict_los",
    "recommend_placement",
]
