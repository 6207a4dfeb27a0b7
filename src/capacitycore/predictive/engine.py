"""Predictive capacity engine facade."""

from datetime import datetime
from typing import Optional

from capacitycore.predictive.datasource import CapacityDataSource
from capacitycore.predictive.forecast import forecast_capacity
from capacitycore.predictive.los import predict_los
from capacitycore.predictive.models import (
    CapacityForecast,
    LOSPrediction,
    PlacementRecommendation,
    PlacementRequirements,
    SurgeStatus,
)
from capacitycore.predictive.placement import recommend_placement
from capacitycore.predictive.surge import check_surge
from capacitycore.settings.predictive import PredictiveSettings


class PredictiveEngine:
    """Binds the four predictive functions to a data source and settings.

    Holds no mutable state; safe for unlimited concurrent use.
    """

    def __init__(
        self,
        source: CapacityDataSource,
        settings: Optional[PredictiveSettings] = None,
    ):
        self.source = source
        self.settings = settings or PredictiveSettings()

    async def predict_los(self, category: str, z: Optional[float] = None) -> LOSPrediction:
        return await predict_los(self.source, category, z=z, settings=self.settings)

    async def forecast_capacity(
        self,
        unit_id: str,
        horizon_hours: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CapacityForecast:
        return await forecast_capacity(self.source, unit_id, horizon_hours, settings=self.settings, now=now)

    async def check_surge(self, facility_id: Optional[str] = None) -> SurgeStatus:
        return await check_surge(self.source, facility_id, settings=self.settings)

    async def recommend_placement(
        self,
        requirements: PlacementRequirements,
        now: Optional[datetime] = None,
    ) -> list[PlacementRecommendation]:
        return await recommend_placement(self.source, requirements, settings=self.settings, now=now)
