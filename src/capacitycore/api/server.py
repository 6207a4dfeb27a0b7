"""CapacityAPI - FastAPI wrapper for CapacityCore."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from capacitycore import __version__
from capacitycore.api.models import (
    CAPACITY_ACTIONS,
    HEALTH_ACTIONS,
    ActionResponse,
    CapacityActionRequest,
    HealthActionRequest,
    ServiceHealth,
)
from capacitycore.core.app import CapacityCore
from capacitycore.core.exceptions import UnknownAgentError, UnknownUnitError
from capacitycore.predictive.models import PlacementRequirements
from capacitycore.routing.models import DispatchRecord, RouteEnvelope, RouteRequest

logger = logging.getLogger(__name__)

# HTTP status for failed route envelopes, by error code.
ROUTE_ERROR_STATUS = {
    "NoConfidentMatch": 422,
    "UpstreamTimeout": 504,
    "UpstreamUnreachable": 502,
    "UpstreamError": 502,
    "UnknownAgent": 404,
}


class CapacityAPI:
    """FastAPI wrapper that exposes CapacityCore over HTTP.

    Provides:
    - GET /health - Liveness of this service
    - POST /api/v1/route - Classify and dispatch an operation
    - POST /api/v1/health - Agent health actions
    - POST /api/v1/capacity - Predictive capacity actions
    - GET /api/v1/dispatches - Recent dispatch records

    The health scheduler starts and stops with the application lifespan.
    """

    def __init__(self, core: Optional[CapacityCore] = None):
        self._core = core or CapacityCore.from_settings()
        self._app = FastAPI(
            title="CapacityCore",
            version=__version__,
            lifespan=self._lifespan,
        )
        self._setup_routes()

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def core(self) -> CapacityCore:
        return self._core

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting CapacityCore API")
        await self._core.start()
        try:
            yield
        finally:
            logger.info("Shutting down CapacityCore API")
            await self._core.close()

    def _setup_routes(self) -> None:
        core = self._core

        @self._app.get("/health", response_model=ServiceHealth)
        async def health() -> ServiceHealth:
            return ServiceHealth(
                version=__version__,
                agents=len(core.registry),
                scheduler_running=core.scheduler.running,
            )

        @self._app.post("/api/v1/route", response_model=RouteEnvelope)
        async def route(request: RouteRequest):
            envelope = await core.router.handle(request)
            if envelope.success:
                return envelope
            status = ROUTE_ERROR_STATUS.get(envelope.error.code, 500)
            return JSONResponse(status_code=status, content=envelope.model_dump(mode="json"))

        @self._app.get("/api/v1/dispatches", response_model=list[DispatchRecord])
        async def dispatches(limit: int = 100, agent: Optional[str] = None) -> list[DispatchRecord]:
            return core.router.dispatch_log.recent(limit=limit, agent=agent)

        @self._app.post("/api/v1/health", response_model=ActionResponse)
        async def health_action(request: HealthActionRequest) -> ActionResponse:
            if request.action not in HEALTH_ACTIONS:
                raise HTTPException(
                    status_code=400,
                    detail={"error": "Invalid action", "valid_actions": list(HEALTH_ACTIONS)},
                )
            if request.action in ("check_one", "recover") and not request.agent_name:
                raise HTTPException(status_code=400, detail="agent_name required")

            try:
                if request.action == "check_all":
                    data = await core.monitor.check_all()
                elif request.action == "check_one":
                    data = await core.monitor.check_one(request.agent_name)
                elif request.action == "get_status":
                    data = core.monitor.get_status()
                else:
                    data = await core.monitor.recover(request.agent_name)
            except UnknownAgentError as e:
                raise HTTPException(status_code=404, detail=e.message) from e

            return ActionResponse(action=request.action, data=data.model_dump(mode="json"))

        @self._app.post("/api/v1/capacity", response_model=ActionResponse)
        async def capacity_action(request: CapacityActionRequest) -> ActionResponse:
            if request.action not in CAPACITY_ACTIONS:
                raise HTTPException(
                    status_code=400,
                    detail={"error": "Invalid action", "valid_actions": list(CAPACITY_ACTIONS)},
                )

            try:
                data = await self._capacity(request)
            except UnknownUnitError as e:
                raise HTTPException(status_code=404, detail=e.message) from e
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e

            return ActionResponse(action=request.action, data=data)

    async def _capacity(self, request: CapacityActionRequest):
        core = self._core

        if request.action == "predict_los":
            if not request.diagnosis_category:
                raise HTTPException(status_code=400, detail="diagnosis_category required")
            prediction = await core.engine.predict_los(request.diagnosis_category, z=request.z)
            return prediction.model_dump(mode="json")

        if request.action == "forecast_capacity":
            if not request.unit_id:
                raise HTTPException(status_code=400, detail="unit_id required")
            forecast = await core.engine.forecast_capacity(request.unit_id, request.forecast_hours)
            return forecast.model_dump(mode="json")

        if request.action == "check_surge":
            status, event = await core.surge_watch.check(request.facility_id)
            if status.is_surge:
                logger.warning(
                    f"Surge condition for {request.facility_id or 'all units'}: "
                    f"{status.level.value} at {status.occupancy_pct}%"
                )
            return {
                "surge": status.model_dump(mode="json"),
                "event": event.model_dump(mode="json") if event else None,
            }

        if not request.patient_id:
            raise HTTPException(status_code=400, detail="patient_id required")
        requirements = request.requirements or PlacementRequirements()
        requirements = requirements.model_copy(
            update={
                "patient_id": request.patient_id,
                "facility_id": requirements.facility_id or request.facility_id,
            }
        )
        recommendations = await core.engine.recommend_placement(requirements)
        logger.info(f"Placement: {len(recommendations)} recommendations for patient {request.patient_id}")
        return [r.model_dump(mode="json") for r in recommendations]
