"""CapacityCore - wires registry, router, health monitor and predictive engine."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

from capacitycore.health.checker import HealthChecker
from capacitycore.health.monitor import HealthMonitor
from capacitycore.health.scheduler import PeriodicScheduler
from capacitycore.notifications.bridge import NotificationBridge
from capacitycore.notifications.sinks import NotificationSink
from capacitycore.predictive.datasource import CapacityDataSource, InMemoryDataSource
from capacitycore.predictive.engine import PredictiveEngine
from capacitycore.predictive.surge import SurgeWatch
from capacitycore.registry.registry import AgentRegistry
from capacitycore.routing.dispatcher import AgentDispatcher
from capacitycore.routing.router import Router
from capacitycore.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class CapacityCore:
    """Owns one instance of every component.

    Example:
        ```python
        core = CapacityCore.from_settings()
        await core.start()
        envelope = await core.router.handle(RouteRequest(action="predict_los", payload={...}))
        await core.close()
        ```
    """

    def __init__(
        self,
        registry: AgentRegistry,
        router: Router,
        monitor: HealthMonitor,
        engine: PredictiveEngine,
        surge_watch: SurgeWatch,
        bridge: NotificationBridge,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.router = router
        self.monitor = monitor
        self.engine = engine
        self.surge_watch = surge_watch
        self.bridge = bridge
        self.scheduler = PeriodicScheduler(
            monitor.run_cycle,
            interval_seconds=self.settings.health.check_interval_seconds,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        source: Optional[CapacityDataSource] = None,
        sinks: Optional[Iterable[NotificationSink]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "CapacityCore":
        """Build every component from settings.

        Args:
            settings: Settings (cached environment settings when omitted)
            source: Capacity data source (YAML snapshot or empty when omitted)
            sinks: Notification sinks (from settings when omitted)
            http_client: Shared client for dispatch and probes (tests)
        """
        settings = settings or get_settings()

        if source is None:
            if settings.predictive.data_path:
                source = InMemoryDataSource.from_yaml(settings.predictive.data_path)
            else:
                source = InMemoryDataSource()

        if sinks is None:
            bridge = NotificationBridge.from_settings(settings.notifications)
        else:
            bridge = NotificationBridge(sinks, enabled=settings.notifications.enabled)

        registry = AgentRegistry.from_settings(settings.registry)
        router = Router(
            registry,
            dispatcher=AgentDispatcher(
                client=http_client,
                max_concurrent_per_agent=settings.router.max_concurrent_per_agent,
            ),
            settings=settings.router,
        )
        engine = PredictiveEngine(source, settings.predictive)
        surge_watch = SurgeWatch(source, bridge=bridge, settings=settings.predictive)
        monitor = HealthMonitor(
            registry,
            checker=HealthChecker(client=http_client, slow_response_ms=settings.health.slow_response_ms),
            bridge=bridge,
            settings=settings.health,
            surge_watch=surge_watch,
        )

        logger.info(f"CapacityCore ready with {len(registry)} agents and {len(router.rules)} routing rules")
        return cls(registry, router, monitor, engine, surge_watch, bridge, settings=settings)

    async def start(self) -> None:
        if self.settings.health.scheduler_enabled:
            await self.scheduler.start()

    async def close(self) -> None:
        await self.scheduler.stop()
        await self.router.close()
        await self.monitor.close()
        await self.bridge.close()
