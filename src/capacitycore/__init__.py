"""CapacityCore - agent orchestration, health monitoring and predictive bed capacity."""

__version__ = "0.1.0"

# Registry
from capacitycore.registry.models import AgentCategory, AgentDescriptor, HealthStatus
from capacitycore.registry.registry import AgentRegistry

# Routing
from capacitycore.routing.models import RouteEnvelope, RouteHints, RouteRequest, RouteResult, RoutingRule
from capacitycore.routing.router import Router

# Health
from capacitycore.health.models import HealthCheckResult, Incident, IncidentType, Severity
from capacitycore.health.monitor import HealthMonitor
from capacitycore.health.scheduler import PeriodicScheduler

# Predictive
from capacitycore.predictive.datasource import CapacityDataSource, InMemoryDataSource
from capacitycore.predictive.engine import PredictiveEngine
from capacitycore.predictive.surge import SurgeWatch

# Notifications
from capacitycore.notifications.bridge import NotificationBridge
from capacitycore.notifications.sinks import LoggingSink, MockNotificationSink, WebhookSink

# Application
from capacitycore.core.app import CapacityCore
from capacitycore.core.exceptions import CapacityCoreError
from capacitycore.settings import Settings, get_settings

__all__ = [
    "__version__",
    "AgentCategory",
    "AgentDescriptor",
    "AgentRegistry",
    "CapacityCore",
    "CapacityCoreError",
    "CapacityDataSource",
    "HealthCheckResult",
    "HealthMonitor",
    "HealthStatus",
    "InMemoryDataSource",
    "Incident",
    "IncidentType",
    "LoggingSink",
    "MockNotificationSink",
    "NotificationBridge",
    "PeriodicScheduler",
    "PredictiveEngine",
    "RouteEnvelope",
    "RouteHints",
    "RouteRequest",
    "RouteResult",
    "Router",
    "RoutingRule",
    "Settings",
    "Severity",
    "SurgeWatch",
    "WebhookSink",
    "get_settings",
]
