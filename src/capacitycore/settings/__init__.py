"""Settings module for CapacityCore."""

from capacitycore.settings.base import BaseAppSettings, EnvironmentSettings
from capacitycore.settings.health import HealthSettings
from capacitycore.settings.notifications import NotificationSettings
from capacitycore.settings.predictive import PredictiveSettings
from capacitycore.settings.registry import RegistrySettings
from capacitycore.settings.router import RouterSettings
from capacitycore.settings.settings import Settings, get_settings

__all__ = [
    "BaseAppSettings",
    "EnvironmentSettings",
    "HealthSettings",
    "NotificationSettings",
    "PredictiveSettings",
    "RegistrySettings",
    "RouterSettings",
    "Settings",
    "get_settings",
]
