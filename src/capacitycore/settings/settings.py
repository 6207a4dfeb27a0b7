"""Aggregated settings for CapacityCore."""

from functools import lru_cache
from typing import Optional

from capacitycore.settings.base import EnvironmentSettings
from capacitycore.settings.health import HealthSettings
from capacitycore.settings.notifications import NotificationSettings
from capacitycore.settings.predictive import PredictiveSettings
from capacitycore.settings.registry import RegistrySettings
from capacitycore.settings.router import RouterSettings


class Settings:
    """Aggregated settings for all CapacityCore components."""

    def __init__(
        self,
        app: Optional[EnvironmentSettings] = None,
        registry: Optional[RegistrySettings] = None,
        router: Optional[RouterSettings] = None,
        health: Optional[HealthSettings] = None,
        predictive: Optional[PredictiveSettings] = None,
        notifications: Optional[NotificationSettings] = None,
    ):
        self.app = app or EnvironmentSettings()
        self.registry = registry or RegistrySettings()
        self.router = router or RouterSettings()
        self.health = health or HealthSettings()
        self.predictive = predictive or PredictiveSettings()
        self.notifications = notifications or NotificationSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
