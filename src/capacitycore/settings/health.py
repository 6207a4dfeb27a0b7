"""Health monitor settings."""

from pydantic_settings import SettingsConfigDict

from capacitycore.settings.base import BaseAppSettings


class HealthSettings(BaseAppSettings):
    """Settings for health polling and incident tracking."""

    model_config = SettingsConfigDict(env_prefix="HEALTH_")

    slow_response_ms: float = 5000.0
    history_window_hours: int = 24
    incident_history_size: int = 500

    # 0 means one worker per registered agent
    max_parallel_checks: int = 0

    # Scheduler
    scheduler_enabled: bool = True
    check_interval_seconds: float = 60.0

    # Facilities swept for surge after every cycle
    surge_facilities: list[str] = []
    surge_sweep_all: bool = False
