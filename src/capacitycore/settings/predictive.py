"""Predictive engine settings."""

from typing import Optional

from pydantic_settings import SettingsConfigDict

from capacitycore.settings.base import BaseAppSettings


class PredictiveSettings(BaseAppSettings):
    """Settings for LOS, forecasting, surge and placement."""

    model_config = SettingsConfigDict(env_prefix="PREDICTIVE_")

    # YAML snapshot for the in-memory data source
    data_path: Optional[str] = None

    # Length of stay
    los_interval_z: float = 1.0
    los_min_samples: int = 10
    los_default_std_ratio: float = 0.25

    # Capacity forecast
    forecast_default_horizon: int = 24
    forecast_max_horizon: int = 168
    forecast_interval_z: float = 1.0
    admission_history_days: int = 28
    min_admission_samples: int = 50

    # Surge thresholds (occupancy percent)
    surge_warning_pct: float = 85.0
    surge_critical_pct: float = 92.0
    surge_diversion_pct: float = 98.0
    affected_unit_pct: float = 90.0

    # Placement
    placement_weight_availability: float = 0.3
    placement_weight_requirements: float = 0.3
    placement_weight_load_balance: float = 0.25
    placement_weight_turnover: float = 0.15
    placement_limit: int = 5
    turnover_scale_hours: float = 24.0
