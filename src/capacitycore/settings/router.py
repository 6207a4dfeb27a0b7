"""Router settings."""

from typing import Optional

from pydantic_settings import SettingsConfigDict

from capacitycore.settings.base import BaseAppSettings


class RouterSettings(BaseAppSettings):
    """Settings for the request router and dispatcher."""

    model_config = SettingsConfigDict(env_prefix="ROUTER_")

    # YAML rule table; the built-in table is used when unset
    rules_path: Optional[str] = None

    # Scoring
    pattern_weight: float = 1.0
    keyword_weight: float = 0.25
    confidence_saturation: float = 1.5
    min_confidence: float = 0.3
    degraded_penalty: float = 0.2

    # Dispatch
    default_timeout_ms: int = 30000
    max_concurrent_per_agent: int = 16
    dispatch_log_size: int = 1000
