"""Registry settings."""

from typing import Optional

from pydantic_settings import SettingsConfigDict

from capacitycore.settings.base import BaseAppSettings


class RegistrySettings(BaseAppSettings):
    """Settings for the agent registry."""

    model_config = SettingsConfigDict(env_prefix="REGISTRY_")

    # YAML catalog; the built-in catalog is used when unset
    config_path: Optional[str] = None
    load_defaults: bool = True

    # Descriptor defaults
    default_poll_interval_seconds: int = 60
    default_max_consecutive_failures: int = 3
    default_timeout_seconds: float = 10.0
    default_health_path: str = "/health"
