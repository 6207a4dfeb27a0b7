"""Notification settings."""

from typing import Optional

from pydantic_settings import SettingsConfigDict

from capacitycore.settings.base import BaseAppSettings


class NotificationSettings(BaseAppSettings):
    """Settings for the incident/notification bridge."""

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    enabled: bool = True
    webhook_url: Optional[str] = None
    webhook_token: str = ""
    timeout_seconds: float = 5.0
