"""Incident and surge notifications."""

from capacitycore.notifications.bridge import NotificationBridge
from capacitycore.notifications.models import Notification, NotificationKind, SubjectType
from capacitycore.notifications.sinks import (
    LoggingSink,
    MockNotificationSink,
    NotificationSink,
    WebhookSink,
)

__all__ = [
    "LoggingSink",
    "MockNotificationSink",
    "Notification",
    "NotificationBridge",
    "NotificationKind",
    "NotificationSink",
    "SubjectType",
    "WebhookSink",
]
