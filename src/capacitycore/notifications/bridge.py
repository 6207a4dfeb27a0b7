"""Incident/notification bridge."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from capacitycore.health.incidents import IncidentChange, IncidentUpdate
from capacitycore.health.models import Severity
from capacitycore.notifications.models import Notification, NotificationKind, SubjectType
from capacitycore.notifications.sinks import LoggingSink, NotificationSink, WebhookSink
from capacitycore.predictive.models import SurgeEvent, SurgeLevel
from capacitycore.registry.models import AgentDescriptor
from capacitycore.settings.notifications import NotificationSettings

logger = logging.getLogger(__name__)

_INCIDENT_KIND = {
    IncidentChange.OPENED: NotificationKind.INCIDENT,
    IncidentChange.ESCALATED: NotificationKind.ESCALATION,
    IncidentChange.RESOLVED: NotificationKind.RECOVERY,
}

_SURGE_SEVERITY = {
    SurgeLevel.NORMAL: Severity.LOW,
    SurgeLevel.WARNING: Severity.MEDIUM,
    SurgeLevel.CRITICAL: Severity.CRITICAL,
    SurgeLevel.DIVERSION: Severity.CRITICAL,
}


class NotificationBridge:
    """
    Turns incident and surge transitions into notifications.

    Paging policy:
    - Non-critical agents cap at ``medium`` and never page
    - Critical agents page on ``high`` and ``critical``
    - Surge critical/diversion page like a critical agent incident

    Delivery is fire-and-forget: each notification is sent on its own task
    and sink failures are logged, never raised to the triggering caller.
    """

    def __init__(
        self,
        sinks: Optional[Iterable[NotificationSink]] = None,
        enabled: bool = True,
    ):
        self._sinks: list[NotificationSink] = list(sinks) if sinks is not None else [LoggingSink()]
        self._enabled = enabled
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Optional[NotificationSettings] = None) -> "NotificationBridge":
        settings = settings or NotificationSettings()
        sinks: list[NotificationSink] = [LoggingSink()]
        if settings.webhook_url:
            sinks.append(
                WebhookSink(
                    settings.webhook_url,
                    token=settings.webhook_token,
                    timeout_seconds=settings.timeout_seconds,
                )
            )
        return cls(sinks, enabled=settings.enabled)

    @property
    def sinks(self) -> list[NotificationSink]:
        return list(self._sinks)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def incident_notification(self, agent: AgentDescriptor, update: IncidentUpdate) -> Notification:
        incident = update.incident
        severity = Severity.LOW if update.change == IncidentChange.RESOLVED else incident.severity

        if agent.is_critical:
            page = severity in (Severity.HIGH, Severity.CRITICAL)
        else:
            if severity.rank > Severity.MEDIUM.rank:
                severity = Severity.MEDIUM
            page = False

        if update.change == IncidentChange.RESOLVED:
            message = f"{agent.name} recovered"
        else:
            message = incident.message

        return Notification(
            subject=agent.name,
            subject_type=SubjectType.AGENT,
            kind=_INCIDENT_KIND[update.change],
            severity=severity,
            message=message,
            page=page,
            metadata={
                "incident_id": incident.id,
                "incident_type": incident.type.value,
                "incident_severity": incident.severity.value,
                "is_critical": agent.is_critical,
            },
        )

    def surge_notification(self, event: SurgeEvent) -> Notification:
        severity = _SURGE_SEVERITY[event.level]
        return Notification(
            subject=event.facility_id or "all",
            subject_type=SubjectType.FACILITY,
            kind=NotificationKind.SURGE,
            severity=severity,
            message=(
                f"Surge {event.type.value}: {event.previous_level.value} -> {event.level.value} "
                f"at {event.occupancy_pct:.1f}% occupancy"
            ),
            page=severity == Severity.CRITICAL,
            metadata={
                "event_type": event.type.value,
                "level": event.level.value,
                "previous_level": event.previous_level.value,
                "occupancy_pct": event.occupancy_pct,
            },
        )

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def notify_incident(self, agent: AgentDescriptor, update: IncidentUpdate) -> Notification:
        notification = self.incident_notification(agent, update)
        self.publish(notification)
        return notification

    def notify_surge(self, event: SurgeEvent) -> Notification:
        notification = self.surge_notification(event)
        self.publish(notification)
        return notification

    def publish(self, notification: Notification) -> None:
        """Schedule delivery to every sink without waiting for it."""
        if not self._enabled:
            logger.debug(f"Notifications disabled, dropping {notification.kind.value} for {notification.subject}")
            return
        task = asyncio.create_task(self._deliver(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, notification: Notification) -> None:
        for sink in self._sinks:
            try:
                await sink.send(notification)
            except Exception as e:
                logger.error(
                    f"Notification delivery via {type(sink).__name__} failed for "
                    f"{notification.subject}: {e}"
                )

    async def drain(self) -> None:
        """Wait for in-flight deliveries to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        for sink in self._sinks:
            if isinstance(sink, WebhookSink):
                await sink.close()
