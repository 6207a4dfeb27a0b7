"""Unit tests for the notification bridge and sinks."""

import json

import httpx
import pytest

from capacitycore.health import IncidentChange, IncidentType, IncidentUpdate, Severity
from capacitycore.health.models import Incident
from capacitycore.notifications import (
    LoggingSink,
    MockNotificationSink,
    Notification,
    NotificationBridge,
    NotificationKind,
    NotificationSink,
    SubjectType,
    WebhookSink,
)
from capacitycore.predictive import SurgeEvent, SurgeEventType, SurgeLevel
from capacitycore.settings import NotificationSettings


def incident_update(change, agent_name="beds", severity=Severity.HIGH):
    incident = Incident(
        agent_name=agent_name,
        type=IncidentType.FAILURE,
        severity=severity,
        message=f"{agent_name} unhealthy for 3 consecutive checks",
        consecutive_failures=3,
    )
    return IncidentUpdate(change, incident)


def surge_event(level, previous=SurgeLevel.NORMAL, event_type=SurgeEventType.CAPACITY_WARNING):
    return SurgeEvent(
        facility_id="north",
        type=event_type,
        previous_level=previous,
        level=level,
        occupancy_pct=87.5,
    )


class TestIncidentNotification:

    def test_critical_agent_pages(self, make_agent, bridge):
        agent = make_agent("beds", is_critical=True)

        notification = bridge.incident_notification(
            agent, incident_update(IncidentChange.OPENED, severity=Severity.CRITICAL)
        )

        assert notification.kind == NotificationKind.INCIDENT
        assert notification.subject_type == SubjectType.AGENT
        assert notification.severity == Severity.CRITICAL
        assert notification.page is True
        assert notification.metadata["is_critical"] is True

    def test_non_critical_capped(self, make_agent, bridge):
        notification = bridge.incident_notification(
            make_agent("fhir"), incident_update(IncidentChange.OPENED, "fhir", Severity.HIGH)
        )

        assert notification.severity == Severity.MEDIUM
        assert notification.page is False
        assert notification.metadata["incident_severity"] == "high"

    def test_escalation(self, make_agent, bridge):
        notification = bridge.incident_notification(
            make_agent("fhir"), incident_update(IncidentChange.ESCALATED, "fhir", Severity.HIGH)
        )

        assert notification.kind == NotificationKind.ESCALATION

    def test_recovery_is_low(self, make_agent, bridge):
        notification = bridge.incident_notification(
            make_agent("beds", is_critical=True), incident_update(IncidentChange.RESOLVED)
        )

        assert notification.kind == NotificationKind.RECOVERY
        assert notification.severity == Severity.LOW
        assert notification.page is False
        assert notification.message == "beds recovered"


class TestSurgeNotification:

    @pytest.mark.parametrize(
        "level, severity, page",
        [
            (SurgeLevel.NORMAL, Severity.LOW, False),
            (SurgeLevel.WARNING, Severity.MEDIUM, False),
            (SurgeLevel.CRITICAL, Severity.CRITICAL, True),
            (SurgeLevel.DIVERSION, Severity.CRITICAL, True),
        ],
    )
    def test_severity_mapping(self, bridge, level, severity, page):
        notification = bridge.surge_notification(surge_event(level))

        assert notification.severity == severity
        assert notification.page is page
        assert notification.subject_type == SubjectType.FACILITY
        assert notification.kind == NotificationKind.SURGE

    def test_all_units_subject(self, bridge):
        event = surge_event(SurgeLevel.WARNING).model_copy(update={"facility_id": None})

        assert bridge.surge_notification(event).subject == "all"


class TestPublishing:

    @pytest.mark.asyncio
    async def test_delivers_to_every_sink(self, make_agent):
        first, second = MockNotificationSink(), MockNotificationSink()
        bridge = NotificationBridge([first, second])

        bridge.notify_incident(make_agent("beds"), incident_update(IncidentChange.OPENED))
        await bridge.drain()

        assert len(first.sent) == 1
        assert len(second.sent) == 1

    @pytest.mark.asyncio
    async def test_failing_sink_is_isolated(self):
        broken, healthy = MockNotificationSink(fail=True), MockNotificationSink()
        bridge = NotificationBridge([broken, healthy])

        bridge.notify_surge(surge_event(SurgeLevel.WARNING))
        await bridge.drain()

        assert len(healthy.sent) == 1

    @pytest.mark.asyncio
    async def test_disabled_drops_notifications(self, sink):
        bridge = NotificationBridge([sink], enabled=False)

        notification = bridge.notify_surge(surge_event(SurgeLevel.WARNING))
        await bridge.drain()

        assert notification.kind == NotificationKind.SURGE
        assert sink.sent == []

    def test_from_settings(self):
        bridge = NotificationBridge.from_settings(NotificationSettings(webhook_url="http://hooks.test/notify"))

        kinds = [type(s) for s in bridge.sinks]
        assert kinds == [LoggingSink, WebhookSink]

    def test_default_sink(self):
        bridge = NotificationBridge()

        assert isinstance(bridge.sinks[0], LoggingSink)
        assert isinstance(bridge.sinks[0], NotificationSink)


class TestWebhookSink:

    @pytest.mark.asyncio
    async def test_posts_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = WebhookSink("http://hooks.test/notify", client=client)
        notification = Notification(
            subject="beds",
            subject_type=SubjectType.AGENT,
            kind=NotificationKind.INCIDENT,
            severity=Severity.CRITICAL,
            message="beds down",
            page=True,
        )

        await sink.send(notification)

        assert seen["url"] == "http://hooks.test/notify"
        assert seen["body"]["subject"] == "beds"
        assert seen["body"]["severity"] == "critical"
        assert seen["body"]["page"] is True

    @pytest.mark.asyncio
    async def test_raises_on_error_status(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        sink = WebhookSink("http://hooks.test/notify", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await sink.send(
                Notification(
                    subject="north",
                    subject_type=SubjectType.FACILITY,
                    kind=NotificationKind.SURGE,
                    severity=Severity.MEDIUM,
                    message="warning",
                )
            )
