"""Unit tests for surge detection."""

import pytest

from capacitycore.health import Severity
from capacitycore.notifications import NotificationKind
from capacitycore.predictive import (
    InMemoryDataSource,
    SurgeEventType,
    SurgeLevel,
    SurgeWatch,
    UnitSnapshot,
    check_surge,
    classify_occupancy,
)
from capacitycore.predictive.surge import surge_event_type


@pytest.fixture
def source():
    return InMemoryDataSource(
        units=[
            UnitSnapshot(unit_id="icu", facility_id="north", total_beds=60),
            UnitSnapshot(unit_id="med", facility_id="north", total_beds=40),
            UnitSnapshot(unit_id="obs", facility_id="south", total_beds=20),
        ],
    )


def fill(source, make_stays, icu, med):
    source.clear_stays()
    for stay in make_stays("icu", icu) + make_stays("med", med):
        source.add_stay(stay)


class TestClassifyOccupancy:

    def test_thresholds(self):
        assert classify_occupancy(84.99) == SurgeLevel.NORMAL
        assert classify_occupancy(85.0) == SurgeLevel.WARNING
        assert classify_occupancy(91.9) == SurgeLevel.WARNING
        assert classify_occupancy(92.0) == SurgeLevel.CRITICAL
        assert classify_occupancy(98.0) == SurgeLevel.CRITICAL
        assert classify_occupancy(98.01) == SurgeLevel.DIVERSION

    def test_event_types(self):
        assert surge_event_type(SurgeLevel.NORMAL, SurgeLevel.WARNING) == SurgeEventType.CAPACITY_WARNING
        assert surge_event_type(SurgeLevel.WARNING, SurgeLevel.CRITICAL) == SurgeEventType.CAPACITY_CRITICAL
        assert surge_event_type(SurgeLevel.CRITICAL, SurgeLevel.DIVERSION) == SurgeEventType.DIVERSION
        assert surge_event_type(SurgeLevel.DIVERSION, SurgeLevel.CRITICAL) == SurgeEventType.SURGE_PROTOCOL
        assert surge_event_type(SurgeLevel.CRITICAL, SurgeLevel.NORMAL) == SurgeEventType.NORMALIZED


class TestCheckSurge:

    @pytest.mark.asyncio
    async def test_warning(self, source, make_stays):
        fill(source, make_stays, icu=60, med=25)

        status = await check_surge(source, "north")

        assert status.level == SurgeLevel.WARNING
        assert status.occupancy_pct == 85.0
        assert status.total_beds == 100
        assert status.occupied_beds == 85
        assert status.affected_units == ["icu"]
        assert status.threshold_pct == 85.0
        assert status.is_surge
        assert "Accelerate discharge planning" in status.recommended_actions

    @pytest.mark.asyncio
    async def test_normal(self, source, make_stays):
        fill(source, make_stays, icu=40, med=20)

        status = await check_surge(source, "north")

        assert status.level == SurgeLevel.NORMAL
        assert not status.is_surge
        assert status.recommended_actions == []

    @pytest.mark.asyncio
    async def test_critical(self, source, make_stays):
        fill(source, make_stays, icu=57, med=36)

        status = await check_surge(source, "north")

        assert status.level == SurgeLevel.CRITICAL
        assert status.occupancy_pct == 93.0
        assert sorted(status.affected_units) == ["icu", "med"]

    @pytest.mark.asyncio
    async def test_exactly_diversion_threshold_is_critical(self, source, make_stays):
        fill(source, make_stays, icu=60, med=38)

        status = await check_surge(source, "north")

        assert status.level == SurgeLevel.CRITICAL

    @pytest.mark.asyncio
    async def test_diversion(self, source, make_stays):
        fill(source, make_stays, icu=60, med=39)

        status = await check_surge(source, "north")

        assert status.level == SurgeLevel.DIVERSION
        assert "Activate diversion protocol" in status.recommended_actions

    @pytest.mark.asyncio
    async def test_facility_filter(self, source, make_stays):
        fill(source, make_stays, icu=60, med=39)

        status = await check_surge(source, "south")

        assert status.level == SurgeLevel.NORMAL
        assert status.total_beds == 20

    @pytest.mark.asyncio
    async def test_all_units(self, source, make_stays):
        fill(source, make_stays, icu=60, med=39)

        status = await check_surge(source)

        assert status.total_beds == 120
        assert status.occupancy_pct == 82.5

    @pytest.mark.asyncio
    async def test_no_units(self):
        status = await check_surge(InMemoryDataSource(), "nowhere")

        assert status.level == SurgeLevel.NORMAL
        assert status.occupancy_pct == 0.0
        assert status.trigger == "no units"


class TestSurgeWatch:

    @pytest.mark.asyncio
    async def test_one_event_per_transition(self, source, make_stays):
        watch = SurgeWatch(source)

        fill(source, make_stays, icu=60, med=25)
        status, event = await watch.check("north")
        assert event.type == SurgeEventType.CAPACITY_WARNING
        assert event.previous_level == SurgeLevel.NORMAL
        assert event.level == SurgeLevel.WARNING

        _, repeat = await watch.check("north")
        assert repeat is None

        assert watch.level("north") == SurgeLevel.WARNING
        assert watch.level("south") == SurgeLevel.NORMAL
        assert len(watch.recent_events()) == 1

    @pytest.mark.asyncio
    async def test_diversion_then_de_escalation(self, source, make_stays):
        watch = SurgeWatch(source)

        fill(source, make_stays, icu=60, med=39)
        _, diversion = await watch.check("north")
        fill(source, make_stays, icu=58, med=35)
        _, protocol = await watch.check("north")
        fill(source, make_stays, icu=30, med=10)
        _, normalized = await watch.check("north")

        assert diversion.type == SurgeEventType.DIVERSION
        assert protocol.type == SurgeEventType.SURGE_PROTOCOL
        assert normalized.type == SurgeEventType.NORMALIZED
        assert [e.type for e in watch.recent_events(limit=2)] == [
            SurgeEventType.NORMALIZED,
            SurgeEventType.SURGE_PROTOCOL,
        ]

    @pytest.mark.asyncio
    async def test_normal_start_emits_nothing(self, source):
        watch = SurgeWatch(source)

        status, event = await watch.check("north")

        assert status.level == SurgeLevel.NORMAL
        assert event is None

    @pytest.mark.asyncio
    async def test_notifies_bridge(self, source, make_stays, bridge, sink):
        watch = SurgeWatch(source, bridge=bridge)

        fill(source, make_stays, icu=58, med=35)
        await watch.check("north")
        await bridge.drain()

        assert len(sink.sent) == 1
        notification = sink.sent[0]
        assert notification.kind == NotificationKind.SURGE
        assert notification.subject == "north"
        assert notification.severity == Severity.CRITICAL
        assert notification.page is True
