from __future__ import annotations

import asyncio

import pytest

from busbeacon.exceptions import BeaconApiError, NoBusSelectedError
from busbeacon.location import LocationSubscription, PermissionStatus, ReplayLocationSource
from busbeacon.models import Position, PositionUpdate, TrackingMode, TrackingState
from busbeacon.tracking import TrackingController


class _RecordingStore:
    def __init__(self, fail: Exception | None = None) -> None:
        self.writes: list[tuple[str, float, float]] = []
        self.fail = fail

    async def list_buses(self) -> list:
        return []

    async def update_bus_position(self, bus_id: str, latitude: float, longitude: float) -> PositionUpdate:
        self.writes.append((bus_id, latitude, longitude))
        if self.fail is not None:
            raise self.fail
        return PositionUpdate(bus_id=bus_id, latitude=latitude, longitude=longitude)


class _PushSource:
    """Location source whose fixes are pushed by the test."""

    def __init__(self) -> None:
        self.subscriptions: list[LocationSubscription] = []
        self._on_update = None

    async def is_enabled(self) -> bool:
        return True

    async def request_enable(self) -> bool:
        return True

    async def has_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    async def request_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    async def get_current(self) -> Position:
        return Position(latitude=0.0, longitude=0.0)

    def subscribe(self, on_update, on_error=None) -> LocationSubscription:
        self._on_update = on_update
        idle = asyncio.get_running_loop().create_task(asyncio.Event().wait())
        subscription = LocationSubscription(idle)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, latitude: float, longitude: float) -> None:
        assert self._on_update is not None
        self._on_update(Position(latitude=latitude, longitude=longitude))


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_start_without_bus_is_rejected_and_writes_nothing() -> None:
    store = _RecordingStore()
    controller = TrackingController(store, _PushSource())

    with pytest.raises(NoBusSelectedError):
        await controller.start(None, TrackingMode.MANUAL, (10.0, 20.0))
    with pytest.raises(NoBusSelectedError):
        await controller.start("  ", TrackingMode.LIVE)

    assert store.writes == []
    assert controller.state is TrackingState.INACTIVE


@pytest.mark.asyncio
async def test_manual_start_writes_once_then_stop_blocks_further_writes() -> None:
    store = _RecordingStore()
    source = _PushSource()
    controller = TrackingController(store, source)

    await controller.start("A", TrackingMode.MANUAL, (10.0, 20.0))

    assert store.writes == [("A", 10.0, 20.0)]
    assert controller.state is TrackingState.ACTIVE_MANUAL
    assert source.subscriptions == []

    controller.stop()
    await controller.drain()

    assert store.writes == [("A", 10.0, 20.0)]
    assert controller.state is TrackingState.INACTIVE


@pytest.mark.asyncio
async def test_manual_mode_requires_coordinates() -> None:
    controller = TrackingController(_RecordingStore(), _PushSource())
    with pytest.raises(ValueError):
        await controller.start("A", TrackingMode.MANUAL)
    assert not controller.is_active


@pytest.mark.asyncio
async def test_live_mode_writes_once_per_emitted_position() -> None:
    store = _RecordingStore()
    source = _PushSource()
    seen: list[Position] = []
    controller = TrackingController(store, source, on_position=seen.append)

    await controller.start("A", TrackingMode.LIVE)
    assert controller.state is TrackingState.ACTIVE_LIVE

    source.emit(1.0, 2.0)
    source.emit(3.0, 4.0)
    await controller.drain()

    assert store.writes == [("A", 1.0, 2.0), ("A", 3.0, 4.0)]
    assert [p.coordinates for p in seen] == [(1.0, 2.0), (3.0, 4.0)]
    assert controller.session.current_position is not None
    assert controller.session.current_position.coordinates == (3.0, 4.0)
    await controller.aclose()


@pytest.mark.asyncio
async def test_stop_cancels_subscription_and_ignores_late_events() -> None:
    store = _RecordingStore()
    source = _PushSource()
    controller = TrackingController(store, source)

    await controller.start("A", TrackingMode.LIVE)
    source.emit(1.0, 2.0)
    await controller.drain()

    controller.stop()
    subscription = source.subscriptions[0]
    await subscription.wait_closed()
    assert not subscription.active

    source.emit(5.0, 6.0)
    await controller.drain()

    assert store.writes == [("A", 1.0, 2.0)]
    assert not controller.is_active


@pytest.mark.asyncio
async def test_stop_without_start_is_a_noop() -> None:
    store = _RecordingStore()
    controller = TrackingController(store, _PushSource())

    controller.stop()
    controller.stop()
    await controller.aclose()

    assert store.writes == []
    assert controller.state is TrackingState.INACTIVE


@pytest.mark.asyncio
async def test_write_failure_is_reported_and_tracking_continues() -> None:
    store = _RecordingStore(fail=BeaconApiError("quota exceeded", code="RESOURCE_EXHAUSTED"))
    source = _PushSource()
    notices: list[str] = []
    controller = TrackingController(store, source, on_notice=notices.append)

    await controller.start("A", TrackingMode.LIVE)
    source.emit(1.0, 2.0)
    await controller.drain()
    source.emit(3.0, 4.0)
    await controller.drain()

    assert len(store.writes) == 2
    assert notices == ["Failed to update location: quota exceeded"] * 2
    assert controller.is_active
    await controller.aclose()


@pytest.mark.asyncio
async def test_manual_write_failure_still_marks_session_active() -> None:
    store = _RecordingStore(fail=BeaconApiError("denied"))
    notices: list[str] = []
    controller = TrackingController(store, _PushSource(), on_notice=notices.append)

    await controller.start("A", TrackingMode.MANUAL, (10.0, 20.0))

    assert notices == ["Failed to update location: denied"]
    assert controller.state is TrackingState.ACTIVE_MANUAL


@pytest.mark.asyncio
async def test_restart_keeps_a_single_subscription() -> None:
    store = _RecordingStore()
    source = _PushSource()
    controller = TrackingController(store, source)

    await controller.start("A", TrackingMode.LIVE)
    await controller.start("B", TrackingMode.LIVE)
    await source.subscriptions[0].wait_closed()

    assert not source.subscriptions[0].active
    assert source.subscriptions[1].active

    source.emit(7.0, 8.0)
    await controller.aclose()
    assert store.writes == [("B", 7.0, 8.0)]


@pytest.mark.asyncio
async def test_replayed_route_is_forwarded_in_order() -> None:
    store = _RecordingStore()
    route = [Position(latitude=float(i), longitude=float(-i)) for i in range(3)]
    controller = TrackingController(store, ReplayLocationSource(route, interval=0))

    await controller.start("A", TrackingMode.LIVE)
    await _settle()
    await controller.drain()

    assert store.writes == [("A", 0.0, -0.0), ("A", 1.0, -1.0), ("A", 2.0, -2.0)]
    await controller.aclose()


@pytest.mark.asyncio
async def test_stream_failure_is_reported_without_stopping_session() -> None:
    notices: list[str] = []
    source = ReplayLocationSource([Position(latitude=1.0, longitude=1.0)], enabled=False)
    controller = TrackingController(_RecordingStore(), source, on_notice=notices.append)

    await controller.start("A", TrackingMode.LIVE)
    await _settle()

    assert notices == ["Location updates stopped: location service is disabled"]
    assert controller.is_active
    await controller.aclose()


class _GatedStore(_RecordingStore):
    """Store whose writes block until released."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def update_bus_position(self, bus_id: str, latitude: float, longitude: float) -> PositionUpdate:
        self.writes.append((bus_id, latitude, longitude))
        self.entered.set()
        await self.release.wait()
        return PositionUpdate(bus_id=bus_id, latitude=latitude, longitude=longitude)


@pytest.mark.asyncio
async def test_stop_during_manual_write_leaves_session_inactive() -> None:
    store = _GatedStore()
    controller = TrackingController(store, _PushSource())

    starting = asyncio.create_task(controller.start("A", TrackingMode.MANUAL, (1.0, 2.0)))
    await store.entered.wait()
    assert controller.state is TrackingState.ACTIVE_MANUAL

    controller.stop()
    store.release.set()
    await starting

    assert controller.state is TrackingState.INACTIVE
    assert store.writes == [("A", 1.0, 2.0)]


@pytest.mark.asyncio
async def test_manual_start_without_coordinates_keeps_running_session() -> None:
    store = _RecordingStore()
    source = _PushSource()
    controller = TrackingController(store, source)
    await controller.start("A", TrackingMode.LIVE)

    with pytest.raises(ValueError):
        await controller.start("B", TrackingMode.MANUAL)

    assert controller.state is TrackingState.ACTIVE_LIVE
    assert controller.session.selected_bus_id == "A"
    assert source.subscriptions[0].active
    await controller.aclose()


@pytest.mark.asyncio
async def test_live_writes_follow_the_selected_bus() -> None:
    store = _RecordingStore()
    source = _PushSource()
    controller = TrackingController(store, source)

    await controller.start("A", TrackingMode.LIVE)
    source.emit(1.0, 1.0)
    controller.session.selected_bus_id = "B"
    source.emit(2.0, 2.0)
    await controller.aclose()

    assert store.writes == [("A", 1.0, 1.0), ("B", 2.0, 2.0)]
