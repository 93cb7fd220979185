"""Headless tracker screen.

Holds the state and actions behind the single tracking screen: location
start-up checks, the bus list, bus selection, the live/manual choice,
manual coordinate entry and the start/stop toggle. Rendering is left to
whatever front end drives it; user-facing messages go to ``on_notice``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from busbeacon._constants import DEFAULT_LATITUDE, DEFAULT_LONGITUDE
from busbeacon.client import RecordStore
from busbeacon.exceptions import BeaconError, BeaconLocationError, BeaconTrackingError
from busbeacon.location.base import LocationSource, PermissionStatus
from busbeacon.models.bus import BusRecord
from busbeacon.models.position import Position, parse_coordinates
from busbeacon.models.tracking import TrackingMode, TrackingSession, TrackingState
from busbeacon.tracking import NoticeCallback, TrackingController

_logger = logging.getLogger(__name__)


def _format_coordinate(value: float) -> str:
    return repr(float(value))


class TrackerApp:
    """Screen-level glue between the user, the location source and the store.

    Usage::

        async with BeaconClient(config) as client:
            async with TrackerApp(client, GpsdLocationSource.from_config(config)) as app:
                app.select_bus("bus-1")
                await app.start_tracking()
    """

    def __init__(
        self,
        store: RecordStore,
        location: LocationSource,
        *,
        on_notice: NoticeCallback | None = None,
        on_position: Callable[[Position], None] | None = None,
        default_latitude: float = DEFAULT_LATITUDE,
        default_longitude: float = DEFAULT_LONGITUDE,
    ) -> None:
        self._store = store
        self._location = location
        self._notices: list[str] = []
        self._on_notice_cb = on_notice
        self._on_position_cb = on_position
        self._default_latitude = default_latitude
        self._default_longitude = default_longitude
        self._session = TrackingSession(
            manual_latitude=default_latitude,
            manual_longitude=default_longitude,
        )
        self._controller = TrackingController(
            store,
            location,
            session=self._session,
            on_notice=self._notify,
            on_position=on_position,
        )
        self._buses: list[BusRecord] = []
        self._latitude_text = _format_coordinate(default_latitude)
        self._longitude_text = _format_coordinate(default_longitude)

    async def __aenter__(self) -> TrackerApp:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> TrackingSession:
        return self._session

    @property
    def controller(self) -> TrackingController:
        return self._controller

    @property
    def buses(self) -> list[BusRecord]:
        return list(self._buses)

    @property
    def notices(self) -> list[str]:
        """Messages surfaced so far, oldest first."""
        return list(self._notices)

    @property
    def tracking(self) -> bool:
        return self._session.active

    @property
    def use_manual(self) -> bool:
        return self._session.mode is TrackingMode.MANUAL

    @property
    def current_location(self) -> Position | None:
        return self._session.current_position

    @property
    def manual_text(self) -> tuple[str, str]:
        """Manual latitude/longitude exactly as entered."""
        return self._latitude_text, self._longitude_text

    @property
    def selected_bus(self) -> BusRecord | None:
        bus_id = self._session.selected_bus_id
        if bus_id is None:
            return None
        return next((bus for bus in self._buses if bus.id == bus_id), None)

    @property
    def status_text(self) -> str | None:
        """One-line status while tracking, ``None`` otherwise."""
        state = self._session.state
        if state is TrackingState.INACTIVE:
            return None
        bus = self.selected_bus
        name = bus.name if bus is not None else str(self._session.selected_bus_id)
        if state is TrackingState.ACTIVE_MANUAL:
            return f"Broadcasting manual location for {name}"
        return f"Live tracking {name}"

    def _notify(self, message: str) -> None:
        self._notices.append(message)
        if self._on_notice_cb is not None:
            self._on_notice_cb(message)
        else:
            _logger.warning("%s", message)

    # ------------------------------------------------------------------
    # Start-up
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Run location start-up checks and load the bus list concurrently."""
        await asyncio.gather(self.initialize_location(), self.fetch_buses())

    async def initialize_location(self) -> bool:
        """Make sure the location service is usable and read an initial fix.

        Returns ``False`` when the service stays disabled or permission is
        not granted; that is not reported to the user.
        """
        try:
            enabled = await self._location.is_enabled()
            if not enabled:
                enabled = await self._location.request_enable()
                if not enabled:
                    _logger.debug("Location service disabled; skipping initial fix")
                    return False

            permission = await self._location.has_permission()
            if permission is PermissionStatus.DENIED:
                permission = await self._location.request_permission()
            if permission is not PermissionStatus.GRANTED:
                _logger.debug("Location permission %s; skipping initial fix", permission)
                return False
        except BeaconLocationError:
            _logger.debug("Location initialisation failed", exc_info=True)
            return False

        try:
            position = await self._location.get_current()
        except BeaconLocationError as exc:
            _logger.info("Failed to get location: %s", exc)
            return True
        self._session.current_position = position
        if self._on_position_cb is not None:
            self._on_position_cb(position)
        return True

    async def fetch_buses(self) -> list[BusRecord]:
        """Load all buses from the record store."""
        try:
            self._buses = await self._store.list_buses()
        except BeaconError as exc:
            _logger.debug("Bus list failed", exc_info=True)
            self._notify(f"Failed to load buses: {exc}")
        return self.buses

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def select_bus(self, bus_id: str) -> bool:
        """Select a loaded bus as the tracking target.

        While live tracking, later fixes are written to the newly selected bus.
        """
        if not any(bus.id == bus_id for bus in self._buses):
            self._notify(f"Unknown bus: {bus_id}")
            return False
        self._session.selected_bus_id = bus_id
        return True

    def use_manual_location(self, enabled: bool) -> None:
        """Switch between live GPS and manual coordinates (ignored while tracking)."""
        if self._session.active:
            return
        self._session.mode = TrackingMode.MANUAL if enabled else TrackingMode.LIVE

    def set_manual_coordinates(self, latitude: str | float, longitude: str | float) -> None:
        """Store manual coordinates as entered.

        Valid input is mirrored into the session right away; invalid input
        is kept as text and reported when tracking starts.
        """
        self._latitude_text = str(latitude)
        self._longitude_text = str(longitude)
        try:
            coords = parse_coordinates(self._latitude_text, self._longitude_text)
        except ValueError:
            return
        self._session.manual_latitude, self._session.manual_longitude = coords

    def reset_manual_coordinates(self) -> None:
        self.set_manual_coordinates(
            _format_coordinate(self._default_latitude),
            _format_coordinate(self._default_longitude),
        )

    async def start_tracking(self) -> bool:
        """Start broadcasting for the selected bus. Returns whether tracking started."""
        coords: tuple[float, float] | None = None
        if self._session.mode is TrackingMode.MANUAL and self._session.selected_bus_id is not None:
            try:
                coords = parse_coordinates(self._latitude_text, self._longitude_text)
            except ValueError as exc:
                self._notify(f"Invalid coordinates: {exc}")
                return False
        try:
            await self._controller.start(self._session.selected_bus_id, self._session.mode, coords)
        except BeaconTrackingError as exc:
            self._notify(str(exc))
            return False
        return True

    def stop_tracking(self) -> None:
        self._controller.stop()

    async def toggle_tracking(self) -> bool:
        """Stop if tracking, start otherwise. Returns the new tracking flag."""
        if self._session.active:
            self.stop_tracking()
        else:
            await self.start_tracking()
        return self._session.active

    async def close(self) -> None:
        """Tear down: stop tracking and wait for in-flight writes."""
        await self._controller.aclose()
