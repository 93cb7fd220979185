"""Tracking controller.

Forwards coordinates for one selected bus to the record store, either
once (manual mode) or for every fix a location source emits (live mode).

States are ``inactive``, ``active-manual`` and ``active-live``; the only
transitions are :meth:`TrackingController.start` and
:meth:`TrackingController.stop`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from busbeacon.client import RecordStore
from busbeacon.exceptions import BeaconError, BeaconLocationError, NoBusSelectedError
from busbeacon.location.base import LocationSource, LocationSubscription
from busbeacon.models.position import Position
from busbeacon.models.tracking import TrackingMode, TrackingSession, TrackingState

_logger = logging.getLogger(__name__)

NoticeCallback = Callable[[str], None]


def _log_notice(message: str) -> None:
    _logger.warning("%s", message)


class TrackingController:
    """Broadcast a bus position from a manual value or a live location stream.

    Store writes never raise to the caller. A failed write is reported
    through *on_notice* and the session stays active; the next fix simply
    tries again.

    Parameters
    ----------
    store
        Record store receiving position writes.
    location
        Source of live fixes.
    session
        Session to mutate. A fresh one is created when omitted.
    on_notice
        Called with a short user-facing message on failures.
        Defaults to logging a warning.
    on_position
        Called with every live fix before it is written.
    """

    def __init__(
        self,
        store: RecordStore,
        location: LocationSource,
        *,
        session: TrackingSession | None = None,
        on_notice: NoticeCallback | None = None,
        on_position: Callable[[Position], None] | None = None,
    ) -> None:
        self._store = store
        self._location = location
        self._session = session if session is not None else TrackingSession()
        self._on_notice = on_notice or _log_notice
        self._on_position = on_position
        self._subscription: LocationSubscription | None = None
        self._generation = 0
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def session(self) -> TrackingSession:
        return self._session

    @property
    def state(self) -> TrackingState:
        return self._session.state

    @property
    def is_active(self) -> bool:
        return self._session.active

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(
        self,
        bus_id: str | None,
        mode: TrackingMode,
        coords: tuple[float, float] | None = None,
    ) -> None:
        """Start broadcasting for *bus_id*.

        Raises
        ------
        NoBusSelectedError
            If *bus_id* is missing. Nothing is written.
        ValueError
            If *mode* is manual and *coords* is missing.

        In live mode each fix is written to the bus selected in the session
        at the time it arrives, so reselecting redirects the writes.
        """
        if bus_id is None or not bus_id.strip():
            raise NoBusSelectedError("Please select a bus first")
        manual_coords: tuple[float, float] | None = None
        if mode is TrackingMode.MANUAL:
            if coords is None:
                raise ValueError("manual tracking requires coordinates")
            manual_coords = coords

        if self._session.active:
            self.stop()

        self._session.selected_bus_id = bus_id
        self._session.mode = mode

        self._generation += 1
        generation = self._generation

        if manual_coords is not None:
            latitude, longitude = manual_coords
            self._session.manual_latitude = latitude
            self._session.manual_longitude = longitude
            # Active before the write so stop() and toggles during it are honoured.
            self._session.active = True
            await self._write(bus_id, latitude, longitude)
            _logger.debug("Manual position sent for bus=%s", bus_id)
            return

        def _on_update(position: Position) -> None:
            self._handle_position(generation, position)

        self._subscription = self._location.subscribe(_on_update, self._handle_stream_error)
        self._session.active = True
        _logger.debug("Live tracking started for bus=%s", bus_id)

    def stop(self) -> None:
        """Cancel any live subscription and mark the session inactive.

        Safe to call at any time; without an active session it does nothing.
        """
        # Invalidate callbacks from the cancelled stream that may still be queued.
        self._generation += 1
        subscription = self._subscription
        self._subscription = None
        if subscription is not None:
            subscription.cancel()
        if self._session.active:
            _logger.debug("Tracking stopped for bus=%s", self._session.selected_bus_id)
        self._session.active = False

    async def drain(self) -> None:
        """Wait for in-flight position writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Stop tracking and wait for in-flight writes."""
        self.stop()
        await self.drain()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _handle_position(self, generation: int, position: Position) -> None:
        bus_id = self._session.selected_bus_id
        if generation != self._generation or not self._session.active or bus_id is None:
            return
        self._session.current_position = position
        if self._on_position is not None:
            try:
                self._on_position(position)
            except Exception:
                _logger.debug("on_position callback failed", exc_info=True)
        task = asyncio.get_running_loop().create_task(self._write(bus_id, position.latitude, position.longitude))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _handle_stream_error(self, exc: BeaconLocationError) -> None:
        self._on_notice(f"Location updates stopped: {exc}")

    async def _write(self, bus_id: str, latitude: float, longitude: float) -> None:
        try:
            await self._store.update_bus_position(bus_id, latitude, longitude)
        except BeaconError as exc:
            self._on_notice(f"Failed to update location: {exc}")
        except Exception as exc:
            _logger.error("Unexpected error updating bus=%s", bus_id, exc_info=True)
            self._on_notice(f"Failed to update location: {exc}")
