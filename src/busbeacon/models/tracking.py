"""Tracking session state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from busbeacon._constants import DEFAULT_LATITUDE, DEFAULT_LONGITUDE
from busbeacon.models.position import Position


class TrackingMode(StrEnum):
    LIVE = "live"
    MANUAL = "manual"


class TrackingState(StrEnum):
    INACTIVE = "inactive"
    ACTIVE_MANUAL = "active-manual"
    ACTIVE_LIVE = "active-live"


@dataclass(slots=True)
class TrackingSession:
    """Transient, in-memory state of one tracking screen.

    Created when the screen starts, mutated by user actions, discarded when
    it closes. Never persisted.
    """

    selected_bus_id: str | None = None
    mode: TrackingMode = TrackingMode.LIVE
    manual_latitude: float = DEFAULT_LATITUDE
    manual_longitude: float = DEFAULT_LONGITUDE
    active: bool = False
    current_position: Position | None = None

    @property
    def state(self) -> TrackingState:
        if not self.active:
            return TrackingState.INACTIVE
        if self.mode is TrackingMode.MANUAL:
            return TrackingState.ACTIVE_MANUAL
        return TrackingState.ACTIVE_LIVE

    @property
    def manual_coordinates(self) -> tuple[float, float]:
        return self.manual_latitude, self.manual_longitude
