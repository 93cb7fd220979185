"""Data models for bus records, positions and tracking sessions."""

from busbeacon.models._base import BeaconBaseModel, BeaconTimestamp, parse_any_timestamp
from busbeacon.models.bus import BusRecord, PositionUpdate
from busbeacon.models.position import Position, parse_coordinates
from busbeacon.models.tracking import TrackingMode, TrackingSession, TrackingState

__all__ = [
    "BeaconBaseModel",
    "BeaconTimestamp",
    "BusRecord",
    "Position",
    "PositionUpdate",
    "TrackingMode",
    "TrackingSession",
    "TrackingState",
    "parse_any_timestamp",
    "parse_coordinates",
]
