"""Location sources."""

from busbeacon.location.base import (
    ErrorCallback,
    LocationSource,
    LocationSubscription,
    PermissionStatus,
    PositionCallback,
    start_subscription,
)
from busbeacon.location.gpsd import GpsdLocationSource, parse_report
from busbeacon.location.replay import ReplayLocationSource

__all__ = [
    "ErrorCallback",
    "GpsdLocationSource",
    "LocationSource",
    "LocationSubscription",
    "PermissionStatus",
    "PositionCallback",
    "ReplayLocationSource",
    "parse_report",
    "start_subscription",
]
