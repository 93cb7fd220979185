"""busbeacon - Broadcast bus positions from GPS or manual input to Firestore."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("busbeacon")
except PackageNotFoundError:
    __version__ = "0+local"

from busbeacon.app import TrackerApp
from busbeacon.client import BeaconClient, RecordStore
from busbeacon.config import BeaconConfig
from busbeacon.exceptions import (
    BeaconApiError,
    BeaconAuthenticationError,
    BeaconConfigError,
    BeaconError,
    BeaconLocationError,
    BeaconNotFoundError,
    BeaconPermissionDeniedError,
    BeaconTrackingError,
    BeaconTransportError,
    LocationPermissionError,
    LocationServiceDisabledError,
    LocationUnavailableError,
    NoBusSelectedError,
)
from busbeacon.location import (
    GpsdLocationSource,
    LocationSource,
    LocationSubscription,
    PermissionStatus,
    ReplayLocationSource,
)
from busbeacon.models import (
    BusRecord,
    Position,
    PositionUpdate,
    TrackingMode,
    TrackingSession,
    TrackingState,
)
from busbeacon.tracking import TrackingController

__all__ = [
    "__version__",
    "BeaconApiError",
    "BeaconAuthenticationError",
    "BeaconClient",
    "BeaconConfig",
    "BeaconConfigError",
    "BeaconError",
    "BeaconLocationError",
    "BeaconNotFoundError",
    "BeaconPermissionDeniedError",
    "BeaconTrackingError",
    "BeaconTransportError",
    "BusRecord",
    "GpsdLocationSource",
    "LocationPermissionError",
    "LocationServiceDisabledError",
    "LocationSource",
    "LocationSubscription",
    "LocationUnavailableError",
    "NoBusSelectedError",
    "PermissionStatus",
    "Position",
    "PositionUpdate",
    "RecordStore",
    "ReplayLocationSource",
    "TrackerApp",
    "TrackingController",
    "TrackingMode",
    "TrackingSession",
    "TrackingState",
]
