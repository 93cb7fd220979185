"""Custom exception hierarchy for busbeacon."""

from __future__ import annotations


class BeaconError(Exception):
    """Base exception for all busbeacon errors."""


class BeaconConfigError(BeaconError):
    """Invalid or missing configuration."""


class BeaconTransportError(BeaconError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class BeaconApiError(BeaconError):
    """Firestore returned an error body (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class BeaconAuthenticationError(BeaconApiError):
    """Missing, invalid or expired credentials (``UNAUTHENTICATED``)."""


class BeaconPermissionDeniedError(BeaconApiError):
    """Security rules or IAM rejected the request (``PERMISSION_DENIED``)."""


class BeaconNotFoundError(BeaconApiError):
    """The bus document does not exist (``NOT_FOUND``).

    Position updates carry an ``exists`` precondition, so updating a
    deleted bus surfaces here instead of silently recreating it.
    """


class BeaconLocationError(BeaconError):
    """Location source failure."""


class LocationServiceDisabledError(BeaconLocationError):
    """The location service is switched off or unreachable."""


class LocationPermissionError(BeaconLocationError):
    """Access to the location service was not granted."""


class LocationUnavailableError(BeaconLocationError):
    """No usable position fix could be obtained."""


class BeaconTrackingError(BeaconError):
    """Tracking could not be started."""


class NoBusSelectedError(BeaconTrackingError):
    """Tracking was requested without a target bus."""
