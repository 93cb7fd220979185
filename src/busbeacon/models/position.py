"""Position fix model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from busbeacon.models._base import BeaconBaseModel, BeaconTimestamp, safe_float


class Position(BeaconBaseModel):
    """A single location fix.

    Parameters
    ----------
    latitude : float
        Latitude in degrees, within [-90, 90].
    longitude : float
        Longitude in degrees, within [-180, 180].
    accuracy : float or None
        Estimated horizontal error in metres.
    altitude : float or None
        Altitude in metres.
    speed : float or None
        Ground speed in m/s.
    heading : float or None
        Course over ground in degrees.
    timestamp : datetime or None
        Time of the fix (UTC).
    raw : dict
        Original payload.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(ge=-180.0, le=180.0, validation_alias=AliasChoices("longitude", "lon", "lng"))
    accuracy: float | None = Field(default=None, validation_alias=AliasChoices("accuracy", "eph"))
    altitude: float | None = Field(default=None, validation_alias=AliasChoices("altitude", "alt", "altHAE"))
    speed: float | None = Field(default=None, validation_alias=AliasChoices("speed"))
    heading: float | None = Field(default=None, validation_alias=AliasChoices("heading", "track", "course"))
    timestamp: BeaconTimestamp = Field(default=None, validation_alias=AliasChoices("timestamp", "time"))

    @field_validator("accuracy", "altitude", "speed", "heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def coordinates(self) -> tuple[float, float]:
        """``(latitude, longitude)`` pair."""
        return self.latitude, self.longitude


def parse_coordinates(latitude: str | float, longitude: str | float) -> tuple[float, float]:
    """Parse user-entered coordinates.

    Raises
    ------
    ValueError
        If either value is not a number or lies outside the valid range.
    """
    try:
        lat = float(str(latitude).strip())
        lon = float(str(longitude).strip())
    except ValueError as exc:
        raise ValueError(f"latitude and longitude must be numbers, got {latitude!r}, {longitude!r}") from exc
    if safe_float(lat) is None or safe_float(lon) is None:
        raise ValueError("latitude and longitude must be finite numbers")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude must be between -90 and 90, got {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"longitude must be between -180 and 180, got {lon}")
    return lat, lon
