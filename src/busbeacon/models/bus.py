"""Bus record model."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from busbeacon._api._values import decode_fields
from busbeacon._constants import UNKNOWN_BUS_NAME
from busbeacon.models._base import BeaconBaseModel, BeaconTimestamp, safe_float


class BusRecord(BeaconBaseModel):
    """A bus document from the record store.

    Fields are mapped from the document's ``name``, ``lat``, ``lon`` and
    ``updatedAt`` fields. ``id`` is the last segment of the Firestore
    document name.
    """

    id: str
    """Store-assigned document id."""
    name: str = UNKNOWN_BUS_NAME
    """Display name."""
    latitude: float | None = Field(default=None, validation_alias=AliasChoices("lat", "latitude"))
    """Last broadcast latitude."""
    longitude: float | None = Field(default=None, validation_alias=AliasChoices("lon", "lng", "longitude"))
    """Last broadcast longitude."""
    updated_at: BeaconTimestamp = None
    """Server timestamp of the last position update."""
    document_name: str = ""
    """Full Firestore resource name."""

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return str(value)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> BusRecord:
        """Build a record from a Firestore REST ``Document`` object."""
        document_name = str(document.get("name", ""))
        fields_raw = document.get("fields")
        fields = decode_fields(fields_raw) if isinstance(fields_raw, Mapping) else {}
        payload: dict[str, Any] = dict(fields)
        # Document identity wins over any same-named data field.
        payload["id"] = document_name.rsplit("/", 1)[-1]
        payload["documentName"] = document_name
        payload["raw"] = fields
        return cls.model_validate(payload)


class PositionUpdate(BaseModel):
    """Result of a position write.

    Parameters
    ----------
    bus_id : str
        Updated document id.
    latitude : float
        Written latitude.
    longitude : float
        Written longitude.
    updated_at : datetime or None
        Server-assigned ``updatedAt`` value.
    commit_time : datetime or None
        Time the commit was applied.
    """

    model_config = ConfigDict(frozen=True)

    bus_id: str
    latitude: float
    longitude: float
    updated_at: datetime | None = None
    commit_time: datetime | None = None
