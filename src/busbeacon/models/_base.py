"""Base model for busbeacon records.

Every record model inherits from :class:`BeaconBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase document fields map
  automatically to snake_case attributes.
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from busbeacon._api._values import parse_timestamp

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def parse_any_timestamp(value: Any) -> datetime | None:
    """Convert an RFC 3339 string or epoch number (seconds **or** ms) to a UTC datetime.

    Returns ``None`` when the value is missing or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            return parse_timestamp(value)
        except ValueError:
            pass
    number = safe_float(value)
    if number is None:
        return None
    if number >= _MS_THRESHOLD:
        number /= 1000.0
    return datetime.fromtimestamp(number, tz=UTC)


BeaconTimestamp = Annotated[datetime | None, BeforeValidator(parse_any_timestamp)]
"""Annotated type that coerces timestamps of any common shape to UTC datetimes."""


class BeaconBaseModel(BaseModel):
    """Base for busbeacon record models.

    Handles:
    * camelCase → snake_case via ``alias_generator=to_camel``
    * ``None`` and blank strings → dropped so the field default is used
    * Stashes the original payload in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip empty values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value

        # Only auto-stash raw when not explicitly provided.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
